"""Domain errors raised by the sync engine and its trigger front door.

Each error carries only client-safe text in its message. Upstream detail
(GitHub response bodies, exception strings) is attached as attributes for
logging and never rendered in HTTP responses.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from repopin.github.models import RepositoryReference
    from repopin.ratelimit.limiter import RateLimitResult


class SyncError(Exception):
    """Base class for sync engine errors."""


class InvalidSecretError(SyncError):
    """Raised when a sync secret is not a well-formed UUID."""

    def __init__(self) -> None:
        """Attach the generic client-facing message."""
        super().__init__("Invalid request")


class UnknownSecretError(SyncError):
    """Raised when no settings are registered for a sync secret."""

    def __init__(self) -> None:
        """Attach the generic client-facing message."""
        super().__init__("Invalid request")


class ConfigurationError(SyncError):
    """Raised when stored sync settings cannot be used for a run.

    Attributes
    ----------
    reason
        Server-side description of what was wrong.

    """

    def __init__(self, reason: str) -> None:
        """Record ``reason`` for logs and set the generic message."""
        self.reason = reason
        super().__init__("Invalid configuration")

    @classmethod
    def missing_installation(cls) -> ConfigurationError:
        """Return an error for settings without a GitHub App installation."""
        return cls("no GitHub App installation is linked")

    @classmethod
    def malformed_order(cls, detail: str) -> ConfigurationError:
        """Return an error for a stored order that failed validation."""
        return cls(f"stored repository order is malformed: {detail}")


class ReauthorizationRequiredError(SyncError):
    """Raised when the installation credential could not be obtained."""

    def __init__(self) -> None:
        """Attach the reinstall hint shown to the caller."""
        super().__init__(
            "GitHub App authentication failed. Please reinstall the app."
        )


class RateLimitExceededError(SyncError):
    """Raised when a trigger exceeds its rate limit window.

    Attributes
    ----------
    result
        The rejecting rate limit check.
    now_ms
        Time of the check in epoch milliseconds.

    """

    def __init__(self, result: RateLimitResult, now_ms: int) -> None:
        """Record the rejected check and its timestamp."""
        self.result = result
        self.now_ms = now_ms
        super().__init__("Too many requests. Please try again later.")

    @property
    def retry_after_seconds(self) -> int:
        """Return whole seconds until the window resets."""
        return self.result.retry_after_seconds(self.now_ms)


class SyncInProgressError(SyncError):
    """Raised when a run for the same credential is already active."""

    def __init__(self) -> None:
        """Attach the client-facing message."""
        super().__init__("Sync already in progress")


class InvalidRepositoryNameError(SyncError):
    """Raised when a repository reference fails name validation."""

    def __init__(self, repository: RepositoryReference) -> None:
        """Record the offending repository."""
        self.repository = repository
        super().__init__(f"Invalid repository name format: {repository.slug!r}")


class DefaultBranchNotFoundError(SyncError):
    """Raised when neither ``main`` nor ``master`` exists."""

    def __init__(self, repository: RepositoryReference) -> None:
        """Record the repository without a resolvable default branch."""
        self.repository = repository
        super().__init__(f"No default branch found for {repository.slug}")


class HistoryRewriteError(SyncError):
    """Raised when a history rewrite cannot proceed safely."""

    def __init__(self, repository: RepositoryReference, reason: str) -> None:
        """Record the repository and reason."""
        self.repository = repository
        self.reason = reason
        super().__init__(f"History rewrite aborted for {repository.slug}: {reason}")

    @classmethod
    def backup_failed(
        cls, repository: RepositoryReference, detail: str
    ) -> HistoryRewriteError:
        """Return an error for a backup branch that could not be created."""
        return cls(repository, f"backup branch could not be created ({detail})")
