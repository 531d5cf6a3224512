"""GitHub client errors."""

from __future__ import annotations

_HTTP_NOT_FOUND = 404


class GitHubAPIError(RuntimeError):
    """Raised when GitHub returns an error response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        """Return whether the error was an HTTP 404."""
        return self.status_code == _HTTP_NOT_FOUND

    @classmethod
    def http_error(cls, method: str, path: str, status_code: int) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"GitHub {method} {path} HTTP {status_code}", status_code=status_code)


class GitHubResponseShapeError(RuntimeError):
    """Raised when GitHub responses are missing expected fields."""

    @classmethod
    def invalid(cls, path: str, detail: str) -> GitHubResponseShapeError:
        """Return an error for a payload that failed typed decoding."""
        return cls(f"GitHub response for {path} has unexpected shape: {detail}")


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def missing_token(cls) -> GitHubConfigError:
        """Return an error when no GitHub token is configured."""
        return cls("REPOPIN_GITHUB_TOKEN is required for GitHub API")

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")


class GitHubAuthError(RuntimeError):
    """Raised when an installation credential cannot be obtained.

    This usually means the GitHub App was uninstalled or its authorization
    was revoked, so the user has to reinstall or reauthorize it.
    """

    def __init__(self, installation_id: int | None, reason: str) -> None:
        """Record the installation and a server-side reason."""
        self.installation_id = installation_id
        self.reason = reason
        super().__init__(
            f"GitHub authorization failed for installation {installation_id}: {reason}"
        )
