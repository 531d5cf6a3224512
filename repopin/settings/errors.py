"""Errors raised by the settings store."""

from __future__ import annotations


class InvalidOrderError(ValueError):
    """Raised when a repository order cannot be stored or used.

    Attributes
    ----------
    reason
        Description of the first problem found.

    """

    def __init__(self, reason: str) -> None:
        """Record the reason."""
        self.reason = reason
        super().__init__(reason)

    @classmethod
    def too_long(cls, length: int, limit: int) -> InvalidOrderError:
        """Return an error for an order exceeding ``limit`` entries."""
        return cls(f"order has {length} repositories, at most {limit} allowed")

    @classmethod
    def invalid_slug(cls, slug: object) -> InvalidOrderError:
        """Return an error for an entry that is not a valid ``owner/name``."""
        return cls(f"invalid repository slug: {slug!r}")

    @classmethod
    def not_a_list(cls, value: object) -> InvalidOrderError:
        """Return an error for a stored order that is not a list."""
        return cls(f"expected a list of slugs, got {type(value).__name__}")


class SettingsNotFoundError(LookupError):
    """Raised when a user has no stored settings."""

    def __init__(self, user_id: str) -> None:
        """Record the user id."""
        self.user_id = user_id
        super().__init__(f"No sync settings for user {user_id!r}")


class SnapshotNotFoundError(LookupError):
    """Raised when an order snapshot does not exist for the user."""

    def __init__(self, snapshot_id: int) -> None:
        """Record the snapshot id."""
        self.snapshot_id = snapshot_id
        super().__init__(f"No order snapshot with id {snapshot_id}")
