"""Commit messages, branch names and limits shared by the sync engine."""

from __future__ import annotations

#: Token embedded in every synthetic commit message. Cleanup removes any
#: commit whose message contains it.
MARKER = "[RepoPin]"

DEFAULT_BRANCH_CANDIDATES: tuple[str, ...] = ("main", "master")

TEMP_BRANCH_PREFIX = "repopin-"
BACKUP_BRANCH_PREFIX = "repopin-backup-"

DEFAULT_CLEANUP_WINDOW = 100
MAX_ORDER_LENGTH = 500
MIN_TOP_N = 1
MAX_TOP_N = 100

#: Client-facing error for a repository whose bump failed. Upstream detail
#: only goes to server logs and the run's step log.
GENERIC_BUMP_ERROR = "Operation failed"
INVALID_NAME_ERROR = "Invalid repository name format"


def position_message(position: int, total: int) -> str:
    """Return the message of the first synthetic commit of a bump."""
    return f"{MARKER} Position: {position}/{total}"


def revert_message() -> str:
    """Return the message of the commit that restores the original tree."""
    return f"{MARKER} Revert"


def sync_position_message(position: int, total: int) -> str:
    """Return the message of the commit placed on the temporary branch."""
    return f"{MARKER} Sync position: {position}/{total}"


def temp_branch_name(now_ms: int) -> str:
    """Return the temporary branch name used by the branch-merge strategy."""
    return f"{TEMP_BRANCH_PREFIX}{now_ms}"


def backup_branch_name(now_ms: int) -> str:
    """Return the name of the backup branch taken before a history rewrite."""
    return f"{BACKUP_BRANCH_PREFIX}{now_ms}"
