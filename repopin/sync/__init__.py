"""Repository order synchronization and history rewriting.

The orchestrator, trigger service and maintenance helpers live in their own
modules (``repopin.sync.orchestrator``, ``repopin.sync.service``,
``repopin.sync.maintenance``) and are imported from there.
"""

from __future__ import annotations

from .constants import MARKER
from .errors import (
    ConfigurationError,
    DefaultBranchNotFoundError,
    HistoryRewriteError,
    InvalidRepositoryNameError,
    InvalidSecretError,
    RateLimitExceededError,
    ReauthorizationRequiredError,
    SyncError,
    SyncInProgressError,
    UnknownSecretError,
)
from .models import (
    CleanupResult,
    CommitStrategyKind,
    DesiredOrder,
    OutcomeKind,
    RepositorySyncResult,
    SyncOutcome,
    SyncRunSummary,
    VerificationResult,
)

__all__ = [
    "MARKER",
    "CleanupResult",
    "CommitStrategyKind",
    "ConfigurationError",
    "DefaultBranchNotFoundError",
    "DesiredOrder",
    "HistoryRewriteError",
    "InvalidRepositoryNameError",
    "InvalidSecretError",
    "OutcomeKind",
    "RateLimitExceededError",
    "ReauthorizationRequiredError",
    "RepositorySyncResult",
    "SyncError",
    "SyncInProgressError",
    "SyncOutcome",
    "SyncRunSummary",
    "UnknownSecretError",
    "VerificationResult",
]
