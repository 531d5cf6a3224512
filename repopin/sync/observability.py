"""Structured lifecycle events for sync runs.

Events are single ``[event] key=value`` lines emitted through femtologging.
Installation tokens and upstream response bodies never appear in them.

Usage
-----
>>> events = SyncEventLogger()
>>> events.log_run_started(user_id="u1", total=3, strategy="revert")

"""

from __future__ import annotations

import enum
import typing as typ

from repopin.logging import get_logger, log_event

if typ.TYPE_CHECKING:
    import datetime as dt

    from .models import SyncRunSummary

logger = get_logger(__name__)


class SyncEventType(enum.StrEnum):
    """Structured log event types for sync runs."""

    RUN_STARTED = "sync.run.started"
    RUN_SKIPPED = "sync.run.skipped"
    RUN_COMPLETED = "sync.run.completed"
    REPOSITORY_FAILED = "sync.repository.failed"
    CLEANUP_FAILED = "sync.cleanup.failed"


class SyncEventLogger:
    """Emit structured sync events via femtologging."""

    def log_run_started(self, *, user_id: str, total: int, strategy: str) -> None:
        """Log the start of a run over ``total`` repositories."""
        log_event(
            logger,
            "INFO",
            SyncEventType.RUN_STARTED,
            {"user_id": user_id, "total": total, "strategy": strategy},
        )

    def log_run_skipped(self, *, user_id: str, top_n: int) -> None:
        """Log a run skipped because the order already matched."""
        log_event(
            logger,
            "INFO",
            SyncEventType.RUN_SKIPPED,
            {"user_id": user_id, "top_n": top_n, "reason": "already_ordered"},
        )

    def log_run_completed(
        self,
        *,
        user_id: str,
        summary: SyncRunSummary,
        duration: dt.timedelta,
    ) -> None:
        """Log run completion with its counters.

        Parameters
        ----------
        user_id
            Owner of the run.
        summary
            Aggregated repository results.
        duration
            Wall-clock time taken by the run.

        """
        fields: dict[str, object] = {
            "user_id": user_id,
            "status": summary.status,
            **summary.counts(),
            "duration_seconds": f"{duration.total_seconds():.3f}",
        }
        log_event(logger, "INFO", SyncEventType.RUN_COMPLETED, fields)

    def log_repository_failed(
        self, *, user_id: str, repository: str, error: BaseException
    ) -> None:
        """Log a repository whose bump failed."""
        log_event(
            logger,
            "WARNING",
            SyncEventType.REPOSITORY_FAILED,
            {
                "user_id": user_id,
                "repository": repository,
                "error_type": type(error).__name__,
                "error": error,
            },
        )

    def log_cleanup_failed(
        self, *, user_id: str, repository: str, error: BaseException
    ) -> None:
        """Log a repository whose history cleanup failed."""
        log_event(
            logger,
            "WARNING",
            SyncEventType.CLEANUP_FAILED,
            {
                "user_id": user_id,
                "repository": repository,
                "error_type": type(error).__name__,
                "error": error,
            },
        )
