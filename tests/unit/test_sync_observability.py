"""Unit tests for structured sync events."""

from __future__ import annotations

import datetime as dt

import pytest

from repopin.sync.models import RepositoryStatus, RepositorySyncResult, SyncRunSummary
from repopin.sync.observability import SyncEventLogger, SyncEventType
from tests.helpers.log_capture import collect_logs

_LOGGER = "repopin.sync.observability"


class TestSyncEventLogger:
    """Each lifecycle method emits one ``[event] key=value`` line."""

    @pytest.fixture
    def events(self) -> SyncEventLogger:
        """Return a fresh event logger."""
        return SyncEventLogger()

    def test_run_started(self, events: SyncEventLogger) -> None:
        """Start events carry the owner, size and strategy."""
        with collect_logs(_LOGGER) as logs:
            events.log_run_started(user_id="u1", total=3, strategy="revert")
            (line,) = logs.wait_for(1)
        assert line.level == "INFO"
        assert line.message == "[sync.run.started] user_id=u1 total=3 strategy=revert"

    def test_run_completed_includes_counts(self, events: SyncEventLogger) -> None:
        """Completion events carry the run status and counters."""
        summary = SyncRunSummary(
            results=(
                RepositorySyncResult("octo/a", RepositoryStatus.SUCCESS, cleaned=True),
                RepositorySyncResult("octo/b", RepositoryStatus.ERROR, error="x"),
            )
        )
        with collect_logs(_LOGGER) as logs:
            events.log_run_completed(
                user_id="u1", summary=summary, duration=dt.timedelta(seconds=1.5)
            )
            (line,) = logs.wait_for(1)
        assert line.message.startswith(f"[{SyncEventType.RUN_COMPLETED}]")
        for field in (
            "status=partial",
            "total=2",
            "successful=1",
            "failed=1",
            "cleaned=1",
            "duration_seconds=1.500",
        ):
            assert field in line.message, f"missing {field}"

    def test_repository_failed_is_a_warning(self, events: SyncEventLogger) -> None:
        """Repository failures are warnings naming the error type."""
        with collect_logs(_LOGGER) as logs:
            events.log_repository_failed(
                user_id="u1", repository="octo/a", error=RuntimeError("conflict")
            )
            (line,) = logs.wait_for(1)
        assert line.is_warning
        assert "repository=octo/a" in line.message
        assert "error_type=RuntimeError" in line.message

    def test_skip_and_cleanup_events(self, events: SyncEventLogger) -> None:
        """Skip and cleanup-failure events use their own identifiers."""
        with collect_logs(_LOGGER) as logs:
            events.log_run_skipped(user_id="u1", top_n=2)
            events.log_cleanup_failed(
                user_id="u1", repository="octo/a", error=ValueError("gone")
            )
            lines = logs.wait_for(2)
        assert SyncEventType.RUN_SKIPPED in lines[0].message
        assert "reason=already_ordered" in lines[0].message
        assert SyncEventType.CLEANUP_FAILED in lines[1].message
