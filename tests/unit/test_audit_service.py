"""Unit tests for the audit log."""

from __future__ import annotations

import typing as typ

import pytest

from repopin.audit import AuditAction
from repopin.sync.models import (
    RepositoryStatus,
    RepositorySyncResult,
    RunStatus,
    SyncRunSummary,
    VerificationResult,
)

if typ.TYPE_CHECKING:
    from repopin.audit import AuditLogger

USER = "user-1"


@pytest.mark.asyncio
async def test_record_run_stores_results_logs_and_counts(
    audit_logger: AuditLogger,
) -> None:
    """A run is stored with per-repository payloads and counters."""
    summary = SyncRunSummary(
        results=(
            RepositorySyncResult("octo/a", RepositoryStatus.SUCCESS, cleaned=True),
            RepositorySyncResult(
                "octo/b",
                RepositoryStatus.ERROR,
                cleaned=False,
                error="Failed to create commit",
            ),
        ),
        step_logs=("octo/a: bumped", "octo/b: bump failed"),
    )

    record_id = await audit_logger.record_run(USER, summary)

    (record,) = await audit_logger.list_recent(USER)
    assert record.id == record_id
    assert record.action == AuditAction.AUTO_SYNC
    assert record.status == "partial"
    assert record.repos_affected == ("octo/a", "octo/b")
    assert record.details["summary"] == {
        "total": 2,
        "successful": 1,
        "failed": 1,
        "cleaned": 1,
    }
    assert record.details["results"][1] == {
        "repo": "octo/b",
        "status": "error",
        "cleaned": False,
        "error": "Failed to create commit",
    }
    assert record.details["logs"] == ["octo/a: bumped", "octo/b: bump failed"]


@pytest.mark.asyncio
async def test_record_skipped_keeps_both_orders(audit_logger: AuditLogger) -> None:
    """Skipped runs store the observed and desired orders."""
    verification = VerificationResult(
        already_ordered=True,
        current_order=("octo/a", "octo/b"),
        desired_order=("octo/a", "octo/b"),
    )

    await audit_logger.record_skipped(USER, verification)

    (record,) = await audit_logger.list_recent(USER)
    assert record.action == AuditAction.AUTO_SYNC_SKIPPED
    assert record.status == RunStatus.SUCCESS
    assert record.details["currentOrder"] == ["octo/a", "octo/b"]


@pytest.mark.asyncio
async def test_list_recent_is_scoped_newest_first_and_capped(
    audit_logger: AuditLogger,
) -> None:
    """Listing filters by user, orders newest first and caps at 50."""
    for index in range(55):
        await audit_logger.record(
            USER, action=AuditAction.MANUAL_ORDER, status="success", details={"i": index}
        )
    await audit_logger.record_failure(
        "user-2", action=AuditAction.AUTO_SYNC, message="boom"
    )

    records = await audit_logger.list_recent(USER, limit=500)
    few = await audit_logger.list_recent(USER, limit=3)

    assert len(records) == 50
    assert records[0].details == {"i": 54}
    assert [record.details["i"] for record in few] == [54, 53, 52]
    assert all(record.user_id == USER for record in records)


@pytest.mark.asyncio
async def test_record_failure_stores_error_status(audit_logger: AuditLogger) -> None:
    """Failures before any repository is touched are stored as errors."""
    await audit_logger.record_failure(
        USER, action=AuditAction.AUTO_SYNC, message="installation token rejected"
    )

    (record,) = await audit_logger.list_recent(USER)
    assert record.status == RunStatus.ERROR
    assert record.details == {"error": "installation token rejected"}
    assert record.repos_affected == ()
