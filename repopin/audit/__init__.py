"""Audit log of sync runs and order changes."""

from __future__ import annotations

from .service import AuditAction, AuditLogger, AuditRecord
from .storage import SyncLog, init_audit_storage

__all__ = [
    "AuditAction",
    "AuditLogger",
    "AuditRecord",
    "SyncLog",
    "init_audit_storage",
]
