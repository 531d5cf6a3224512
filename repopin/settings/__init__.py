"""Stored repository orders, order history and sync switches."""

from __future__ import annotations

from .errors import InvalidOrderError, SettingsNotFoundError, SnapshotNotFoundError
from .models import OrderSnapshotInfo, SyncSettingsInfo, validate_order
from .service import ChangeType, SettingsService, clamp_top_n
from .storage import OrderSnapshot, SyncSettings, init_settings_storage

__all__ = [
    "ChangeType",
    "InvalidOrderError",
    "OrderSnapshot",
    "OrderSnapshotInfo",
    "SettingsNotFoundError",
    "SettingsService",
    "SnapshotNotFoundError",
    "SyncSettings",
    "SyncSettingsInfo",
    "clamp_top_n",
    "init_settings_storage",
    "validate_order",
]
