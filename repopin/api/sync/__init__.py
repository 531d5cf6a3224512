"""Sync trigger endpoint."""
