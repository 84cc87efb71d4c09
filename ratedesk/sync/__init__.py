"""Catalog and rate-table synchronization."""

from .controller import RateSyncController


__all__ = ["RateSyncController"]
