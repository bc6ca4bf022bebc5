"""Kernel services - imperative shell around the pure domain."""

from reporting_kernel.services.snapshot_store import SnapshotStore, StoredSnapshot

__all__ = ["SnapshotStore", "StoredSnapshot"]
