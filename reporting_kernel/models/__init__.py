"""ORM models for the reporting kernel."""

from reporting_kernel.models.snapshot import ReportingSnapshotModel

__all__ = ["ReportingSnapshotModel"]
