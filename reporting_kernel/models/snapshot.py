"""
Module: reporting_kernel.models.snapshot
Responsibility: ORM persistence for serialized reporting-period snapshots.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (store_key, version) is unique; versions increase by one per
      completed mutation.
    - checksum is the SHA-256 of the canonical JSON payload.

Audit relevance:
    Only the latest snapshot is authoritative.  Earlier rows are kept as
    written but are not an audit trail: nothing reads them back except
    ``SnapshotStore.history``.
"""

from typing import Any

from sqlalchemy import JSON, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reporting_kernel.db.base import TrackedBase


class ReportingSnapshotModel(TrackedBase):
    """
    One persisted snapshot of the full reporting-period collection.

    Guarantees:
        - ``payload`` is a JSON document produced by ``snapshot_to_dict``.
        - ``command`` names the mutation that produced this snapshot.
    """

    __tablename__ = "reporting_snapshots"

    __table_args__ = (
        UniqueConstraint("store_key", "version", name="uq_snapshot_key_version"),
        Index("idx_snapshot_store_key", "store_key"),
    )

    store_key: Mapped[str] = mapped_column(String(100), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    command: Mapped[str | None] = mapped_column(String(50), nullable=True)
    checksum: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<ReportingSnapshotModel {self.store_key} v{self.version}>"
