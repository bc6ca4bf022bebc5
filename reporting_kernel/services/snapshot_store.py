"""
SnapshotStore -- Durable storage for the reporting-period collection.

Responsibility:
    Writes one row per completed mutation (the full serialized snapshot,
    its checksum and a monotonically increasing version) and loads the
    latest snapshot back.

Architecture position:
    Kernel > Services -- imperative shell.  Knows nothing about the shape
    of the snapshot beyond "a JSON-safe dict"; serialization of reporting
    periods lives in ``reporting_modules.reports.serialization``.

Invariants enforced:
    - At-most-once persistence: a snapshot is written in a single
      transaction (``session_scope``).  If the process dies before the
      commit, the whole mutation is lost; a half-written snapshot is never
      visible.
    - Versions per ``store_key`` increase by exactly one.

Failure modes:
    - SnapshotNotFoundError from ``load_latest`` when nothing was saved.
    - SQLAlchemy errors propagate after rollback.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from reporting_kernel.db.engine import session_scope
from reporting_kernel.exceptions import SnapshotNotFoundError
from reporting_kernel.logging_config import get_logger
from reporting_kernel.models.snapshot import ReportingSnapshotModel
from reporting_kernel.utils.hashing import hash_payload

logger = get_logger("services.snapshot_store")


@dataclass(frozen=True)
class StoredSnapshot:
    """A snapshot as read back from storage."""

    store_key: str
    version: int
    checksum: str
    command: str | None
    payload: dict[str, Any]


class SnapshotStore:
    """
    Persists serialized reporting-period snapshots.

    Contract:
        ``save`` owns its transaction boundary: commit on success,
        rollback on any exception.

    Non-goals:
        - Does NOT merge concurrent writers (single-writer model).
        - Does NOT provide an audit trail; only the latest row matters.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        store_key: str = "default",
    ):
        self._session_factory = session_factory
        self._store_key = store_key

    @property
    def store_key(self) -> str:
        return self._store_key

    def save(self, payload: dict[str, Any], command: str | None = None) -> StoredSnapshot:
        """Persist ``payload`` as the next version and return it."""
        checksum = hash_payload(payload)
        with session_scope(self._session_factory) as session:
            current = session.scalar(
                select(func.max(ReportingSnapshotModel.version)).where(
                    ReportingSnapshotModel.store_key == self._store_key
                )
            )
            version = (current or 0) + 1
            session.add(
                ReportingSnapshotModel(
                    store_key=self._store_key,
                    version=version,
                    command=command,
                    checksum=checksum,
                    payload=payload,
                )
            )

        logger.info(
            "snapshot_saved",
            extra={
                "store_key": self._store_key,
                "version": version,
                "checksum": checksum,
                "command_name": command,
            },
        )
        return StoredSnapshot(
            store_key=self._store_key,
            version=version,
            checksum=checksum,
            command=command,
            payload=payload,
        )

    def load_latest(self) -> StoredSnapshot:
        """
        Load the most recent snapshot.

        Raises:
            SnapshotNotFoundError: if nothing was saved under this key.
        """
        with session_scope(self._session_factory) as session:
            row = session.scalars(
                select(ReportingSnapshotModel)
                .where(ReportingSnapshotModel.store_key == self._store_key)
                .order_by(ReportingSnapshotModel.version.desc())
                .limit(1)
            ).first()
            if row is None:
                raise SnapshotNotFoundError(self._store_key)
            return self._to_stored(row)

    def history(self) -> list[StoredSnapshot]:
        """All snapshots for this key, oldest first."""
        with session_scope(self._session_factory) as session:
            rows = session.scalars(
                select(ReportingSnapshotModel)
                .where(ReportingSnapshotModel.store_key == self._store_key)
                .order_by(ReportingSnapshotModel.version)
            ).all()
            return [self._to_stored(row) for row in rows]

    @staticmethod
    def _to_stored(row: ReportingSnapshotModel) -> StoredSnapshot:
        return StoredSnapshot(
            store_key=row.store_key,
            version=row.version,
            checksum=row.checksum,
            command=row.command,
            payload=row.payload,
        )
