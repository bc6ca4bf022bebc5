"""
Reports Module Service (``reporting_modules.reports.service``).

Responsibility
--------------
Owns the published reporting-period collection and is the sole public
entry point for founder mutations, reviewer remarks, budget views,
display statuses and the budget-sheet export.

Architecture position
---------------------
**Modules layer** -- imperative shell around the pure ``ReportReducer``
and the engines.  Reads the clock once per operation, persists through
an optional ``SnapshotStore`` and publishes the new collection.

Invariants enforced
-------------------
* The published collection is always a complete snapshot: a mutation is
  computed in full (propagation included), persisted, and only then
  published.
* Periods are held in calendar order; two periods for the same month are
  refused at construction.
* At-most-once persistence: one ``SnapshotStore.save`` per APPLIED
  mutation, none for NO_OP or failures.

Failure modes
-------------
* Validation, lifecycle and lookup failures -> ``MutationResult`` with a
  non-APPLIED status; never raised from ``mutate``.
* Store failure -> the exception propagates and the previous collection
  stays published.
* ``open_period`` with an unknown id -> ``PeriodNotFoundError``.

Audit relevance
---------------
Every mutation runs inside a ``LogContext`` envelope (correlation id,
command name, period id, ledger scope and target entry) and ends in
``mutation_applied`` or ``mutation_rejected``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from pathlib import Path
from uuid import uuid4

from reporting_config import get_programme_config
from reporting_config.schema import ProgrammeConfig
from reporting_engines.budget import BudgetAggregator, BudgetView
from reporting_engines.lifecycle import PeriodAccess, display_status, evaluate_access
from reporting_kernel.domain.clock import Clock, SystemClock
from reporting_kernel.domain.ledger import ReportingPeriod
from reporting_kernel.exceptions import DuplicatePeriodError, PeriodNotFoundError
from reporting_kernel.logging_config import LogContext, get_logger
from reporting_kernel.services.snapshot_store import SnapshotStore
from reporting_modules.reports.commands import Command, RecordReviewerRemarks
from reporting_modules.reports.export import export_budget_sheet
from reporting_modules.reports.models import MutationResult, MutationStatus
from reporting_modules.reports.reducer import ReportReducer
from reporting_modules.reports.serialization import snapshot_from_dict, snapshot_to_dict

logger = get_logger("modules.reports.service")


def _ordered(periods: Iterable[ReportingPeriod]) -> tuple[ReportingPeriod, ...]:
    ordered = tuple(sorted(periods, key=lambda p: p.month_index))
    for previous, current in zip(ordered, ordered[1:]):
        if previous.month_index == current.month_index:
            raise DuplicatePeriodError(current.month_label)
    return ordered


class ReportingService:
    """
    Founder-facing reporting workflow over a collection of monthly periods.

    Contract
    --------
    * ``mutate`` returns a ``MutationResult`` whose ``periods`` is the
      collection after the command; callers inspect ``status``.
    * ``get_periods`` always returns the last published snapshot.
    * Clock, id factory and store are injectable for deterministic tests.

    Non-goals
    ---------
    * Does NOT merge concurrent writers (single-writer model).
    * Does NOT back-fill recurring entries into periods that precede
      their origin month.
    """

    def __init__(
        self,
        periods: Sequence[ReportingPeriod] = (),
        config: ProgrammeConfig | None = None,
        clock: Clock | None = None,
        store: SnapshotStore | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self._config = config or get_programme_config()
        self._clock = clock or SystemClock()
        self._store = store
        self._reducer = ReportReducer(self._config, id_factory=id_factory)
        self._aggregator = BudgetAggregator.from_config(self._config)
        self._periods = _ordered(periods)
        self._warn_unregistered_projects()

    @classmethod
    def from_store(
        cls,
        store: SnapshotStore,
        config: ProgrammeConfig | None = None,
        clock: Clock | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> ReportingService:
        """
        Rebuild the service from the latest persisted snapshot.

        Raises:
            SnapshotNotFoundError: nothing has been saved under the store key.
        """
        stored = store.load_latest()
        logger.info(
            "snapshot_loaded",
            extra={"store_key": stored.store_key, "version": stored.version},
        )
        return cls(
            periods=snapshot_from_dict(stored.payload),
            config=config,
            clock=clock,
            store=store,
            id_factory=id_factory,
        )

    def _warn_unregistered_projects(self) -> None:
        registry = self._config.project_names
        if not registry:
            return
        unknown = sorted(
            {pid for period in self._periods for pid in period.project_ids} - set(registry)
        )
        if unknown:
            logger.warning("unregistered_projects", extra={"project_ids": unknown})

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def config(self) -> ProgrammeConfig:
        return self._config

    def get_periods(self) -> tuple[ReportingPeriod, ...]:
        return self._periods

    def get_period(self, period_id: str) -> ReportingPeriod:
        for period in self._periods:
            if period.id == period_id:
                return period
        raise PeriodNotFoundError(period_id)

    def get_budget_view(
        self, periods: Sequence[ReportingPeriod] | None = None
    ) -> BudgetView:
        """Aggregate ``periods`` (default: the published collection)."""
        return self._aggregator.aggregate(
            periods=tuple(periods) if periods is not None else self._periods
        )

    def get_display_status(
        self, period: ReportingPeriod, now: datetime | None = None
    ) -> str:
        """Draft, Auto-Submitted, Submitted or Reviewed."""
        return display_status(period, now or self._clock.now()).value

    def open_period(self, period_id: str) -> PeriodAccess:
        """
        Decide how a founder may open ``period_id`` right now.

        Raises:
            PeriodNotFoundError: unknown period id.
        """
        return evaluate_access(self.get_period(period_id), self._clock.now())

    # =========================================================================
    # Mutations
    # =========================================================================

    def mutate(self, command: Command) -> MutationResult:
        """Apply ``command``, persist once if it changed anything, publish."""
        name = type(command).__name__
        with LogContext.bind(
            correlation_id=uuid4().hex,
            command=name,
            period_id=getattr(command, "period_id", None),
            scope=getattr(command, "scope", None),
            entry_id=getattr(command, "entry_id", None) or getattr(command, "milestone_id", None),
        ):
            result = self._reducer.apply(self._periods, command, self._clock.now())

            if result.status is not MutationStatus.APPLIED:
                log = logger.info if result.status is MutationStatus.NO_OP else logger.warning
                log(
                    "mutation_rejected",
                    extra={
                        "status": result.status.value,
                        "error_code": result.code,
                        "detail": result.message,
                    },
                )
                return result

            if self._store is not None:
                try:
                    self._store.save(snapshot_to_dict(result.periods), command=name)
                except Exception:
                    logger.exception("snapshot_persist_failed")
                    raise

            self._periods = result.periods
            logger.info(
                "mutation_applied",
                extra={
                    "status": result.status.value,
                    "result_entry_id": result.entry_id,
                    "propagated_to": (
                        list(result.propagation.period_ids) if result.propagation else []
                    ),
                },
            )
            return result

    def record_reviewer_remarks(self, period_id: str, remarks: str | None) -> MutationResult:
        """Store (or clear, with blank text) the reviewer's remarks on a period."""
        return self.mutate(RecordReviewerRemarks(period_id=period_id, remarks=remarks))

    # =========================================================================
    # Export
    # =========================================================================

    def export_budget_sheet(self, path: Path | str) -> Path:
        """Write the consolidated budget sheet of the published collection."""
        now = self._clock.now()
        return export_budget_sheet(
            self.get_budget_view(),
            path,
            display_statuses={
                p.id: display_status(p, now).value for p in self._periods
            },
            currency=self._config.currency,
        )
