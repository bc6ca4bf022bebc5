"""
reporting_engines.propagation -- Recurring-expense propagation across periods.

Responsibility:
    Given a newly inserted Recurring expense entry, its ledger scope, and
    the full collection of reporting periods, compute the clones that must
    appear in later periods and insert them in one batch.

Architecture position:
    Engines -- pure calculation layer, zero I/O, no clock access.
    Consumed by ``reporting_modules.reports.reducer`` when an AddExpense
    command succeeds.

Invariants enforced:
    - Eligibility is anchored on ``origin_month``: with
      ``diff = target_month - origin_month`` a period qualifies iff
      ``diff > 0`` and ``diff % interval == 0`` (interval 1, 3 or 12).
    - OneTime entries never propagate.
    - Determinism: clone ids are derived from the origin id and the target
      month index, so the same entry over the same periods always yields
      the same clones regardless of call order.
    - Idempotency: ``apply`` never inserts a clone whose id is already
      present in the target ledger.
    - Non-retroactivity: propagation happens once, at insertion.  Editing
      or deleting the original later does not touch existing clones, and
      deleting a clone does not touch the original.  This is intended
      behaviour, not an omission.

Failure modes:
    - None raised.  A period whose project ledger does not exist for the
      entry's scope is skipped and listed in ``PropagationPlan.skipped``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace

from reporting_engines.tracer import traced_engine
from reporting_kernel.domain.ledger import (
    ExpenseEntry,
    LedgerScope,
    Periodicity,
    ReportingPeriod,
)
from reporting_kernel.logging_config import get_logger

logger = get_logger("engines.propagation")


def is_eligible(periodicity: Periodicity, diff: int) -> bool:
    """Whether a period ``diff`` months after the origin receives a clone."""
    if diff <= 0:
        return False
    return diff % periodicity.interval_months == 0


def clone_id(origin_id: str, target_month_index: int) -> str:
    """Deterministic id of the clone of ``origin_id`` in a target month."""
    return f"{origin_id}-m{target_month_index}"


@dataclass(frozen=True)
class PropagationTarget:
    """One clone to insert into one period."""

    period_id: str
    month_index: int
    clone: ExpenseEntry


@dataclass(frozen=True)
class PropagationPlan:
    """
    The full batch of clones for one origin entry.

    ``skipped`` lists periods that qualified by date but lack the target
    project ledger.
    """

    origin_id: str
    scope: LedgerScope
    targets: tuple[PropagationTarget, ...] = ()
    skipped: tuple[str, ...] = ()

    @property
    def clone_count(self) -> int:
        return len(self.targets)

    @property
    def period_ids(self) -> tuple[str, ...]:
        return tuple(t.period_id for t in self.targets)


class PropagationEngine:
    """
    Plans and applies recurring-expense propagation.

    Contract:
        ``plan`` is a pure function of its inputs.  ``apply`` returns a new
        period collection; the input collection is never mutated.
    """

    @traced_engine("propagation", "1.0", fingerprint_fields=("entry", "scope"))
    def plan(
        self,
        *,
        entry: ExpenseEntry,
        scope: LedgerScope,
        periods: Sequence[ReportingPeriod],
    ) -> PropagationPlan:
        """Compute the clones for ``entry`` over ``periods``."""
        if not entry.is_recurring or entry.periodicity is None:
            return PropagationPlan(origin_id=entry.id, scope=scope)

        targets: list[PropagationTarget] = []
        skipped: list[str] = []
        for period in periods:
            target_month = period.month_index
            if target_month <= entry.origin_month:
                continue
            if not is_eligible(entry.periodicity, target_month - entry.origin_month):
                continue
            if period.ledger(scope) is None:
                skipped.append(period.id)
                continue
            targets.append(
                PropagationTarget(
                    period_id=period.id,
                    month_index=target_month,
                    clone=replace(
                        entry,
                        id=clone_id(entry.id, target_month),
                        date=period.first_day,
                        cloned_from=entry.id,
                    ),
                )
            )

        plan = PropagationPlan(
            origin_id=entry.id,
            scope=scope,
            targets=tuple(targets),
            skipped=tuple(skipped),
        )
        logger.info(
            "propagation_planned",
            extra={
                "origin_id": entry.id,
                "scope": str(scope),
                "periodicity": entry.periodicity.value,
                "origin_month": entry.origin_month,
                "clone_count": plan.clone_count,
                "skipped_periods": list(plan.skipped),
            },
        )
        return plan

    def apply(
        self,
        plan: PropagationPlan,
        periods: Sequence[ReportingPeriod],
    ) -> tuple[ReportingPeriod, ...]:
        """Insert every planned clone; returns the new collection."""
        by_period = {t.period_id: t for t in plan.targets}
        result: list[ReportingPeriod] = []
        for period in periods:
            target = by_period.get(period.id)
            ledger = period.ledger(plan.scope) if target is not None else None
            if target is None or ledger is None or ledger.find_expense(target.clone.id):
                result.append(period)
                continue
            result.append(
                period.with_ledger(plan.scope, ledger.with_expenses(target.clone))
            )
        return tuple(result)

    def propagate(
        self,
        *,
        entry: ExpenseEntry,
        scope: LedgerScope,
        periods: Sequence[ReportingPeriod],
    ) -> tuple[tuple[ReportingPeriod, ...], PropagationPlan]:
        """Plan and apply in one step."""
        plan = self.plan(entry=entry, scope=scope, periods=periods)
        return self.apply(plan, periods), plan
