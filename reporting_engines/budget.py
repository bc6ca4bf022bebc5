"""
reporting_engines.budget -- Period totals and cumulative spend against caps.

Responsibility:
    Roll up expense entries of both ledger levels into per-period RE / NRE
    totals with a startup/project breakdown, and accumulate spend per
    funding source across periods against the configured caps.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Read-side projection:
    never mutates the period collection.

Invariants enforced:
    - Each entry is counted exactly once: startup ledger plus every project
      ledger, no ledger visited twice.  Clones are independent entries and
      count in the period that holds them.
    - ``total = total_recurring + total_one_time`` for every period.
    - ``cumulative[source]`` equals the sum over periods of that source's
      spend; changing one entry by delta changes it by exactly delta.
    - Remaining budget is reported as a magnitude plus an ``overbudget``
      flag.  It is never clamped to zero.

Failure modes:
    - None.  A funding source found on entries but absent from the cap
      table is reported with a cap of zero (and therefore overbudget).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from reporting_engines.tracer import traced_engine
from reporting_kernel.domain.ledger import (
    Classification,
    ExpenseEntry,
    Ledger,
    ReportingPeriod,
)
from reporting_kernel.logging_config import get_logger

logger = get_logger("engines.budget")

ZERO = Decimal("0")
STARTUP_LEVEL = "Startup Level"


@dataclass(frozen=True)
class BreakdownLine:
    """Total spend of one ledger in one period."""

    name: str
    project_id: str | None
    total: Decimal


@dataclass(frozen=True)
class PeriodBudget:
    """One row of the monthly budget sheet."""

    period_id: str
    month_label: str
    status: str
    total_recurring: Decimal
    total_one_time: Decimal
    breakdown: tuple[BreakdownLine, ...] = ()
    by_funding_source: Mapping[str, Decimal] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        return self.total_recurring + self.total_one_time


@dataclass(frozen=True)
class FundingPosition:
    """Cumulative spend of one funding source against its cap."""

    funding_source: str
    cap: Decimal
    cumulative: Decimal
    cumulative_recurring: Decimal = ZERO
    cumulative_one_time: Decimal = ZERO
    recurring_cap: Decimal | None = None
    one_time_cap: Decimal | None = None

    @property
    def balance(self) -> Decimal:
        """Signed ``cap - cumulative``; negative means overbudget."""
        return self.cap - self.cumulative

    @property
    def remaining(self) -> Decimal:
        """Magnitude of the balance; read together with ``overbudget``."""
        return abs(self.balance)

    @property
    def overbudget(self) -> bool:
        return self.balance < ZERO

    @property
    def utilization_percent(self) -> Decimal:
        if self.cap == ZERO:
            return ZERO
        return (self.cumulative / self.cap * Decimal("100")).quantize(Decimal("0.01"))

    @property
    def recurring_overbudget(self) -> bool:
        return self.recurring_cap is not None and self.cumulative_recurring > self.recurring_cap

    @property
    def one_time_overbudget(self) -> bool:
        return self.one_time_cap is not None and self.cumulative_one_time > self.one_time_cap


@dataclass(frozen=True)
class ProjectTotal:
    """Spend of one project across all periods."""

    project_id: str
    name: str
    total: Decimal


@dataclass(frozen=True)
class BudgetView:
    """Read-only aggregate over a period collection."""

    per_period: tuple[PeriodBudget, ...]
    cumulative: Mapping[str, FundingPosition]
    per_project: tuple[ProjectTotal, ...] = ()

    @property
    def grand_total(self) -> Decimal:
        return sum((p.total for p in self.per_period), ZERO)

    def period(self, period_id: str) -> PeriodBudget | None:
        for row in self.per_period:
            if row.period_id == period_id:
                return row
        return None


def _sum(entries: Sequence[ExpenseEntry], classification: Classification | None = None) -> Decimal:
    return sum(
        (
            e.amount
            for e in entries
            if classification is None or e.classification is classification
        ),
        ZERO,
    )


def ledger_total(ledger: Ledger) -> Decimal:
    return _sum(ledger.expenses)


class BudgetAggregator:
    """
    Computes budget views from a period collection.

    Contract:
        ``caps`` is the funding-cap table.  ``project_names`` is the project
        registry used to label breakdown lines; unknown ids fall back to the
        id itself.
    """

    def __init__(
        self,
        caps: Mapping[str, Decimal],
        project_names: Mapping[str, str] | None = None,
        recurring_caps: Mapping[str, Decimal] | None = None,
        one_time_caps: Mapping[str, Decimal] | None = None,
    ):
        self._caps = dict(caps)
        self._project_names = dict(project_names or {})
        self._recurring_caps = dict(recurring_caps or {})
        self._one_time_caps = dict(one_time_caps or {})

    @classmethod
    def from_config(cls, config) -> BudgetAggregator:
        """Build from a ``reporting_config.ProgrammeConfig``."""
        return cls(
            caps=config.caps,
            project_names=config.project_names,
            recurring_caps={
                fs.code: fs.sanctioned_recurring
                for fs in config.funding_sources
                if fs.sanctioned_recurring is not None
            },
            one_time_caps={
                fs.code: fs.sanctioned_one_time
                for fs in config.funding_sources
                if fs.sanctioned_one_time is not None
            },
        )

    def project_name(self, project_id: str) -> str:
        return self._project_names.get(project_id, project_id)

    def period_budget(self, period: ReportingPeriod) -> PeriodBudget:
        entries = period.all_expenses()
        breakdown = [BreakdownLine(STARTUP_LEVEL, None, ledger_total(period.startup_ledger))]
        breakdown.extend(
            BreakdownLine(self.project_name(pid), pid, ledger_total(ledger))
            for pid, ledger in period.project_ledgers
        )
        by_source: dict[str, Decimal] = {}
        for entry in entries:
            by_source[entry.funding_source] = by_source.get(entry.funding_source, ZERO) + entry.amount

        return PeriodBudget(
            period_id=period.id,
            month_label=period.month_label,
            status=period.status.value,
            total_recurring=_sum(entries, Classification.RECURRING),
            total_one_time=_sum(entries, Classification.ONE_TIME),
            breakdown=tuple(breakdown),
            by_funding_source=by_source,
        )

    @traced_engine("budget", "1.0")
    def aggregate(self, *, periods: Sequence[ReportingPeriod]) -> BudgetView:
        """Per-period rows, cumulative funding positions and project totals."""
        per_period = tuple(self.period_budget(p) for p in periods)

        totals: dict[str, dict[Classification, Decimal]] = {
            code: {Classification.RECURRING: ZERO, Classification.ONE_TIME: ZERO}
            for code in self._caps
        }
        project_totals: dict[str, Decimal] = {}
        for period in periods:
            for entry in period.all_expenses():
                bucket = totals.setdefault(
                    entry.funding_source,
                    {Classification.RECURRING: ZERO, Classification.ONE_TIME: ZERO},
                )
                bucket[entry.classification] += entry.amount
            for pid, ledger in period.project_ledgers:
                project_totals[pid] = project_totals.get(pid, ZERO) + ledger_total(ledger)

        cumulative = {
            code: FundingPosition(
                funding_source=code,
                cap=self._caps.get(code, ZERO),
                cumulative=split[Classification.RECURRING] + split[Classification.ONE_TIME],
                cumulative_recurring=split[Classification.RECURRING],
                cumulative_one_time=split[Classification.ONE_TIME],
                recurring_cap=self._recurring_caps.get(code),
                one_time_cap=self._one_time_caps.get(code),
            )
            for code, split in totals.items()
        }

        overbudget = [code for code, pos in cumulative.items() if pos.overbudget]
        if overbudget:
            logger.warning("funding_overbudget", extra={"funding_sources": overbudget})

        return BudgetView(
            per_period=per_period,
            cumulative=cumulative,
            per_project=tuple(
                ProjectTotal(pid, self.project_name(pid), total)
                for pid, total in project_totals.items()
            ),
        )
