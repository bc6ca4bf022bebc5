"""
Ledger -- Reporting-period entities.

Responsibility:
    Frozen value objects for the monthly reporting graph: expense entries,
    milestones, the per-scope ledger, and the reporting period that owns
    one startup-level ledger plus one ledger per project.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.  Consumed by the pure engines
    (propagation, lifecycle, budget) and by the reports module reducer.

Invariants enforced:
    - All entities are ``frozen=True``; every change produces a new object
      (copy-on-write), so a published collection is never mutated.
    - Amounts are ``Decimal``.
    - ``periodicity`` is set iff the entry is Recurring; a Recurring entry
      without one defaults to Monthly, a OneTime entry drops it.
    - ``classification`` and ``periodicity`` are coerced to their enums, so
      entries built from stored text compare by identity.
    - The deadline of a period is derived from its month label; it is
      never stored.
    - ``status`` only ever holds Draft or Submitted.  "Reviewed" and
      "Auto-Submitted" are display labels computed by the lifecycle
      evaluator and have no member here.

Failure modes:
    - InvalidMonthLabelError when a period is built with a bad label.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from reporting_kernel.domain.points import PointList
from reporting_kernel.domain.values import CalendarMonth


class Classification(str, Enum):
    """Whether an expense recurs (RE) or is a one-time cost (NRE)."""

    RECURRING = "RE"
    ONE_TIME = "NRE"


class Periodicity(str, Enum):
    """Recurrence interval of a Recurring expense."""

    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    YEARLY = "Yearly"

    @property
    def interval_months(self) -> int:
        return _INTERVALS[self]


_INTERVALS = {
    Periodicity.MONTHLY: 1,
    Periodicity.QUARTERLY: 3,
    Periodicity.YEARLY: 12,
}


class PeriodStatus(str, Enum):
    """Stored lifecycle status. The only values a user can set."""

    DRAFT = "Draft"
    SUBMITTED = "Submitted"


class MilestoneStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    DELAYED = "Delayed"


@dataclass(frozen=True)
class ExpenseEntry:
    """
    A single monetary record in a ledger.

    ``origin_month`` is the absolute month index of the period where the
    entry was first created.  Clones keep it unchanged so that the
    recurrence rule stays anchored to the true origin.
    """

    id: str
    item: str
    amount: Decimal
    classification: Classification
    category: str
    funding_source: str
    origin_month: int
    date: date
    periodicity: Periodicity | None = None
    cloned_from: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "classification", Classification(self.classification))
        if self.classification is Classification.ONE_TIME:
            object.__setattr__(self, "periodicity", None)
        else:
            object.__setattr__(
                self, "periodicity", Periodicity(self.periodicity or Periodicity.MONTHLY)
            )

    @property
    def is_recurring(self) -> bool:
        return self.classification is Classification.RECURRING

    @property
    def is_clone(self) -> bool:
        return self.cloned_from is not None


@dataclass(frozen=True)
class Milestone:
    """A scheduled deliverable reported in a ledger."""

    id: str
    title: str
    deadline: date
    description: str | None = None
    status: MilestoneStatus = MilestoneStatus.PENDING


@dataclass(frozen=True)
class LedgerScope:
    """
    Addresses one ledger inside a period.

    ``project_id=None`` is the startup-level ledger.
    """

    project_id: str | None = None

    @classmethod
    def startup(cls) -> LedgerScope:
        return cls(None)

    @classmethod
    def project(cls, project_id: str) -> LedgerScope:
        return cls(project_id)

    @property
    def is_startup(self) -> bool:
        return self.project_id is None

    def __str__(self) -> str:
        return "startup" if self.project_id is None else f"project:{self.project_id}"


STARTUP = LedgerScope.startup()


@dataclass(frozen=True)
class Ledger:
    """Expenses, milestones and bullet points of one scope in one period."""

    highlights: PointList = field(default_factory=PointList)
    risks: PointList = field(default_factory=PointList)
    milestones: tuple[Milestone, ...] = ()
    expenses: tuple[ExpenseEntry, ...] = ()

    def find_expense(self, entry_id: str) -> ExpenseEntry | None:
        for entry in self.expenses:
            if entry.id == entry_id:
                return entry
        return None

    def with_expenses(self, *entries: ExpenseEntry) -> Ledger:
        return replace(self, expenses=self.expenses + entries)

    def without_expense(self, entry_id: str) -> Ledger:
        return replace(
            self, expenses=tuple(e for e in self.expenses if e.id != entry_id)
        )

    def find_milestone(self, milestone_id: str) -> Milestone | None:
        for milestone in self.milestones:
            if milestone.id == milestone_id:
                return milestone
        return None

    def with_milestone(self, milestone: Milestone) -> Ledger:
        return replace(self, milestones=self.milestones + (milestone,))

    def without_milestone(self, milestone_id: str) -> Ledger:
        return replace(
            self,
            milestones=tuple(m for m in self.milestones if m.id != milestone_id),
        )

    def points(self, section: str) -> PointList:
        if section == "highlights":
            return self.highlights
        if section == "risks":
            return self.risks
        raise ValueError(f"Unknown point section: {section!r}")

    def with_points(self, section: str, points: PointList) -> Ledger:
        if section not in ("highlights", "risks"):
            raise ValueError(f"Unknown point section: {section!r}")
        return replace(self, **{section: points})


@dataclass(frozen=True)
class BudgetSnapshot:
    """Externally supplied budget figures. Display only."""

    total_sanctioned: Decimal | None = None
    utilized: Decimal | None = None
    percentage: Decimal | None = None
    status: str | None = None  # On Track, Overrun, Underspent


@dataclass(frozen=True)
class ReportingPeriod:
    """
    One calendar month of reporting.

    ``project_ledgers`` is an ordered tuple of ``(project_id, Ledger)``
    pairs; the order is the order projects are listed in the report.
    """

    id: str
    month_label: str
    status: PeriodStatus = PeriodStatus.DRAFT
    startup_ledger: Ledger = field(default_factory=Ledger)
    project_ledgers: tuple[tuple[str, Ledger], ...] = ()
    budget_snapshot: BudgetSnapshot | None = None
    reviewer_remarks: str | None = None

    def __post_init__(self) -> None:
        # Validates the label; raises InvalidMonthLabelError
        CalendarMonth.parse(self.month_label)

    @property
    def month(self) -> CalendarMonth:
        return CalendarMonth.parse(self.month_label)

    @property
    def month_index(self) -> int:
        return self.month.index

    @property
    def first_day(self) -> date:
        return self.month.first_day

    @property
    def deadline(self) -> datetime:
        return self.month.deadline

    @property
    def project_ids(self) -> tuple[str, ...]:
        return tuple(pid for pid, _ in self.project_ledgers)

    def ledger(self, scope: LedgerScope) -> Ledger | None:
        """The ledger for ``scope``, or None when the project is absent."""
        if scope.is_startup:
            return self.startup_ledger
        for pid, ledger in self.project_ledgers:
            if pid == scope.project_id:
                return ledger
        return None

    def ledgers(self) -> tuple[tuple[LedgerScope, Ledger], ...]:
        """All ledgers, startup first."""
        return ((STARTUP, self.startup_ledger),) + tuple(
            (LedgerScope.project(pid), ledger) for pid, ledger in self.project_ledgers
        )

    def with_ledger(self, scope: LedgerScope, ledger: Ledger) -> ReportingPeriod:
        """
        Replace the ledger for ``scope``.

        Raises:
            KeyError: if ``scope`` names a project without a ledger here.
        """
        if scope.is_startup:
            return replace(self, startup_ledger=ledger)
        if scope.project_id not in self.project_ids:
            raise KeyError(scope.project_id)
        return replace(
            self,
            project_ledgers=tuple(
                (pid, ledger if pid == scope.project_id else existing)
                for pid, existing in self.project_ledgers
            ),
        )

    def all_expenses(self) -> tuple[ExpenseEntry, ...]:
        """Every expense entry across both ledger levels, startup first."""
        result: tuple[ExpenseEntry, ...] = self.startup_ledger.expenses
        for _, ledger in self.project_ledgers:
            result += ledger.expenses
        return result
