"""
Pure domain layer.

Value objects, reporting entities and the clock abstraction with NO
dependencies on the database or I/O.  All domain objects are immutable
and deterministic.
"""

from reporting_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from reporting_kernel.domain.ledger import (
    STARTUP,
    BudgetSnapshot,
    Classification,
    ExpenseEntry,
    Ledger,
    LedgerScope,
    Milestone,
    MilestoneStatus,
    PeriodStatus,
    Periodicity,
    ReportingPeriod,
)
from reporting_kernel.domain.points import PointList
from reporting_kernel.domain.values import CalendarMonth, parse_amount

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "STARTUP",
    "BudgetSnapshot",
    "Classification",
    "ExpenseEntry",
    "Ledger",
    "LedgerScope",
    "Milestone",
    "MilestoneStatus",
    "PeriodStatus",
    "Periodicity",
    "ReportingPeriod",
    "PointList",
    "CalendarMonth",
    "parse_amount",
]
