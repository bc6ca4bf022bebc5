"""
Mutation commands for the reports module.

Each command is a frozen value naming one user action against the period
collection.  Commands carry raw user input (amount as typed, category as
selected); validation happens in the reducer, not here.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum

from reporting_config.schema import DEFAULT_CATEGORY
from reporting_kernel.domain.ledger import (
    STARTUP,
    Classification,
    LedgerScope,
    Periodicity,
)


class PointSection(str, Enum):
    HIGHLIGHTS = "highlights"
    RISKS = "risks"


@dataclass(frozen=True)
class ExpenseInput:
    """
    An in-progress expense form.

    Mirrors what a founder fills in before pressing "add": the amount is
    kept as typed.  Switching classification resets the category to the
    default of the new vocabulary.
    """

    item: str = ""
    amount: str | int | Decimal = ""
    classification: Classification | str = Classification.ONE_TIME
    category: str = DEFAULT_CATEGORY
    funding_source: str | None = None
    periodicity: Periodicity | str | None = None

    def with_classification(self, classification: Classification | str) -> ExpenseInput:
        """Switch classification; category resets, periodicity follows."""
        classification = Classification(classification)
        return replace(
            self,
            classification=classification,
            category=DEFAULT_CATEGORY,
            periodicity=(
                Periodicity.MONTHLY
                if classification is Classification.RECURRING
                else None
            ),
        )

    def with_periodicity(self, periodicity: Periodicity) -> ExpenseInput:
        return replace(self, periodicity=periodicity)


@dataclass(frozen=True)
class AddExpense:
    period_id: str
    input: ExpenseInput
    scope: LedgerScope = STARTUP


@dataclass(frozen=True)
class RemoveExpense:
    period_id: str
    entry_id: str
    scope: LedgerScope = STARTUP


@dataclass(frozen=True)
class AddPoint:
    period_id: str
    section: PointSection | str
    text: str
    scope: LedgerScope = STARTUP


@dataclass(frozen=True)
class RemovePoint:
    period_id: str
    section: PointSection | str
    index: int
    scope: LedgerScope = STARTUP


@dataclass(frozen=True)
class AddMilestone:
    period_id: str
    title: str
    deadline: date | str | None
    description: str | None = None
    scope: LedgerScope = STARTUP


@dataclass(frozen=True)
class RemoveMilestone:
    period_id: str
    milestone_id: str
    scope: LedgerScope = STARTUP


@dataclass(frozen=True)
class Submit:
    period_id: str


@dataclass(frozen=True)
class RecordReviewerRemarks:
    """Issued by the reviewer collaborator, not by founders."""

    period_id: str
    remarks: str | None


Command = (
    AddExpense
    | RemoveExpense
    | AddPoint
    | RemovePoint
    | AddMilestone
    | RemoveMilestone
    | Submit
    | RecordReviewerRemarks
)
