"""
Reports Module Result Models (``reporting_modules.reports.models``).

Responsibility
--------------
Frozen value objects returned to callers of the reports service: the
outcome of a mutation and its status vocabulary.

Invariants enforced
-------------------
* ``periods`` on a non-APPLIED result is the unchanged input collection.
* ``is_success`` is True only for APPLIED and NO_OP.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from reporting_engines.propagation import PropagationPlan
from reporting_kernel.domain.ledger import ReportingPeriod


class MutationStatus(str, Enum):
    """Outcome of one mutation command."""

    APPLIED = "applied"
    NO_OP = "no_op"  # accepted, nothing to change (blank point, re-submit)
    REJECTED = "rejected"  # validation failure
    DISALLOWED = "disallowed"  # locked or future period
    NOT_FOUND = "not_found"  # unknown period, entry, scope or index


@dataclass(frozen=True)
class MutationResult:
    """Result of applying one command to the period collection."""

    status: MutationStatus
    command: str
    periods: tuple[ReportingPeriod, ...]
    code: str | None = None
    message: str | None = None
    entry_id: str | None = None
    propagation: PropagationPlan | None = None

    @property
    def is_success(self) -> bool:
        return self.status in (MutationStatus.APPLIED, MutationStatus.NO_OP)

    @property
    def changed(self) -> bool:
        return self.status is MutationStatus.APPLIED
