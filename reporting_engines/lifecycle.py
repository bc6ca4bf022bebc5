"""
reporting_engines.lifecycle -- Deadline-driven lifecycle of a reporting period.

Responsibility:
    Pure functions over ``(period, now)`` that derive the lock state, the
    future state, the human-facing display status and the edit access of
    a reporting period.

Architecture position:
    Engines -- pure calculation layer.  ``now`` is always passed in; the
    ``PeriodLifecycleEvaluator`` convenience wrapper takes an injected
    ``Clock``.

Invariants enforced:
    - Nothing here writes to a period.  The stored status only changes
      through an explicit Submit command.
    - Display mapping is total over (stored status, locked):

        Draft     / open    -> "Draft"
        Draft     / locked  -> "Auto-Submitted"
        Submitted / open    -> "Submitted"
        Submitted / locked  -> "Reviewed"

    - A period is locked strictly after its deadline (23:59:59.999 on the
      last day of the month) and future strictly before its first day.

Failure modes:
    - ``check_editable`` raises PeriodLockedError or FuturePeriodError.
      Callers that want a non-raising answer use ``evaluate_access``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from reporting_kernel.domain.clock import Clock, SystemClock
from reporting_kernel.domain.ledger import PeriodStatus, ReportingPeriod
from reporting_kernel.exceptions import FuturePeriodError, PeriodLockedError


class DisplayStatus(str, Enum):
    """Status shown to people. Never stored."""

    DRAFT = "Draft"
    AUTO_SUBMITTED = "Auto-Submitted"
    SUBMITTED = "Submitted"
    REVIEWED = "Reviewed"


class EditAccess(str, Enum):
    EDITABLE = "editable"
    READ_ONLY = "read_only"  # deadline passed
    NOT_OPEN = "not_open"  # month not started


_DISPLAY = {
    (PeriodStatus.DRAFT, False): DisplayStatus.DRAFT,
    (PeriodStatus.DRAFT, True): DisplayStatus.AUTO_SUBMITTED,
    (PeriodStatus.SUBMITTED, False): DisplayStatus.SUBMITTED,
    (PeriodStatus.SUBMITTED, True): DisplayStatus.REVIEWED,
}


def _local(now: datetime) -> datetime:
    # Period boundaries are naive local times
    if now.tzinfo is not None:
        return now.astimezone().replace(tzinfo=None)
    return now


def _format_deadline(period: ReportingPeriod) -> str:
    return f"{period.deadline:%d %B %Y} 11:59 PM"


def is_locked(period: ReportingPeriod, now: datetime) -> bool:
    return _local(now) > period.deadline


def is_future(period: ReportingPeriod, now: datetime) -> bool:
    return _local(now) < period.month.opens_at


def display_status(period: ReportingPeriod, now: datetime) -> DisplayStatus:
    return _DISPLAY[(period.status, is_locked(period, now))]


@dataclass(frozen=True)
class PeriodAccess:
    """Result of asking to open a period for editing."""

    period_id: str
    access: EditAccess
    display_status: DisplayStatus
    message: str

    @property
    def is_editable(self) -> bool:
        return self.access is EditAccess.EDITABLE


def evaluate_access(period: ReportingPeriod, now: datetime) -> PeriodAccess:
    """
    Decide whether ``period`` may be edited at ``now``.

    Future periods are refused with guidance on when they open; locked
    periods are readable but not editable.
    """
    status = display_status(period, now)
    if is_future(period, now):
        return PeriodAccess(
            period_id=period.id,
            access=EditAccess.NOT_OPEN,
            display_status=status,
            message=(
                f"The {period.month_label} report is not open yet. "
                f"It opens for editing on {period.first_day:%d %B %Y}."
            ),
        )
    if is_locked(period, now):
        return PeriodAccess(
            period_id=period.id,
            access=EditAccess.READ_ONLY,
            display_status=status,
            message=(
                f"The deadline for {period.month_label} "
                f"({_format_deadline(period)}) has passed. "
                "The report is read-only."
            ),
        )
    return PeriodAccess(
        period_id=period.id,
        access=EditAccess.EDITABLE,
        display_status=status,
        message=f"Editable until {_format_deadline(period)}.",
    )


def check_editable(period: ReportingPeriod, now: datetime) -> None:
    """
    Raise if ``period`` cannot be edited at ``now``.

    Raises:
        FuturePeriodError: the month has not started.
        PeriodLockedError: the deadline has passed.
    """
    if is_future(period, now):
        raise FuturePeriodError(period.id, period.first_day.isoformat())
    if is_locked(period, now):
        raise PeriodLockedError(period.id, period.deadline.isoformat())


class PeriodLifecycleEvaluator:
    """Clock-bound facade over the lifecycle functions."""

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()

    @property
    def clock(self) -> Clock:
        return self._clock

    def now(self) -> datetime:
        return self._clock.now()

    def is_locked(self, period: ReportingPeriod) -> bool:
        return is_locked(period, self.now())

    def is_future(self, period: ReportingPeriod) -> bool:
        return is_future(period, self.now())

    def display_status(self, period: ReportingPeriod) -> DisplayStatus:
        return display_status(period, self.now())

    def evaluate_access(self, period: ReportingPeriod) -> PeriodAccess:
        return evaluate_access(period, self.now())
