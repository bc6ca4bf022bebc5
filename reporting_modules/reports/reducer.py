"""
Report reducer (``reporting_modules.reports.reducer``).

Responsibility
--------------
Pure ``(periods, command, now) -> MutationResult`` transitions for every
founder action (expenses, points, milestones, submit) and for reviewer
remarks.  Recurring expenses are propagated through
``PropagationEngine`` in the same transition.

Architecture position
---------------------
**Modules layer** -- no I/O, no clock access, no shared state.  The
service owns persistence and publishing.

Invariants enforced
-------------------
* Copy-on-write: the input tuple is never mutated; a new tuple is built
  and returned only when the command is APPLIED.
* Propagation for an AddExpense is planned and applied as one batch
  before the result is returned; no caller can observe a collection in
  which only some future periods received their clone.
* Stored status changes only through ``Submit``.
* Ledger edits on locked or future periods are DISALLOWED.

Failure modes
-------------
Handlers raise typed ``ReportingError`` subclasses; ``apply`` maps them:

* ``ValidationError``  -> REJECTED (amount, category, funding source ...)
* ``PeriodLockedError`` / ``FuturePeriodError``  -> DISALLOWED
* ``PeriodNotFoundError`` / ``EntryNotFoundError`` / ``ScopeNotFoundError``
  -> NOT_FOUND

Unparsable amounts are rejected, never coerced to zero.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import date, datetime
from uuid import uuid4

from reporting_config.schema import ProgrammeConfig
from reporting_engines.lifecycle import check_editable, is_future, is_locked
from reporting_engines.propagation import PropagationEngine
from reporting_kernel.domain.ledger import (
    Classification,
    ExpenseEntry,
    Ledger,
    LedgerScope,
    Milestone,
    PeriodStatus,
    Periodicity,
    ReportingPeriod,
)
from reporting_kernel.domain.values import parse_amount
from reporting_kernel.exceptions import (
    EntryNotFoundError,
    FuturePeriodError,
    InvalidCategoryError,
    InvalidFieldValueError,
    InvalidPeriodicityError,
    LedgerError,
    MissingFieldError,
    PeriodLockedError,
    PeriodNotFoundError,
    ReportingError,
    ScopeNotFoundError,
    UnknownFundingSourceError,
    ValidationError,
)
from reporting_kernel.logging_config import get_logger
from reporting_modules.reports.commands import (
    AddExpense,
    AddMilestone,
    AddPoint,
    Command,
    ExpenseInput,
    PointSection,
    RecordReviewerRemarks,
    RemoveExpense,
    RemoveMilestone,
    RemovePoint,
    Submit,
)
from reporting_modules.reports.models import MutationResult, MutationStatus

logger = get_logger("modules.reports.reducer")


def _new_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class _Outcome:
    """What a handler produced before it is wrapped into a MutationResult."""

    periods: tuple[ReportingPeriod, ...]
    status: MutationStatus = MutationStatus.APPLIED
    message: str | None = None
    entry_id: str | None = None
    propagation: object | None = None


_STATUS_BY_ERROR: tuple[tuple[type[ReportingError], MutationStatus], ...] = (
    (ValidationError, MutationStatus.REJECTED),
    (PeriodLockedError, MutationStatus.DISALLOWED),
    (FuturePeriodError, MutationStatus.DISALLOWED),
    (PeriodNotFoundError, MutationStatus.NOT_FOUND),
    (LedgerError, MutationStatus.NOT_FOUND),
)


def _status_for(error: ReportingError) -> MutationStatus | None:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return None


class ReportReducer:
    """
    Applies commands to a period collection.

    Contract:
        ``apply`` never raises for validation, lifecycle or lookup
        failures; they come back as a non-APPLIED ``MutationResult`` with
        the error ``code``.  Any other exception is a programming error
        and propagates.
    """

    def __init__(
        self,
        config: ProgrammeConfig,
        id_factory: Callable[[], str] | None = None,
        propagation: PropagationEngine | None = None,
    ):
        self._config = config
        self._new_id = id_factory or _new_id
        self._propagation = propagation or PropagationEngine()
        self._handlers: Mapping[type, Callable[..., _Outcome]] = {
            AddExpense: self._add_expense,
            RemoveExpense: self._remove_expense,
            AddPoint: self._add_point,
            RemovePoint: self._remove_point,
            AddMilestone: self._add_milestone,
            RemoveMilestone: self._remove_milestone,
            Submit: self._submit,
            RecordReviewerRemarks: self._record_remarks,
        }

    def apply(
        self,
        periods: Sequence[ReportingPeriod],
        command: Command,
        now: datetime,
    ) -> MutationResult:
        """Apply ``command`` at wall-clock time ``now``."""
        snapshot = tuple(periods)
        name = type(command).__name__
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command: {name}")

        try:
            outcome = handler(snapshot, command, now)
        except ReportingError as exc:
            status = _status_for(exc)
            if status is None:
                raise
            return MutationResult(
                status=status,
                command=name,
                periods=snapshot,
                code=exc.code,
                message=str(exc),
            )

        return MutationResult(
            status=outcome.status,
            command=name,
            periods=outcome.periods if outcome.status is MutationStatus.APPLIED else snapshot,
            message=outcome.message,
            entry_id=outcome.entry_id,
            propagation=outcome.propagation,
        )

    # =========================================================================
    # Lookups
    # =========================================================================

    @staticmethod
    def _locate(
        periods: tuple[ReportingPeriod, ...], period_id: str
    ) -> tuple[int, ReportingPeriod]:
        for position, period in enumerate(periods):
            if period.id == period_id:
                return position, period
        raise PeriodNotFoundError(period_id)

    def _editable_ledger(
        self,
        periods: tuple[ReportingPeriod, ...],
        period_id: str,
        scope: LedgerScope,
        now: datetime,
    ) -> tuple[int, ReportingPeriod, Ledger]:
        position, period = self._locate(periods, period_id)
        check_editable(period, now)
        ledger = period.ledger(scope)
        if ledger is None:
            raise ScopeNotFoundError(period_id, scope.project_id or "")
        return position, period, ledger

    @staticmethod
    def _replace_at(
        periods: tuple[ReportingPeriod, ...], position: int, period: ReportingPeriod
    ) -> tuple[ReportingPeriod, ...]:
        return periods[:position] + (period,) + periods[position + 1:]

    # =========================================================================
    # Expenses
    # =========================================================================

    def build_entry(
        self,
        data: ExpenseInput,
        period: ReportingPeriod,
        now: datetime,
    ) -> ExpenseEntry:
        """
        Validate ``data`` and build the original entry for ``period``.

        Raises:
            MissingFieldError, InvalidAmountError, InvalidFieldValueError,
            InvalidCategoryError, UnknownFundingSourceError,
            InvalidPeriodicityError.
        """
        item = (data.item or "").strip()
        if not item:
            raise MissingFieldError("item")
        amount = parse_amount(data.amount)

        try:
            classification = Classification(data.classification)
        except ValueError:
            raise InvalidFieldValueError("classification", data.classification) from None

        vocabulary = (
            self._config.recurring_categories
            if classification is Classification.RECURRING
            else self._config.one_time_categories
        )
        category = data.category or self._config.default_category
        if category not in vocabulary:
            raise InvalidCategoryError(category, classification.value)

        funding_source = data.funding_source or self._config.default_funding_source
        if funding_source not in self._config.funding_source_codes:
            raise UnknownFundingSourceError(funding_source)

        periodicity = None
        if classification is Classification.RECURRING:
            try:
                periodicity = Periodicity(data.periodicity or Periodicity.MONTHLY)
            except ValueError:
                raise InvalidPeriodicityError(str(data.periodicity)) from None

        return ExpenseEntry(
            id=self._new_id(),
            item=item,
            amount=amount,
            classification=classification,
            category=category,
            funding_source=funding_source,
            periodicity=periodicity,
            origin_month=period.month_index,
            date=now.date(),
        )

    def _add_expense(
        self, periods: tuple[ReportingPeriod, ...], command: AddExpense, now: datetime
    ) -> _Outcome:
        position, period, ledger = self._editable_ledger(
            periods, command.period_id, command.scope, now
        )
        entry = self.build_entry(command.input, period, now)
        updated = self._replace_at(
            periods, position, period.with_ledger(command.scope, ledger.with_expenses(entry))
        )

        plan = None
        if entry.is_recurring:
            updated, plan = self._propagation.propagate(
                entry=entry, scope=command.scope, periods=updated
            )

        logger.info(
            "expense_added",
            extra={
                "entry_id": entry.id,
                "scope": str(command.scope),
                "amount": entry.amount,
                "classification": entry.classification.value,
                "funding_source": entry.funding_source,
                "clone_count": plan.clone_count if plan else 0,
            },
        )
        return _Outcome(periods=updated, entry_id=entry.id, propagation=plan)

    def _remove_expense(
        self, periods: tuple[ReportingPeriod, ...], command: RemoveExpense, now: datetime
    ) -> _Outcome:
        position, period, ledger = self._editable_ledger(
            periods, command.period_id, command.scope, now
        )
        if ledger.find_expense(command.entry_id) is None:
            raise EntryNotFoundError(command.period_id, command.entry_id)
        # Clones in other periods are independent and stay where they are
        updated = period.with_ledger(command.scope, ledger.without_expense(command.entry_id))
        return _Outcome(
            periods=self._replace_at(periods, position, updated),
            entry_id=command.entry_id,
        )

    # =========================================================================
    # Points
    # =========================================================================

    @staticmethod
    def _section(value: PointSection | str) -> str:
        try:
            return PointSection(value).value
        except ValueError:
            raise InvalidFieldValueError("section", value) from None

    def _add_point(
        self, periods: tuple[ReportingPeriod, ...], command: AddPoint, now: datetime
    ) -> _Outcome:
        section = self._section(command.section)
        position, period, ledger = self._editable_ledger(
            periods, command.period_id, command.scope, now
        )
        points = ledger.points(section)
        added = points.add(command.text)
        if added is points:
            return _Outcome(
                periods=periods,
                status=MutationStatus.NO_OP,
                message="Blank text is not added.",
            )
        updated = period.with_ledger(command.scope, ledger.with_points(section, added))
        return _Outcome(periods=self._replace_at(periods, position, updated))

    def _remove_point(
        self, periods: tuple[ReportingPeriod, ...], command: RemovePoint, now: datetime
    ) -> _Outcome:
        section = self._section(command.section)
        position, period, ledger = self._editable_ledger(
            periods, command.period_id, command.scope, now
        )
        try:
            remaining = ledger.points(section).remove_at(command.index)
        except IndexError:
            raise EntryNotFoundError(command.period_id, f"{section}[{command.index}]") from None
        updated = period.with_ledger(command.scope, ledger.with_points(section, remaining))
        return _Outcome(periods=self._replace_at(periods, position, updated))

    # =========================================================================
    # Milestones
    # =========================================================================

    @staticmethod
    def _deadline(value: date | str | None) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not value or not str(value).strip():
            raise MissingFieldError("deadline")
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            raise InvalidFieldValueError("deadline", value) from None

    def _add_milestone(
        self, periods: tuple[ReportingPeriod, ...], command: AddMilestone, now: datetime
    ) -> _Outcome:
        title = (command.title or "").strip()
        if not title:
            raise MissingFieldError("title")
        deadline = self._deadline(command.deadline)
        position, period, ledger = self._editable_ledger(
            periods, command.period_id, command.scope, now
        )
        description = (command.description or "").strip() or None
        milestone = Milestone(
            id=self._new_id(), title=title, deadline=deadline, description=description
        )
        updated = period.with_ledger(command.scope, ledger.with_milestone(milestone))
        return _Outcome(
            periods=self._replace_at(periods, position, updated), entry_id=milestone.id
        )

    def _remove_milestone(
        self, periods: tuple[ReportingPeriod, ...], command: RemoveMilestone, now: datetime
    ) -> _Outcome:
        position, period, ledger = self._editable_ledger(
            periods, command.period_id, command.scope, now
        )
        if ledger.find_milestone(command.milestone_id) is None:
            raise EntryNotFoundError(command.period_id, command.milestone_id)
        updated = period.with_ledger(
            command.scope, ledger.without_milestone(command.milestone_id)
        )
        return _Outcome(
            periods=self._replace_at(periods, position, updated),
            entry_id=command.milestone_id,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _submit(
        self, periods: tuple[ReportingPeriod, ...], command: Submit, now: datetime
    ) -> _Outcome:
        position, period = self._locate(periods, command.period_id)
        check_editable(period, now)
        if period.status is PeriodStatus.SUBMITTED:
            return _Outcome(
                periods=periods,
                status=MutationStatus.NO_OP,
                message="Report already submitted; it stays editable until the deadline.",
            )
        updated = replace(period, status=PeriodStatus.SUBMITTED)
        logger.info(
            "period_submitted",
            extra={"month_label": period.month_label, "deadline": period.deadline},
        )
        return _Outcome(periods=self._replace_at(periods, position, updated))

    def _record_remarks(
        self,
        periods: tuple[ReportingPeriod, ...],
        command: RecordReviewerRemarks,
        now: datetime,
    ) -> _Outcome:
        # Reviewers comment on any period that has opened, locked or not
        position, period = self._locate(periods, command.period_id)
        if is_future(period, now):
            raise FuturePeriodError(period.id, period.first_day.isoformat())
        remarks = (command.remarks or "").strip() or None
        if remarks == period.reviewer_remarks:
            return _Outcome(periods=periods, status=MutationStatus.NO_OP)
        updated = replace(period, reviewer_remarks=remarks)
        logger.info(
            "reviewer_remarks_recorded",
            extra={"locked": is_locked(period, now), "cleared": remarks is None},
        )
        return _Outcome(periods=self._replace_at(periods, position, updated))
