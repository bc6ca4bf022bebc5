"""
Tests for the ReportReducer.

Covers:
- AddExpense validation (amount, category, funding source, periodicity)
- Propagation as part of AddExpense
- Point and milestone commands
- Lifecycle gating (locked and future periods)
- Submit and reviewer remarks
- Copy-on-write: input collection never mutated, unchanged on failure
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from reporting_kernel.domain.ledger import (
    STARTUP,
    Classification,
    LedgerScope,
    PeriodStatus,
    Periodicity,
)
from reporting_modules.reports.commands import (
    AddExpense,
    AddMilestone,
    AddPoint,
    ExpenseInput,
    PointSection,
    RecordReviewerRemarks,
    RemoveExpense,
    RemoveMilestone,
    RemovePoint,
    Submit,
)
from reporting_modules.reports.models import MutationStatus
from reporting_modules.reports.reducer import ReportReducer
from tests.conftest import OCTOBER_NOW, make_period

P1 = LedgerScope.project("p1")


def _cloud_hosting(**overrides):
    values = dict(
        item="Cloud Hosting",
        amount="5000",
        classification=Classification.RECURRING,
        category="Software & Cloud",
        periodicity=Periodicity.MONTHLY,
    )
    values.update(overrides)
    return ExpenseInput(**values)


@pytest.fixture
def reducer(programme_config, id_factory):
    return ReportReducer(programme_config, id_factory=id_factory)


def _apply(reducer, periods, command, now=OCTOBER_NOW):
    return reducer.apply(periods, command, now)


class TestAddExpense:

    def test_one_time_entry_added_to_startup(self, reducer, sample_periods):
        data = ExpenseInput(item="Lab oscilloscope", amount="120000", category="R&D & Lab Equipment")
        result = _apply(reducer, sample_periods, AddExpense("oct", data))

        assert result.status is MutationStatus.APPLIED
        (entry,) = result.periods[0].startup_ledger.expenses
        assert entry.id == result.entry_id == "e1"
        assert entry.amount == Decimal("120000")
        assert entry.classification is Classification.ONE_TIME
        assert entry.periodicity is None
        assert entry.funding_source == "GoK"
        assert entry.origin_month == sample_periods[0].month_index
        assert entry.date == date(2023, 10, 15)
        assert all(p.startup_ledger.expenses == () for p in result.periods[1:])

    def test_monthly_recurring_propagates_to_later_periods(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddExpense("oct", _cloud_hosting()))

        ids = [tuple(e.id for e in p.startup_ledger.expenses) for p in result.periods]
        assert ids[0] == ("e1",)
        clone_ids = [i[0] for i in ids[1:]]
        assert len(set(clone_ids)) == 3
        assert "e1" not in clone_ids
        assert all(e.amount == Decimal("5000") for p in result.periods for e in p.startup_ledger.expenses)
        assert result.propagation.clone_count == 3

    def test_quarterly_recurring_only_reaches_january(self, reducer, sample_periods):
        result = _apply(
            reducer, sample_periods, AddExpense("oct", _cloud_hosting(periodicity=Periodicity.QUARTERLY))
        )
        counts = [len(p.startup_ledger.expenses) for p in result.periods]
        assert counts == [1, 0, 0, 1]

    def test_project_scope_propagates_within_scope(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddExpense("oct", _cloud_hosting(), scope=P1))
        assert [len(p.ledger(P1).expenses) for p in result.periods] == [1, 1, 1, 1]
        assert all(p.startup_ledger.expenses == () for p in result.periods)

    def test_not_retroactive(self, reducer, sample_periods):
        clock_in_december = datetime(2023, 12, 10)
        result = _apply(reducer, sample_periods, AddExpense("dec", _cloud_hosting()), clock_in_december)
        assert [len(p.startup_ledger.expenses) for p in result.periods] == [0, 0, 1, 1]

    def test_input_collection_is_not_mutated(self, reducer, sample_periods):
        _apply(reducer, sample_periods, AddExpense("oct", _cloud_hosting()))
        assert all(p.startup_ledger.expenses == () for p in sample_periods)

    @pytest.mark.parametrize("amount", ["", "abc", "-10", "NaN"])
    def test_invalid_amount_rejected(self, reducer, sample_periods, amount):
        result = _apply(reducer, sample_periods, AddExpense("oct", _cloud_hosting(amount=amount)))
        assert result.status is MutationStatus.REJECTED
        assert result.code == "INVALID_AMOUNT"
        assert result.periods == sample_periods

    def test_missing_item_rejected(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddExpense("oct", _cloud_hosting(item="  ")))
        assert result.code == "MISSING_FIELD"

    def test_category_outside_vocabulary_rejected(self, reducer, sample_periods):
        data = _cloud_hosting(category="Prototyping")  # one-time category on a recurring entry
        result = _apply(reducer, sample_periods, AddExpense("oct", data))
        assert result.status is MutationStatus.REJECTED
        assert result.code == "INVALID_CATEGORY"

    def test_unknown_funding_source_rejected(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddExpense("oct", _cloud_hosting(funding_source="ACME")))
        assert result.code == "UNKNOWN_FUNDING_SOURCE"

    def test_unknown_periodicity_rejected(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddExpense("oct", _cloud_hosting(periodicity="Weekly")))
        assert result.code == "INVALID_PERIODICITY"

    def test_unknown_classification_rejected(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddExpense("oct", _cloud_hosting(classification="CAPEX")))
        assert result.code == "INVALID_FIELD_VALUE"

    def test_unknown_project_scope_not_found(self, reducer, sample_periods):
        result = _apply(
            reducer, sample_periods, AddExpense("oct", _cloud_hosting(), scope=LedgerScope.project("p9"))
        )
        assert result.status is MutationStatus.NOT_FOUND
        assert result.code == "SCOPE_NOT_FOUND"

    def test_unknown_period_not_found(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddExpense("feb", _cloud_hosting()))
        assert result.status is MutationStatus.NOT_FOUND
        assert result.code == "PERIOD_NOT_FOUND"


class TestExpenseInput:

    def test_switching_classification_resets_category(self):
        data = ExpenseInput(category="Travel").with_classification(Classification.RECURRING)
        assert data.category == "Others"
        assert data.periodicity is Periodicity.MONTHLY

    def test_switching_to_one_time_clears_periodicity(self):
        data = _cloud_hosting().with_classification("NRE")
        assert data.classification is Classification.ONE_TIME
        assert data.periodicity is None
        assert data.category == "Others"


class TestRemoveExpense:

    def test_remove_only_touches_its_period(self, reducer, sample_periods):
        added = _apply(reducer, sample_periods, AddExpense("oct", _cloud_hosting()))
        result = _apply(reducer, added.periods, RemoveExpense("oct", "e1"))
        assert result.status is MutationStatus.APPLIED
        assert [len(p.startup_ledger.expenses) for p in result.periods] == [0, 1, 1, 1]

    def test_remove_clone_leaves_original_and_siblings(self, reducer, sample_periods):
        added = _apply(reducer, sample_periods, AddExpense("oct", _cloud_hosting()))
        november = datetime(2023, 11, 10)
        result = _apply(reducer, added.periods, RemoveExpense("nov", "e1-m24286"), november)
        assert result.status is MutationStatus.APPLIED
        ids = [[e.id for e in p.startup_ledger.expenses] for p in result.periods]
        assert ids == [["e1"], [], ["e1-m24287"], ["e1-m24288"]]
        assert [len(i) for i in ids] == [1, 0, 1, 1]

    def test_remove_unknown_entry(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, RemoveExpense("oct", "nope"))
        assert result.status is MutationStatus.NOT_FOUND
        assert result.code == "ENTRY_NOT_FOUND"


class TestPoints:

    def test_add_and_remove_highlight(self, reducer, sample_periods):
        first = _apply(reducer, sample_periods, AddPoint("oct", PointSection.HIGHLIGHTS, "Pilot with 3 farms"))
        second = _apply(reducer, first.periods, AddPoint("oct", "highlights", "Hired firmware lead"))
        assert second.periods[0].startup_ledger.highlights.items == (
            "Pilot with 3 farms",
            "Hired firmware lead",
        )
        removed = _apply(reducer, second.periods, RemovePoint("oct", "highlights", 0))
        assert removed.periods[0].startup_ledger.highlights.items == ("Hired firmware lead",)

    def test_blank_point_is_no_op(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddPoint("oct", PointSection.RISKS, "   "))
        assert result.status is MutationStatus.NO_OP
        assert result.is_success
        assert result.periods == sample_periods

    def test_remove_out_of_range(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, RemovePoint("oct", PointSection.RISKS, 0, scope=P1))
        assert result.status is MutationStatus.NOT_FOUND

    def test_non_integer_index_not_found(self, reducer, sample_periods):
        added = _apply(reducer, sample_periods, AddPoint("oct", PointSection.RISKS, "Supplier delay"))
        result = _apply(reducer, added.periods, RemovePoint("oct", PointSection.RISKS, "1"))
        assert result.status is MutationStatus.NOT_FOUND
        assert result.periods == added.periods

    def test_unknown_section_rejected(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddPoint("oct", "achievements", "text"))
        assert result.status is MutationStatus.REJECTED


class TestMilestones:

    def test_add_with_iso_deadline(self, reducer, sample_periods):
        result = _apply(
            reducer, sample_periods, AddMilestone("oct", "Field trial", "2023-12-01", "  ", scope=P1)
        )
        (milestone,) = result.periods[0].ledger(P1).milestones
        assert milestone.deadline == date(2023, 12, 1)
        assert milestone.description is None

    def test_missing_title_or_deadline(self, reducer, sample_periods):
        assert _apply(reducer, sample_periods, AddMilestone("oct", "", date(2023, 12, 1))).code == "MISSING_FIELD"
        assert _apply(reducer, sample_periods, AddMilestone("oct", "Trial", None)).code == "MISSING_FIELD"

    def test_bad_deadline(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddMilestone("oct", "Trial", "next week"))
        assert result.code == "INVALID_FIELD_VALUE"

    def test_remove(self, reducer, sample_periods):
        added = _apply(reducer, sample_periods, AddMilestone("oct", "Trial", date(2023, 12, 1)))
        result = _apply(reducer, added.periods, RemoveMilestone("oct", added.entry_id))
        assert result.periods[0].startup_ledger.milestones == ()


class TestLifecycleGating:

    def test_locked_period_disallowed(self, reducer):
        periods = (make_period("sep", "September 2023"),)
        result = _apply(reducer, periods, AddPoint("sep", "highlights", "late"))
        assert result.status is MutationStatus.DISALLOWED
        assert result.code == "PERIOD_LOCKED"
        assert result.periods == periods

    def test_future_period_disallowed(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, AddExpense("nov", _cloud_hosting()))
        assert result.status is MutationStatus.DISALLOWED
        assert result.code == "FUTURE_PERIOD"

    def test_editable_at_exact_deadline(self, reducer, sample_periods):
        deadline = sample_periods[0].deadline
        result = _apply(reducer, sample_periods, AddPoint("oct", "risks", "Supply delay"), deadline)
        assert result.status is MutationStatus.APPLIED


class TestSubmit:

    def test_submit_sets_status(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, Submit("oct"))
        assert result.periods[0].status is PeriodStatus.SUBMITTED

    def test_resubmit_is_no_op(self, reducer, sample_periods):
        submitted = _apply(reducer, sample_periods, Submit("oct")).periods
        assert _apply(reducer, submitted, Submit("oct")).status is MutationStatus.NO_OP

    def test_submitted_period_still_editable(self, reducer, sample_periods):
        submitted = _apply(reducer, sample_periods, Submit("oct")).periods
        result = _apply(reducer, submitted, AddPoint("oct", "highlights", "Follow-up"))
        assert result.status is MutationStatus.APPLIED
        assert result.periods[0].status is PeriodStatus.SUBMITTED

    def test_submit_after_deadline_disallowed(self, reducer):
        periods = (make_period("sep", "September 2023"),)
        result = _apply(reducer, periods, Submit("sep"))
        assert result.status is MutationStatus.DISALLOWED
        assert result.periods[0].status is PeriodStatus.DRAFT


class TestReviewerRemarks:

    def test_remarks_allowed_on_locked_period(self, reducer):
        periods = (make_period("sep", "September 2023"),)
        result = _apply(reducer, periods, RecordReviewerRemarks("sep", "Explain the travel spend."))
        assert result.status is MutationStatus.APPLIED
        assert result.periods[0].reviewer_remarks == "Explain the travel spend."

    def test_blank_remarks_clear(self, reducer):
        periods = (make_period("sep", "September 2023", reviewer_remarks="Old"),)
        result = _apply(reducer, periods, RecordReviewerRemarks("sep", " "))
        assert result.periods[0].reviewer_remarks is None

    def test_remarks_on_future_period_disallowed(self, reducer, sample_periods):
        result = _apply(reducer, sample_periods, RecordReviewerRemarks("jan", "Too early"))
        assert result.status is MutationStatus.DISALLOWED
