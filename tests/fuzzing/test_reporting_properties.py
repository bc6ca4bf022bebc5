"""
Hypothesis property tests for propagation, lifecycle and aggregation.

Properties:
- Propagation is deterministic, never retroactive, and a period receives
  a clone iff its distance from the origin is a positive multiple of the
  periodicity interval
- OneTime entries never propagate
- Display status is total over (status, now) and never mutates status
- Cumulative spend per funding source equals the sum of its entries, and
  changing one amount moves it by exactly the delta
- parse_amount never turns unparsable text into zero
"""

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from reporting_engines.budget import BudgetAggregator
from reporting_engines.lifecycle import DisplayStatus, display_status
from reporting_engines.propagation import PropagationEngine
from reporting_kernel.domain.ledger import (
    STARTUP,
    Classification,
    ExpenseEntry,
    Ledger,
    PeriodStatus,
    Periodicity,
    ReportingPeriod,
)
from reporting_kernel.domain.values import CalendarMonth, parse_amount
from reporting_kernel.exceptions import InvalidAmountError

SOURCES = ("GoK", "DST", "RDI")
CAPS = {code: Decimal("1000000") for code in SOURCES}

amounts = st.decimals(min_value=Decimal("0"), max_value=Decimal("999999999"), places=2)


@composite
def month_runs(draw):
    """A contiguous run of 1 to 30 reporting periods."""
    start = CalendarMonth(draw(st.integers(2020, 2030)), draw(st.integers(1, 12)))
    length = draw(st.integers(1, 30))
    return tuple(
        ReportingPeriod(id=f"m{i}", month_label=start.shifted(i).label) for i in range(length)
    )


@composite
def expenses(draw, entry_id="x"):
    return ExpenseEntry(
        id=entry_id,
        item="item",
        amount=draw(amounts),
        classification=draw(st.sampled_from(list(Classification))),
        category="Others",
        funding_source=draw(st.sampled_from(SOURCES)),
        origin_month=0,
        date=date(2023, 1, 1),
        periodicity=draw(st.sampled_from(list(Periodicity))),
    )


class TestPropagationProperties:

    @given(periods=month_runs(), periodicity=st.sampled_from(list(Periodicity)), data=st.data())
    @settings(max_examples=150, suppress_health_check=[HealthCheck.too_slow])
    def test_clone_iff_positive_multiple_of_interval(self, periods, periodicity, data):
        origin = data.draw(st.sampled_from(periods))
        entry = ExpenseEntry(
            id="e",
            item="Rent",
            amount=Decimal("100"),
            classification=Classification.RECURRING,
            category="Rent",
            funding_source="GoK",
            origin_month=origin.month_index,
            date=origin.first_day,
            periodicity=periodicity,
        )
        plan = PropagationEngine().plan(entry=entry, scope=STARTUP, periods=periods)

        expected = {
            p.id
            for p in periods
            if p.month_index > origin.month_index
            and (p.month_index - origin.month_index) % periodicity.interval_months == 0
        }
        assert set(plan.period_ids) == expected
        assert all(t.month_index > origin.month_index for t in plan.targets)
        assert plan == PropagationEngine().plan(entry=entry, scope=STARTUP, periods=periods)

    @given(periods=month_runs(), entry=expenses())
    @settings(max_examples=100)
    def test_one_time_never_propagates(self, periods, entry):
        one_time = replace(
            entry, classification=Classification.ONE_TIME, origin_month=periods[0].month_index
        )
        plan = PropagationEngine().plan(entry=one_time, scope=STARTUP, periods=periods)
        assert plan.targets == ()


class TestLifecycleProperties:

    @given(
        status=st.sampled_from(list(PeriodStatus)),
        offset_minutes=st.integers(min_value=-60 * 24 * 90, max_value=60 * 24 * 90),
    )
    @settings(max_examples=200)
    def test_display_status_total_and_pure(self, status, offset_minutes):
        period = ReportingPeriod(id="sep", month_label="September 2023", status=status)
        now = period.deadline + timedelta(minutes=offset_minutes)
        shown = display_status(period, now)
        locked = now > period.deadline
        expected = {
            (PeriodStatus.DRAFT, False): DisplayStatus.DRAFT,
            (PeriodStatus.DRAFT, True): DisplayStatus.AUTO_SUBMITTED,
            (PeriodStatus.SUBMITTED, False): DisplayStatus.SUBMITTED,
            (PeriodStatus.SUBMITTED, True): DisplayStatus.REVIEWED,
        }[(status, locked)]
        assert shown is expected
        assert period.status is status


class TestAggregationProperties:

    @given(entries=st.lists(expenses(), min_size=0, max_size=20))
    @settings(max_examples=150)
    def test_cumulative_equals_sum_per_source(self, entries):
        entries = [replace(e, id=f"x{i}") for i, e in enumerate(entries)]
        half = len(entries) // 2
        periods = (
            ReportingPeriod(id="a", month_label="October 2023", startup_ledger=Ledger(expenses=tuple(entries[:half]))),
            ReportingPeriod(
                id="b",
                month_label="November 2023",
                project_ledgers=(("p1", Ledger(expenses=tuple(entries[half:]))),),
            ),
        )
        view = BudgetAggregator(CAPS).aggregate(periods=periods)
        for code in SOURCES:
            expected = sum((e.amount for e in entries if e.funding_source == code), Decimal("0"))
            assert view.cumulative[code].cumulative == expected
        assert view.grand_total == sum((e.amount for e in entries), Decimal("0"))

    @given(entry=expenses(), delta=amounts)
    @settings(max_examples=150)
    def test_amount_delta_moves_cumulative_by_delta(self, entry, delta):
        def view_for(e):
            period = ReportingPeriod(
                id="a", month_label="October 2023", startup_ledger=Ledger(expenses=(e,))
            )
            return BudgetAggregator(CAPS).aggregate(periods=(period,))

        bumped = replace(entry, amount=entry.amount + delta)
        before = view_for(entry).cumulative[entry.funding_source]
        after = view_for(bumped).cumulative[entry.funding_source]
        assert after.cumulative - before.cumulative == delta
        assert after.balance == after.cap - after.cumulative


class TestAmountParsingProperties:

    @given(text=st.text(alphabet=st.characters(whitelist_categories=("L",)), min_size=1, max_size=12))
    @settings(max_examples=200)
    def test_letters_are_rejected_not_zeroed(self, text):
        with pytest.raises(InvalidAmountError):
            parse_amount(text)

    @given(amount=amounts)
    @settings(max_examples=200)
    def test_decimal_string_round_trips(self, amount):
        assert parse_amount(str(amount)) == amount
        assert parse_amount(f"{amount:,}") == amount
