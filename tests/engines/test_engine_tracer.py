"""Tests for the @traced_engine decorator and input fingerprints."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from reporting_engines.propagation import PropagationEngine
from reporting_engines.tracer import canonicalize, compute_input_fingerprint, traced_engine
from reporting_kernel.domain.ledger import (
    STARTUP,
    Classification,
    ExpenseEntry,
    LedgerScope,
    Periodicity,
)
from reporting_kernel.domain.values import CalendarMonth
from tests.conftest import make_period

RENT = ExpenseEntry(
    id="e1",
    item="Office Rent",
    amount=Decimal("300.00"),
    classification=Classification.RECURRING,
    category="Rent",
    funding_source="GoK",
    origin_month=CalendarMonth(2023, 10).index,
    date=date(2023, 10, 15),
    periodicity=Periodicity.QUARTERLY,
)


class TestCanonicalize:

    def test_amounts_compared_by_value(self):
        assert canonicalize(Decimal("300")) == canonicalize(Decimal("300.00")) == "300"
        assert canonicalize(Decimal("0.50")) == "0.5"

    def test_expense_rendered_field_by_field(self):
        text = canonicalize(RENT)
        assert text.startswith("expense(id=\"e1\",item=\"Office Rent\",amount=300,")
        assert "classification=\"RE\"" in text
        assert "periodicity=\"Quarterly\"" in text
        assert "date=2023-10-15" in text
        assert text.endswith("cloned_from=null)")

    def test_scale_of_amount_does_not_change_expense_form(self):
        assert canonicalize(RENT) == canonicalize(replace(RENT, amount=Decimal("300")))

    def test_clone_lineage_distinguishes_entries(self):
        clone = replace(RENT, id="e1", cloned_from="e1")
        assert canonicalize(clone) != canonicalize(RENT)

    def test_scopes(self):
        assert canonicalize(STARTUP) == "scope(startup)"
        assert canonicalize(LedgerScope.project("p1")) == "scope(project:p1)"

    def test_month_and_date(self):
        assert canonicalize(CalendarMonth(2023, 10)) == f"month({2023 * 12 + 9})"
        assert canonicalize(date(2024, 1, 31)) == "2024-01-31"

    def test_string_and_number_differ(self):
        assert canonicalize("1") != canonicalize(1)

    def test_sets_sorted(self):
        assert canonicalize({"GoK", "DST"}) == canonicalize(frozenset({"DST", "GoK"}))

    def test_unknown_type_rejected(self):
        with pytest.raises(TypeError, match="object"):
            canonicalize(object())


class TestInputFingerprint:

    def test_deterministic_and_key_order_independent(self):
        a = compute_input_fingerprint(("caps",), {"caps": {"GoK": 1, "DST": 2}})
        b = compute_input_fingerprint(("caps",), {"caps": {"DST": 2, "GoK": 1}})
        assert a == b
        assert len(a) == 16

    def test_missing_field_recorded_as_null(self):
        assert compute_input_fingerprint(("x",), {}) == compute_input_fingerprint(("x",), {"x": None})

    def test_sequence_order_matters(self):
        assert compute_input_fingerprint(("p",), {"p": [1, 2]}) != compute_input_fingerprint(
            ("p",), {"p": [2, 1]}
        )

    def test_scope_changes_fingerprint(self):
        fields = ("entry", "scope")
        startup = compute_input_fingerprint(fields, {"entry": RENT, "scope": STARTUP})
        project = compute_input_fingerprint(
            fields, {"entry": RENT, "scope": LedgerScope.project("p1")}
        )
        assert startup != project


class TestTracedEngine:

    def test_result_passed_through_and_trace_emitted(self, captured_logs):
        @traced_engine("sample", "2.1", fingerprint_fields=("value",))
        def double(*, value):
            return value * 2

        assert double(value=21) == 42
        (trace,) = [r for r in captured_logs() if r["message"] == "REPORTING_ENGINE_TRACE"]
        assert trace["engine_name"] == "sample"
        assert trace["engine_version"] == "2.1"
        assert trace["fingerprint_fields"] == ["value"]
        assert trace["input_fingerprint"] == compute_input_fingerprint(("value",), {"value": 21})
        assert trace["duration_ms"] >= 0

    def test_propagation_plan_traced_with_entry_fingerprint(self, captured_logs):
        periods = (make_period("oct", "October 2023"), make_period("jan", "January 2024"))
        PropagationEngine().plan(entry=RENT, scope=STARTUP, periods=periods)
        (trace,) = [r for r in captured_logs() if r["message"] == "REPORTING_ENGINE_TRACE"]
        assert trace["engine_name"] == "propagation"
        assert trace["input_fingerprint"] == compute_input_fingerprint(
            ("entry", "scope"), {"entry": RENT, "scope": STARTUP}
        )
