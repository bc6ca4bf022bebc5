"""
Pytest fixtures for the reporting test suite.

Provides:
- Structured logging configuration and a JSON log capture fixture
- Deterministic clock and id factory
- Sample reporting periods (October 2023 to January 2024)
- In-memory SQLite session factory for the snapshot store
"""

import itertools
import json
import logging
from datetime import datetime
from io import StringIO

import pytest

from reporting_config import clear_config_cache, get_programme_config
from reporting_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from reporting_kernel.domain.clock import DeterministicClock
from reporting_kernel.domain.ledger import Ledger, ReportingPeriod
from reporting_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from reporting_modules.reports.service import ReportingService

# Mid-October 2023: October is open, September is locked, later months are future
OCTOBER_NOW = datetime(2023, 10, 15, 12, 0, 0)

SAMPLE_MONTHS = (
    ("oct", "October 2023"),
    ("nov", "November 2023"),
    ("dec", "December 2023"),
    ("jan", "January 2024"),
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture reporting_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.mutate(...)
            logs = captured_logs()
            assert any(r["message"] == "expense_added" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("reporting_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration and clock
# =============================================================================


@pytest.fixture
def programme_config():
    """The packaged programme configuration (GoK / DST / RDI)."""
    clear_config_cache()
    yield get_programme_config()
    clear_config_cache()


@pytest.fixture
def deterministic_clock():
    """A clock fixed in mid-October 2023."""
    return DeterministicClock(OCTOBER_NOW)


@pytest.fixture
def id_factory():
    """Sequential ids: e1, e2, ..."""
    counter = itertools.count(1)
    return lambda: f"e{next(counter)}"


# =============================================================================
# Sample periods
# =============================================================================


def make_period(period_id: str, month_label: str, *projects: str, **kwargs) -> ReportingPeriod:
    """A period with an empty startup ledger and one empty ledger per project."""
    return ReportingPeriod(
        id=period_id,
        month_label=month_label,
        project_ledgers=tuple((pid, Ledger()) for pid in projects),
        **kwargs,
    )


@pytest.fixture
def sample_periods() -> tuple[ReportingPeriod, ...]:
    """October 2023 to January 2024, each with startup and project p1 ledgers."""
    return tuple(make_period(pid, label, "p1") for pid, label in SAMPLE_MONTHS)


@pytest.fixture
def service(sample_periods, programme_config, deterministic_clock, id_factory):
    """ReportingService over the sample periods, without persistence."""
    return ReportingService(
        sample_periods,
        config=programme_config,
        clock=deterministic_clock,
        id_factory=id_factory,
    )


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    init_engine_from_url("sqlite:///:memory:", pool_pre_ping=False)
    create_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()
