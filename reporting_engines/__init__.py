"""
Module: reporting_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines: recurring-expense propagation, period lifecycle
    evaluation, and budget aggregation.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import reporting_kernel (domain, logging, exceptions).
    MUST NOT import reporting_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()``.  The current time is
      passed in explicitly or read from an injected Clock.
    - Decimal-only arithmetic for amounts.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from reporting_engines.propagation import PropagationEngine
    from reporting_engines.lifecycle import display_status, is_locked
    from reporting_engines.budget import BudgetAggregator
"""

from reporting_engines.budget import (
    STARTUP_LEVEL,
    BreakdownLine,
    BudgetAggregator,
    BudgetView,
    FundingPosition,
    PeriodBudget,
    ProjectTotal,
)
from reporting_engines.lifecycle import (
    DisplayStatus,
    EditAccess,
    PeriodAccess,
    PeriodLifecycleEvaluator,
    check_editable,
    display_status,
    evaluate_access,
    is_future,
    is_locked,
)
from reporting_engines.propagation import (
    PropagationEngine,
    PropagationPlan,
    PropagationTarget,
    clone_id,
    is_eligible,
)
from reporting_engines.tracer import traced_engine

__all__ = [
    "STARTUP_LEVEL",
    "BreakdownLine",
    "BudgetAggregator",
    "BudgetView",
    "FundingPosition",
    "PeriodBudget",
    "ProjectTotal",
    "DisplayStatus",
    "EditAccess",
    "PeriodAccess",
    "PeriodLifecycleEvaluator",
    "check_editable",
    "display_status",
    "evaluate_access",
    "is_future",
    "is_locked",
    "PropagationEngine",
    "PropagationPlan",
    "PropagationTarget",
    "clone_id",
    "is_eligible",
    "traced_engine",
]
