"""
Monthly Reports Module (``reporting_modules.reports``).

Responsibility
--------------
Founder-facing monthly progress reporting: expenses (with recurring
propagation), highlights, risks and milestones per ledger scope, the
submit lifecycle, reviewer remarks, budget views and the budget-sheet
export.

Architecture position
---------------------
**Modules layer** -- mutation commands, a pure reducer, snapshot
serialization and the ``ReportingService`` facade.  Calculations are
delegated to ``reporting_engines``; persistence to
``reporting_kernel.services.SnapshotStore``.

Failure modes
-------------
* ``MutationResult.status`` other than APPLIED / NO_OP -- validation,
  lifecycle or lookup failure.  The published collection is unchanged.
"""

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
from reporting_modules.reports.export import export_budget_sheet
from reporting_modules.reports.models import MutationResult, MutationStatus
from reporting_modules.reports.reducer import ReportReducer
from reporting_modules.reports.serialization import (
    SCHEMA_VERSION,
    snapshot_from_dict,
    snapshot_to_dict,
)
from reporting_modules.reports.service import ReportingService

__all__ = [
    "AddExpense",
    "AddMilestone",
    "AddPoint",
    "Command",
    "ExpenseInput",
    "MutationResult",
    "MutationStatus",
    "PointSection",
    "RecordReviewerRemarks",
    "RemoveExpense",
    "RemoveMilestone",
    "RemovePoint",
    "ReportReducer",
    "ReportingService",
    "SCHEMA_VERSION",
    "Submit",
    "export_budget_sheet",
    "snapshot_from_dict",
    "snapshot_to_dict",
]
