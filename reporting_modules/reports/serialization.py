"""
Snapshot serialization for the reporting-period collection.

Converts the frozen domain graph to a JSON-safe dict and back.  Amounts
are written as strings so that a reload yields the exact same ``Decimal``;
dates use ISO format.  The payload carries a ``schema_version`` and a
reader refuses versions it does not know.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from reporting_kernel.domain.ledger import (
    BudgetSnapshot,
    Classification,
    ExpenseEntry,
    Ledger,
    Milestone,
    MilestoneStatus,
    PeriodStatus,
    Periodicity,
    ReportingPeriod,
)
from reporting_kernel.domain.points import PointList
from reporting_kernel.exceptions import InvalidMonthLabelError, SnapshotError

SCHEMA_VERSION = 1


def _decimal_or_none(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _parse_decimal_or_none(value: Any) -> Decimal | None:
    return None if value is None else Decimal(str(value))


# =============================================================================
# Write
# =============================================================================


def expense_to_dict(entry: ExpenseEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "item": entry.item,
        "amount": str(entry.amount),
        "classification": entry.classification.value,
        "category": entry.category,
        "funding_source": entry.funding_source,
        "periodicity": entry.periodicity.value if entry.periodicity else None,
        "origin_month": entry.origin_month,
        "date": entry.date.isoformat(),
        "cloned_from": entry.cloned_from,
    }


def milestone_to_dict(milestone: Milestone) -> dict[str, Any]:
    return {
        "id": milestone.id,
        "title": milestone.title,
        "deadline": milestone.deadline.isoformat(),
        "description": milestone.description,
        "status": milestone.status.value,
    }


def ledger_to_dict(ledger: Ledger) -> dict[str, Any]:
    return {
        "highlights": ledger.highlights.text,
        "risks": ledger.risks.text,
        "milestones": [milestone_to_dict(m) for m in ledger.milestones],
        "expenses": [expense_to_dict(e) for e in ledger.expenses],
    }


def period_to_dict(period: ReportingPeriod) -> dict[str, Any]:
    snapshot = period.budget_snapshot
    return {
        "id": period.id,
        "month_label": period.month_label,
        "status": period.status.value,
        "startup_ledger": ledger_to_dict(period.startup_ledger),
        "project_ledgers": [
            {"project_id": pid, "ledger": ledger_to_dict(ledger)}
            for pid, ledger in period.project_ledgers
        ],
        "budget_snapshot": None if snapshot is None else {
            "total_sanctioned": _decimal_or_none(snapshot.total_sanctioned),
            "utilized": _decimal_or_none(snapshot.utilized),
            "percentage": _decimal_or_none(snapshot.percentage),
            "status": snapshot.status,
        },
        "reviewer_remarks": period.reviewer_remarks,
    }


def snapshot_to_dict(periods: Sequence[ReportingPeriod]) -> dict[str, Any]:
    """Serialize the whole collection into a persistable payload."""
    return {
        "schema_version": SCHEMA_VERSION,
        "periods": [period_to_dict(p) for p in periods],
    }


# =============================================================================
# Read
# =============================================================================


def expense_from_dict(data: dict[str, Any]) -> ExpenseEntry:
    periodicity = data.get("periodicity")
    return ExpenseEntry(
        id=data["id"],
        item=data["item"],
        amount=Decimal(str(data["amount"])),
        classification=Classification(data["classification"]),
        category=data["category"],
        funding_source=data["funding_source"],
        periodicity=Periodicity(periodicity) if periodicity else None,
        origin_month=int(data["origin_month"]),
        date=date.fromisoformat(data["date"]),
        cloned_from=data.get("cloned_from"),
    )


def milestone_from_dict(data: dict[str, Any]) -> Milestone:
    return Milestone(
        id=data["id"],
        title=data["title"],
        deadline=date.fromisoformat(data["deadline"]),
        description=data.get("description"),
        status=MilestoneStatus(data.get("status", MilestoneStatus.PENDING.value)),
    )


def ledger_from_dict(data: dict[str, Any]) -> Ledger:
    return Ledger(
        highlights=PointList(data.get("highlights") or ""),
        risks=PointList(data.get("risks") or ""),
        milestones=tuple(milestone_from_dict(m) for m in data.get("milestones", ())),
        expenses=tuple(expense_from_dict(e) for e in data.get("expenses", ())),
    )


def period_from_dict(data: dict[str, Any]) -> ReportingPeriod:
    snapshot = data.get("budget_snapshot")
    return ReportingPeriod(
        id=data["id"],
        month_label=data["month_label"],
        status=PeriodStatus(data.get("status", PeriodStatus.DRAFT.value)),
        startup_ledger=ledger_from_dict(data.get("startup_ledger") or {}),
        project_ledgers=tuple(
            (item["project_id"], ledger_from_dict(item["ledger"]))
            for item in data.get("project_ledgers", ())
        ),
        budget_snapshot=None if snapshot is None else BudgetSnapshot(
            total_sanctioned=_parse_decimal_or_none(snapshot.get("total_sanctioned")),
            utilized=_parse_decimal_or_none(snapshot.get("utilized")),
            percentage=_parse_decimal_or_none(snapshot.get("percentage")),
            status=snapshot.get("status"),
        ),
        reviewer_remarks=data.get("reviewer_remarks"),
    )


def snapshot_from_dict(payload: dict[str, Any]) -> tuple[ReportingPeriod, ...]:
    """
    Rebuild the period collection from a persisted payload.

    Raises:
        SnapshotError: unknown schema version or malformed payload.
    """
    version = payload.get("schema_version")
    if version != SCHEMA_VERSION:
        raise SnapshotError(f"Unsupported snapshot schema version: {version!r}")
    try:
        return tuple(period_from_dict(p) for p in payload.get("periods", ()))
    except (KeyError, TypeError, ValueError, InvalidOperation, InvalidMonthLabelError) as exc:
        raise SnapshotError(f"Malformed snapshot payload: {exc}") from exc
