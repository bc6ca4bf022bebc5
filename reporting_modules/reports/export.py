"""
Budget sheet export.

Writes a ``BudgetView`` to an ``.xlsx`` workbook with three sheets:

* ``Budget Sheet``     one row per month (breakdown, RE, NRE, total, status)
                       and a closing totals row
* ``Funding Sources``  cap, cumulative spend, RE/NRE split and balance
* ``Projects``         spend per project across all months
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from reporting_engines.budget import ZERO, BudgetView
from reporting_kernel.logging_config import get_logger

logger = get_logger("modules.reports.export")

BUDGET_SHEET = "Budget Sheet"
FUNDING_SHEET = "Funding Sources"
PROJECTS_SHEET = "Projects"

BUDGET_HEADERS = ("Month", "Breakdown", "Recurring (RE)", "One-Time (NRE)", "Total", "Status")
FUNDING_HEADERS = (
    "Funding Source",
    "Cap",
    "Cumulative",
    "Cumulative RE",
    "Cumulative NRE",
    "Remaining",
    "Overbudget",
    "Utilization %",
)
PROJECT_HEADERS = ("Project ID", "Project", "Total")

_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
_TOTAL_FONT = Font(bold=True)
_WRAP = Alignment(wrap_text=True, vertical="top")


def _write_header(ws: Worksheet, headers: tuple[str, ...]) -> None:
    ws.append(list(headers))
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
    ws.freeze_panes = "A2"


def _auto_width(ws: Worksheet, max_width: int = 60) -> None:
    for col in range(1, ws.max_column + 1):
        longest = 0
        for (cell,) in ws.iter_rows(min_col=col, max_col=col):
            if cell.value is not None:
                text = str(cell.value)
                longest = max(longest, min(max(len(line) for line in text.splitlines() or [""]), max_width))
        ws.column_dimensions[get_column_letter(col)].width = max(longest + 2, 12)


def _money_format(ws: Worksheet, columns: range, currency: str) -> None:
    fmt = f'#,##0.00 "{currency}"' if currency else "#,##0.00"
    for row in ws.iter_rows(min_row=2, min_col=columns.start, max_col=columns.stop - 1):
        for cell in row:
            cell.number_format = fmt


def export_budget_sheet(
    view: BudgetView,
    path: Path | str,
    *,
    display_statuses: Mapping[str, str] | None = None,
    currency: str = "",
) -> Path:
    """
    Write ``view`` to ``path`` and return the resolved path.

    ``display_statuses`` maps period id to the label shown in the Status
    column; periods absent from it show their stored status.
    """
    statuses = display_statuses or {}
    target = Path(path)
    wb = Workbook()

    ws = wb.active
    ws.title = BUDGET_SHEET
    _write_header(ws, BUDGET_HEADERS)
    for row in view.per_period:
        breakdown = "\n".join(f"{line.name}: {line.total}" for line in row.breakdown)
        ws.append([
            row.month_label,
            breakdown,
            row.total_recurring,
            row.total_one_time,
            row.total,
            statuses.get(row.period_id, row.status),
        ])
        ws.cell(row=ws.max_row, column=2).alignment = _WRAP
    ws.append([
        "Total",
        None,
        sum((r.total_recurring for r in view.per_period), ZERO),
        sum((r.total_one_time for r in view.per_period), ZERO),
        view.grand_total,
        None,
    ])
    for cell in ws[ws.max_row]:
        cell.font = _TOTAL_FONT
    _money_format(ws, range(3, 6), currency)
    _auto_width(ws)

    ws = wb.create_sheet(FUNDING_SHEET)
    _write_header(ws, FUNDING_HEADERS)
    for code, position in view.cumulative.items():
        ws.append([
            code,
            position.cap,
            position.cumulative,
            position.cumulative_recurring,
            position.cumulative_one_time,
            position.remaining,
            "Yes" if position.overbudget else "No",
            position.utilization_percent,
        ])
    _money_format(ws, range(2, 7), currency)
    _auto_width(ws)

    ws = wb.create_sheet(PROJECTS_SHEET)
    _write_header(ws, PROJECT_HEADERS)
    for project in view.per_project:
        ws.append([project.project_id, project.name, project.total])
    _money_format(ws, range(3, 4), currency)
    _auto_width(ws)

    target.parent.mkdir(parents=True, exist_ok=True)
    wb.save(target)
    logger.info(
        "budget_sheet_exported",
        extra={
            "path": str(target),
            "period_count": len(view.per_period),
            "grand_total": view.grand_total,
        },
    )
    return target
