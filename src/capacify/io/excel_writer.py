"""Excel writer for capacity grids."""

from __future__ import annotations

import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from capacify.models.capacity import CapacityStatus
from capacify.models.grid import CapacityGrid

logger = logging.getLogger(__name__)

# Column layout: A=Teammate, B=Role, C=h/day, D onwards=dates
_DATE_COL_OFFSET = 3

_WEEKDAY_EN = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

_STATUS_FILLS = {
    CapacityStatus.EMPTY: PatternFill("solid", fgColor="EDEDED"),
    CapacityStatus.LOW: PatternFill("solid", fgColor="E2EFDA"),
    CapacityStatus.MEDIUM: PatternFill("solid", fgColor="FFF2CC"),
    CapacityStatus.HIGH: PatternFill("solid", fgColor="F8CBAD"),
}

_LEGEND = [
    (CapacityStatus.LOW, "Up to 70%"),
    (CapacityStatus.MEDIUM, "70-90%"),
    (CapacityStatus.HIGH, "Over 90%"),
    (CapacityStatus.EMPTY, "Empty / Non-working"),
]


def write_capacity_grid(filepath: str | Path, grid: CapacityGrid) -> Path:
    """Write a capacity grid to an Excel file.

    Layout of the "Capacity" sheet:
        Row 1: Title with the date window
        Row 3: Headers - "Teammate", "Role", "h/day", ISO dates...
        Row 4: Weekday row
        Row 5..: One row per teammate, cells show the "used/total h" label
        After teammates: empty row, then the status legend

    Returns:
        Path to the written file.
    """
    filepath = Path(filepath)
    wb = Workbook()
    ws = wb.active
    ws.title = "Capacity"

    header_font = Font(bold=True, size=11, name="Arial")
    center = Alignment(horizontal="center", vertical="center")
    border = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )

    ws.cell(row=1, column=1).value = (
        f"Team capacity {grid.start_date.isoformat()} - {grid.end_date.isoformat()}"
    )
    ws.cell(row=1, column=1).font = Font(bold=True, size=14, name="Arial")

    for col, header in enumerate(["Teammate", "Role", "h/day"], start=1):
        c = ws.cell(row=3, column=col)
        c.value = header
        c.font = header_font
        c.border = border

    for d, day in enumerate(grid.dates):
        col = _DATE_COL_OFFSET + d + 1
        date_cell = ws.cell(row=3, column=col)
        date_cell.value = day.isoformat()
        date_cell.font = header_font
        date_cell.alignment = center
        date_cell.border = border
        weekday_cell = ws.cell(row=4, column=col)
        weekday_cell.value = _WEEKDAY_EN[day.weekday()]
        weekday_cell.alignment = center
        weekday_cell.border = border
        ws.column_dimensions[get_column_letter(col)].width = 12

    for i, (teammate, row) in enumerate(zip(grid.teammates, grid.rows)):
        r = 5 + i
        ws.cell(row=r, column=1).value = teammate.name or teammate.id
        ws.cell(row=r, column=2).value = teammate.job_role
        ws.cell(row=r, column=3).value = teammate.daily_capacity
        for col in range(1, _DATE_COL_OFFSET + 1):
            ws.cell(row=r, column=col).border = border

        for d, cell in enumerate(row):
            c = ws.cell(row=r, column=_DATE_COL_OFFSET + d + 1)
            c.value = cell.label
            c.fill = _STATUS_FILLS[cell.status]
            c.alignment = center
            c.border = border

    legend_row = 5 + grid.num_teammates + 1
    for offset, (status, text) in enumerate(_LEGEND):
        swatch = ws.cell(row=legend_row + offset, column=1)
        swatch.fill = _STATUS_FILLS[status]
        swatch.border = border
        ws.cell(row=legend_row + offset, column=2).value = text

    ws.column_dimensions["A"].width = 20
    ws.column_dimensions["B"].width = 16
    ws.freeze_panes = ws.cell(row=5, column=_DATE_COL_OFFSET + 1)

    wb.save(str(filepath))
    logger.info("Wrote capacity grid (%d teammates x %d days) to %s",
                grid.num_teammates, grid.num_days, filepath)
    return filepath
