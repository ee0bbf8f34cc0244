"""
Excel report — ranked tenders plus batch statistics in one .xlsx file.

Sheets:
  Tenders     one row per tender, Match cell shaded by score band
  Statistics  totals, per-country counts, top categories and regions

Budgets are written as numbers and deadlines as dates (UTC) so the
sheet can be sorted and filtered in Excel.
"""

import logging
from collections import namedtuple
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from providers.models import Tender, TenderStats
import config

logger = logging.getLogger(__name__)

NAVY = "1B3A6B"
GRID = Side(style="thin", color="D0D7E5")
BORDER = Border(left=GRID, right=GRID, top=GRID, bottom=GRID)
HEADER_FILL = PatternFill("solid", fgColor=NAVY)
STRIPE_FILL = PatternFill("solid", fgColor="F0F4FF")

# (lower bound, fill colour); first band the score reaches wins
SCORE_BANDS = [
    (0.9, "1A7A3C"),
    (0.7, "4CAF50"),
    (0.5, "FFC107"),
    (0.0, "B0BEC5"),
]

Column = namedtuple("Column", "header width value number_format wrap")


def _join(items: Sequence[str]) -> str:
    return ", ".join(items) or "—"


def _budget(t: Tender):
    return t.budget if t.budget else "Not disclosed"


def _deadline(t: Tender):
    if t.deadline is None:
        return "—"
    # openpyxl only writes naive datetimes
    return t.deadline.astimezone(timezone.utc).replace(tzinfo=None)


TENDER_COLUMNS = [
    Column("#",            5,  None,                                  None,                False),
    Column("Match",        8,  lambda t: round(t.similarity, 2),      "0.00",              False),
    Column("Country",      11, lambda t: t.country,                   None,                False),
    Column("Tender ID",    24, lambda t: t.id,                        None,                False),
    Column("Title",        48, lambda t: t.title,                     None,                True),
    Column("Category",     22, lambda t: t.category or "—",           None,                False),
    Column("Region",       20, lambda t: t.region or "—",             None,                False),
    Column("Budget",       16, _budget,                               "#,##0",             False),
    Column("Deadline",     18, _deadline,                             "dd mmm yyyy hh:mm", False),
    Column("Time Left",    12, lambda t: t.time_left or "—",          None,                False),
    Column("Bids",         7,  lambda t: t.bids_count,                None,                False),
    Column("Requirements", 40, lambda t: _join(t.requirements),       None,                True),
    Column("Why",          40, lambda t: _join(t.match_reasons),      None,                True),
    Column("Link",         40, lambda t: t.source_url,                None,                False),
]


def _score_fill(score: float) -> PatternFill:
    colour = next(c for floor, c in SCORE_BANDS if score >= floor)
    return PatternFill("solid", fgColor=colour)


def _title_and_headers(ws, title: str, headers: List[tuple]) -> None:
    """Row 1: merged title.  Row 2: navy header cells, which also set widths."""
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(headers))
    top = ws.cell(row=1, column=1, value=title)
    top.font = Font(name="Calibri", bold=True, size=13, color=NAVY)
    top.alignment = Alignment(horizontal="center", vertical="center")
    ws.row_dimensions[1].height = 24

    for col, (header, width) in enumerate(headers, start=1):
        cell = ws.cell(row=2, column=col, value=header)
        cell.font = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
        cell.fill = HEADER_FILL
        cell.border = BORDER
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        ws.column_dimensions[get_column_letter(col)].width = width
    ws.row_dimensions[2].height = 22
    ws.freeze_panes = "A3"


def _body_cell(ws, row: int, col: int, value, striped: bool, wrap: bool = False):
    cell = ws.cell(row=row, column=col, value=value)
    cell.border = BORDER
    cell.font = Font(name="Calibri", size=10)
    cell.alignment = Alignment(vertical="center", wrap_text=wrap)
    if striped:
        cell.fill = STRIPE_FILL
    return cell


def _fill_tender_sheet(ws, tenders: List[Tender], title: str) -> None:
    _title_and_headers(ws, title, [(c.header, c.width) for c in TENDER_COLUMNS])

    for n, tender in enumerate(tenders, start=1):
        row = n + 2
        striped = n % 2 == 0
        for col, column in enumerate(TENDER_COLUMNS, start=1):
            value = n if column.value is None else column.value(tender)
            cell = _body_cell(ws, row, col, value, striped, column.wrap)
            if column.number_format and not isinstance(value, str):
                cell.number_format = column.number_format

            if column.header == "Match":
                cell.fill = _score_fill(tender.similarity)
                cell.font = Font(name="Calibri", bold=True, size=10, color="FFFFFF")
                cell.alignment = Alignment(horizontal="center", vertical="center")
            elif column.header == "Title":
                cell.font = Font(name="Calibri", bold=True, size=10, color=NAVY)
            elif column.header == "Link" and value:
                cell.hyperlink = value
                cell.value = "Open ↗"
                cell.font = Font(name="Calibri", size=10, color="0563C1", underline="single")
        ws.row_dimensions[row].height = 36

    last_col = get_column_letter(len(TENDER_COLUMNS))
    ws.auto_filter.ref = f"A2:{last_col}{len(tenders) + 2}"


def _stats_rows(stats: TenderStats) -> List[tuple]:
    rows = [
        ("Total tenders", stats.total),
        ("Open tenders", stats.open_tenders),
        ("Deadline in last 30 days or later", stats.recent_tenders),
        ("Total disclosed budget", round(stats.total_budget, 2)),
        ("Average disclosed budget", round(stats.average_budget, 2)),
    ]
    rows += [(f"Country: {country}", count) for country, count in stats.by_country.items()]
    rows += [(f"Top category: {c['category']}", c["count"]) for c in stats.top_categories]
    rows += [(f"Top region: {r['region']}", r["count"]) for r in stats.top_regions]
    return rows


def _fill_stats_sheet(ws, stats: TenderStats, title: str) -> None:
    _title_and_headers(ws, title, [("Metric", 34), ("Value", 20)])
    for n, (metric, value) in enumerate(_stats_rows(stats), start=1):
        striped = n % 2 == 0
        _body_cell(ws, n + 2, 1, metric, striped)
        cell = _body_cell(ws, n + 2, 2, value, striped)
        if isinstance(value, float):
            cell.number_format = "#,##0"


def export_to_excel(
    tenders: List[Tender],
    stats: Optional[TenderStats] = None,
    title: str = "Tender Opportunities",
    output_dir: Optional[str] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> str:
    """
    Save the report as ``OUTPUT_FILENAME`` in ``output_dir`` (default
    ``config.OUTPUT_DIR``) and return its absolute path.  The Statistics
    sheet is only written when ``stats`` is given.
    """
    started = clock()
    stamp = started.strftime("%d %b %Y %H:%M")
    target = Path(output_dir or config.OUTPUT_DIR)
    target.mkdir(parents=True, exist_ok=True)
    path = (target / config.OUTPUT_FILENAME.format(date=started.strftime("%Y-%m-%d"))).resolve()

    wb = openpyxl.Workbook()
    sheet = wb.active
    sheet.title = "Tenders"
    _fill_tender_sheet(sheet, tenders, f"{title}  |  Run: {stamp}  |  {len(tenders)} result(s)")

    if stats is not None:
        _fill_stats_sheet(wb.create_sheet("Statistics"), stats, f"Tender Statistics  |  Run: {stamp}")

    wb.save(path)
    logger.info("Excel report written: %s (%d tenders)", path, len(tenders))
    return str(path)
