"""Header-block detection for calendar-style planning spreadsheets."""

import re
from typing import List, Dict, Optional, Any

from .calendar_weeks import MAX_WEEK, month_from_name, month_of_week
from .models import CalendarColumn, InfoHeader, SheetStructure
from .utils import StructureNotDetected, as_int, sanitize_text

# Scan windows (rows from the top of the sheet)
MAX_YEAR_SCAN_ROWS = 3
MAX_HEADER_SCAN_ROWS = 5

_YEAR_RE = re.compile(r'(?<!\d)(20\d{2})(?!\d)')

Grid = List[List[Any]]


class StructureDetector:
    """Locates the month/week header rows and info columns of a sheet."""

    def __init__(
        self,
        year_scan_rows: int = MAX_YEAR_SCAN_ROWS,
        header_scan_rows: int = MAX_HEADER_SCAN_ROWS
    ):
        """
        Initialize structure detector.

        Args:
            year_scan_rows: Number of top rows searched for a year hint
            header_scan_rows: Number of top rows searched for the month header
        """
        self.year_scan_rows = year_scan_rows
        self.header_scan_rows = header_scan_rows

    def detect(self, grid: Grid, fallback_year: int) -> SheetStructure:
        """
        Detect the header block of a planning spreadsheet.

        Args:
            grid: Row-major cell values of the first worksheet
            fallback_year: Year chosen by the caller, used when the sheet has none

        Returns:
            SheetStructure describing header rows, info columns and calendar columns

        Raises:
            StructureNotDetected: If no month header row is found
        """
        month_row = self.find_month_header_row(grid)
        if month_row is None:
            raise StructureNotDetected(
                f"No month header row found in the first {self.header_scan_rows} rows"
            )

        # Only title rows above the header block can carry the year
        detected_year = self.detect_year(grid[:month_row])
        year = fallback_year
        if detected_year is not None:
            if detected_year != fallback_year:
                print(f"    Warning: sheet year {detected_year} differs from selected year {fallback_year}, using {detected_year}")
            year = detected_year

        week_row = month_row + 1
        month_cells = grid[month_row]
        week_cells = grid[week_row] if week_row < len(grid) else []

        info_headers = self._extract_info_headers(month_cells)
        info_columns = {h.column for h in info_headers}

        return SheetStructure(
            month_header_row=month_row,
            week_header_row=week_row,
            year=year,
            info_headers=info_headers,
            calendar_columns=self._map_calendar_columns(month_cells, week_cells, info_columns),
            detected_year=detected_year,
        )

    def detect_year(self, grid: Grid) -> Optional[int]:
        """Find a 20xx year in the first rows of the given title block, if any."""
        for row in grid[:self.year_scan_rows]:
            for cell in row:
                if cell is None or isinstance(cell, bool):
                    continue
                match = _YEAR_RE.search(str(cell))
                if match:
                    return int(match.group(1))
        return None

    def find_month_header_row(self, grid: Grid) -> Optional[int]:
        """Return the index of the first row containing a month name."""
        for idx, row in enumerate(grid[:self.header_scan_rows]):
            if any(month_from_name(cell) is not None for cell in row):
                return idx
        return None

    def _extract_info_headers(self, month_cells: List[Any]) -> List[InfoHeader]:
        """Collect the text columns left of the first month name."""
        headers = []
        for col, cell in enumerate(month_cells):
            if month_from_name(cell) is not None:
                break
            if isinstance(cell, str) and sanitize_text(cell):
                headers.append(InfoHeader(column=col, name=sanitize_text(cell)))
        return headers

    def _map_calendar_columns(
        self,
        month_cells: List[Any],
        week_cells: List[Any],
        info_columns: Optional[set] = None
    ) -> Dict[int, CalendarColumn]:
        """
        Bind each week-numbered column to the month currently in effect.

        Month names usually appear once per month (merged cells), so the
        last seen month is carried forward across columns.
        """
        columns: Dict[int, CalendarColumn] = {}
        current_month: Optional[int] = None
        info_columns = info_columns or set()

        for col in range(max(len(month_cells), len(week_cells))):
            if col in info_columns:
                continue
            month_cell = month_cells[col] if col < len(month_cells) else None
            month = month_from_name(month_cell)
            if month is not None:
                current_month = month

            week = as_int(week_cells[col]) if col < len(week_cells) else None
            if week is None or not 1 <= week <= MAX_WEEK:
                continue

            month_index = current_month if current_month is not None else month_of_week(week)
            columns[col] = CalendarColumn(month=month_index, week=week)

        return columns
