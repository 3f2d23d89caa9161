"""Turns spreadsheet data rows into dated, section-tagged activity rows."""

from datetime import date
from typing import List, Dict, Optional, Any, Sequence

from .models import DatedCell, PreprocessedRow, PreprocessResult, SheetStructure
from .utils import as_int, sanitize_text

# Data rows read after the header block
MAX_DATA_ROWS = 100

TITLE_FIELD = 'title'


class RowPreprocessor:
    """Walks data rows using a detected SheetStructure."""

    def __init__(self, max_rows: int = MAX_DATA_ROWS):
        """
        Initialize the row preprocessor.

        Args:
            max_rows: Maximum number of data rows read after the header block
        """
        self.max_rows = max_rows

    def process(self, grid: Sequence[Sequence[Any]], structure: SheetStructure) -> PreprocessResult:
        """
        Extract activity rows from the data block of a sheet.

        Rows with a first-column value, at most one other filled info
        column and no dates are section headers: their text is carried
        forward as the section of the rows below. Completely empty rows
        are skipped.

        Args:
            grid: Row-major cell values of the sheet
            structure: Detected header structure

        Returns:
            PreprocessResult with activity rows and the section headers seen
        """
        result = PreprocessResult()
        start = structure.data_start_row
        data_rows = grid[start:start + self.max_rows]
        result.truncated = len(grid) - start > self.max_rows

        current_section: Optional[str] = None

        for offset, cells in enumerate(data_rows):
            row_number = start + offset + 1
            title = sanitize_text(cells[0]) if len(cells) > 0 else ""
            fields = self._extract_info_fields(cells, structure)
            other_filled = sum(1 for h in structure.info_headers if h.column != 0 and h.name in fields)
            dates = self._extract_dates(cells, structure)

            if title and other_filled <= 1 and not dates:
                current_section = title
                result.section_headers.append(title)
                continue

            if not title and not fields and not dates:
                continue

            row_data = dict(fields)
            if title:
                row_data[TITLE_FIELD] = title

            result.rows.append(PreprocessedRow(
                row_number=row_number,
                title=title or None,
                row_data=row_data,
                dates=dates,
                section_header=current_section,
            ))

        return result

    def _extract_info_fields(self, cells: Sequence[Any], structure: SheetStructure) -> Dict[str, str]:
        fields = {}
        for header in structure.info_headers:
            if header.column >= len(cells):
                continue
            value = sanitize_text(cells[header.column])
            if value:
                fields[header.name] = value
        return fields

    def _extract_dates(self, cells: Sequence[Any], structure: SheetStructure) -> List[DatedCell]:
        """Convert day-of-month cells into ISO dates paired with week numbers."""
        dates = []
        for col in sorted(structure.calendar_columns):
            if col >= len(cells):
                continue
            day = as_int(cells[col])
            if day is None or not 1 <= day <= 31:
                continue

            calendar_col = structure.calendar_columns[col]
            try:
                day_date = date(structure.year, calendar_col.month + 1, day)
            except ValueError:
                # e.g. 30 in a February column
                continue

            dates.append(DatedCell(date=day_date.isoformat(), week=calendar_col.week))
        return dates
