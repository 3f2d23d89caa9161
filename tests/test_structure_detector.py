import pytest

from planner_engine.models import CalendarColumn, InfoHeader
from planner_engine.structure_detector import StructureDetector
from planner_engine.utils import StructureNotDetected


def test_detects_header_rows_info_columns_and_calendar(scenario_grid):
    structure = StructureDetector().detect(scenario_grid, 2026)

    assert structure.month_header_row == 0
    assert structure.week_header_row == 1
    assert structure.data_start_row == 2
    assert structure.year == 2026
    assert structure.detected_year is None
    assert structure.info_headers == [InfoHeader(column=1, name="Responsible")]
    assert structure.calendar_columns == {
        2: CalendarColumn(month=0, week=1),
        3: CalendarColumn(month=0, week=2),
    }


def test_year_in_title_row_overrides_fallback():
    grid = [
        ["Aktivitetsplan 2025"],
        ["Aktivitet", "Ansvarig", "Jan", None, "Feb"],
        [None, None, 1, 2, 6],
    ]

    structure = StructureDetector().detect(grid, 2026)

    assert structure.year == 2025
    assert structure.detected_year == 2025
    assert structure.month_header_row == 1
    assert [h.name for h in structure.info_headers] == ["Aktivitet", "Ansvarig"]


def test_month_is_carried_forward_across_merged_header_cells():
    grid = [
        ["", "Ansvarig", "Jan", None, "Feb", None],
        ["", "", 1, 2, 6, 7],
    ]

    columns = StructureDetector().detect(grid, 2026).calendar_columns

    assert columns[3] == CalendarColumn(month=0, week=2)
    assert columns[4] == CalendarColumn(month=1, week=6)
    assert columns[5] == CalendarColumn(month=1, week=7)


def test_year_in_data_rows_is_ignored():
    grid = [
        ["", "Ansvarig", "Januari"],
        ["", "", 2],
        ["Uppföljning 2025", "AB", 15],
    ]

    structure = StructureDetector().detect(grid, 2026)

    assert structure.year == 2026
    assert structure.detected_year is None


def test_year_scan_stops_at_month_header():
    grid = [
        ["Plan"],
        ["", "Januari", "Februari 2024"],
        ["", 1, 6],
    ]

    assert StructureDetector().detect(grid, 2026).year == 2026


def test_numeric_year_cell_is_detected():
    grid = [
        [2024, "Plan"],
        ["", "Mars", "Mars"],
        ["", 10, 11],
    ]

    assert StructureDetector().detect(grid, 2026).year == 2024


def test_invalid_week_cells_are_not_bound():
    grid = [
        ["", "Mars", "Mars", "Mars", "Mars", "Mars"],
        ["", 0, 53, "v.10", True, 11.0],
    ]

    columns = StructureDetector().detect(grid, 2026).calendar_columns

    assert columns == {5: CalendarColumn(month=2, week=11)}


def test_missing_month_header_raises():
    grid = [
        ["Plan 2026"],
        ["Aktivitet", "Ansvarig"],
        ["Kickoff", "AB"],
    ]

    with pytest.raises(StructureNotDetected):
        StructureDetector().detect(grid, 2026)


def test_month_header_outside_scan_window_raises():
    grid = [[None]] * 5 + [["", "Januari"], ["", 1]]

    with pytest.raises(StructureNotDetected):
        StructureDetector().detect(grid, 2026)


def test_empty_grid_raises():
    with pytest.raises(StructureNotDetected):
        StructureDetector().detect([], 2026)
