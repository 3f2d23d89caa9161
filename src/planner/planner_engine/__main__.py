"""Main module for running planner engine."""

import sys
from datetime import date

from planner_engine.main import process_spreadsheet

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m planner_engine <spreadsheet> [year]")
        print("\nExample: python -m planner_engine /path/to/plan.xlsx 2026")
        sys.exit(1)

    file_path = sys.argv[1]
    year = int(sys.argv[2]) if len(sys.argv) > 2 else date.today().year
    process_spreadsheet(file_path, year)
