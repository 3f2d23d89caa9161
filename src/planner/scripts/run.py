"""Command-line entry point for planner engine."""

import sys
from datetime import date
from pathlib import Path

# Add parent directory to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from planner_engine import (
    process_spreadsheet,
    process_description,
    commit_activities,
    save_to_json,
    validate_extraction,
)
from planner_engine.main import DEFAULT_DB_PATH, load_staged_json, open_repository
from planner_engine.preprocessor import SPREADSHEET_EXTENSIONS
from planner_engine.utils import IngestError, format_confidence_report


def _option(name: str, default=None):
    """Return the value following an option flag, if present."""
    if name in sys.argv:
        idx = sys.argv.index(name)
        if idx + 1 < len(sys.argv):
            return sys.argv[idx + 1]
    return default


def _positional_args() -> list:
    """Arguments that are neither flags nor flag values."""
    valued = {'--year', '--category', '--output', '--db', '--text', '--commit'}
    args = []
    skip = False
    for arg in sys.argv[1:]:
        if skip:
            skip = False
            continue
        if arg in valued:
            skip = True
            continue
        if arg.startswith('--'):
            continue
        args.append(arg)
    return args


def _print_usage() -> None:
    print("="*70)
    print("PLANNER INGEST - Command Line Interface")
    print("="*70)
    print("\nUsage:")
    print("  python scripts/run.py <spreadsheet.xlsx> [options]")
    print("  python scripts/run.py --text \"<description>\" [image/pdf files...] [options]")
    print("  python scripts/run.py --commit <staged.json> [--db path]")
    print("\nOptions:")
    print("  --year       Planning year (default: current year)")
    print("  --category   Restrict focus area matching to this category id")
    print("  --output     Output JSON file path")
    print("  --db         SQLite database path (default: planning_data.db)")
    print("  --seed       Insert the default focus areas if the database is empty")
    print("\nExamples:")
    print("  python scripts/run.py plan_2026.xlsx --year 2026")
    print("  python scripts/run.py --text \"Frukostmöte vecka 12\" poster.png")
    print("  python scripts/run.py --commit plan_2026_staged.json")


def main():
    """Main entry point for command-line execution."""

    positional = _positional_args()
    text = _option('--text')
    commit_file = _option('--commit')

    if not positional and text is None and commit_file is None:
        _print_usage()
        sys.exit(1)

    year = int(_option('--year', date.today().year))
    category_id = _option('--category')
    db_path = _option('--db', DEFAULT_DB_PATH)

    try:
        repository = open_repository(db_path, seed='--seed' in sys.argv)

        if commit_file:
            print("="*70)
            print("COMMITTING ACTIVITIES")
            print("="*70)
            staged = load_staged_json(commit_file)
            result = commit_activities(staged, repository=repository)
            output_path = _option('--output', Path(commit_file).stem + "_committed.json")
            save_to_json(result, output_path)
            return

        if text is not None:
            result = process_description(
                text, year, image_paths=positional, category_id=category_id, repository=repository
            )
            default_output = "description_staged.json"
        else:
            file_path = positional[0]
            if Path(file_path).suffix.lower() not in SPREADSHEET_EXTENSIONS:
                print(f"\n✗ Error: Unsupported file format")
                print("  Supported formats: XLSX, XLSM")
                sys.exit(1)
            result = process_spreadsheet(file_path, year, category_id=category_id, repository=repository)
            default_output = Path(file_path).stem + "_staged.json"

        # Validate results
        warnings = validate_extraction(result)
        if warnings:
            print("\n" + "="*70)
            print("VALIDATION WARNINGS")
            print("="*70)
            for warning in warnings:
                print(f"⚠ {warning}")

        # Display confidence report
        print("\n" + "="*70)
        print("CONFIDENCE ANALYSIS")
        print("="*70)
        print(format_confidence_report(result))

        print("\n" + "="*70)
        print("SAVING RESULTS")
        print("="*70)
        output_path = _option('--output', default_output)
        save_to_json(result, output_path)

        print("\n✓ Extraction completed successfully!")
        print(f"\nNext step: review '{output_path}', then run with --commit {output_path}")

    except IngestError as e:
        print(f"\n✗ {type(e).__name__}: {e}")
        sys.exit(1)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        print(f"\n✗ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
