"""Core execution logic for planner engine."""

import json
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from .batch_commit import BatchCommitter
from .database import PlanningRepository, create_tables, get_db_engine
from .extractor import ActivityExtractor
from .model_client import get_model_client
from .models import ActivityCandidate, BatchResult, ExtractionResult, StagedActivity
from .preprocessor import DocumentPreprocessor, SPREADSHEET_EXTENSIONS
from .utils import IngestError, ValidationError, validate_file_path

DEFAULT_DB_PATH = "planning_data.db"


def open_repository(db_path: str = DEFAULT_DB_PATH, seed: bool = False) -> PlanningRepository:
    """Create tables if needed and return a repository, optionally seeding the taxonomy."""
    engine = get_db_engine(db_path)
    create_tables(engine)
    repository = PlanningRepository(engine)
    if seed and repository.seed_default_taxonomy():
        print("✓ Seeded default focus areas")
    return repository


def process_spreadsheet(
    file_path: str,
    year: int,
    category_id: Optional[str] = None,
    repository: Optional[PlanningRepository] = None,
    model_client: Optional[Any] = None
) -> ExtractionResult:
    """
    Extract staged activities from a planning spreadsheet.

    Args:
        file_path: Path to an .xlsx/.xlsm file
        year: Year selected by the user (a year in the sheet title wins)
        category_id: Restrict focus area matching to this category
        repository: Planning repository (default: project SQLite database)
        model_client: Generative model client (default: Gemini from environment)

    Returns:
        ExtractionResult with staged activities and parsing notes

    Raises:
        ValidationError: If the file is missing or not a spreadsheet
        StructureNotDetected: If no month header row is found
        ModelCallError: If the model call fails or times out
    """
    try:
        path = validate_file_path(file_path, SPREADSHEET_EXTENSIONS)
        repository = repository or open_repository()

        print(f"▶ Processing Spreadsheet: {path.name}")

        print("\n[1/4] Reading spreadsheet...")
        grid = DocumentPreprocessor().load_spreadsheet(path)
        print(f"✓ Read {len(grid)} rows")

        print("\n[2/4] Loading focus areas...")
        subcategories = repository.list_subcategories()
        print(f"✓ Loaded {len(subcategories)} focus areas")

        print("\n[3/4] Extracting activities with the AI model...")
        extractor = ActivityExtractor(get_model_client(model_client))
        result = extractor.extract_from_grid(grid, subcategories, year, category_id)
        print(f"✓ Staged {len(result.activities)} activities")

        print("\n[4/4] Extraction Summary")
        print(f"{'─'*60}")
        _print_result_summary(result)

        return result

    except ValidationError as e:
        print(f"\n✗ Validation error: {str(e)}")
        raise
    except IngestError as e:
        print(f"\n✗ Error during extraction: {type(e).__name__}: {str(e)}")
        raise


def process_description(
    description: str,
    year: int,
    image_paths: Sequence[Union[str, Path]] = (),
    category_id: Optional[str] = None,
    repository: Optional[PlanningRepository] = None,
    model_client: Optional[Any] = None
) -> ExtractionResult:
    """
    Extract staged activities from a free-text description and images/PDFs.

    Args:
        description: Free-text description
        year: Year used for dates without a year
        image_paths: Image or PDF files sent to the model
        category_id: Restrict focus area matching to this category
        repository: Planning repository (default: project SQLite database)
        model_client: Generative model client (default: Gemini from environment)

    Returns:
        ExtractionResult with staged activities and parsing notes
    """
    try:
        repository = repository or open_repository()

        print("▶ Processing Description")

        print("\n[1/4] Preparing images...")
        images = DocumentPreprocessor().load_images(list(image_paths)) if image_paths else []
        print(f"✓ Prepared {len(images)} image(s)")

        print("\n[2/4] Loading focus areas...")
        subcategories = repository.list_subcategories()
        print(f"✓ Loaded {len(subcategories)} focus areas")

        print("\n[3/4] Extracting activities with the AI model...")
        extractor = ActivityExtractor(get_model_client(model_client))
        result = extractor.extract_from_description(description, subcategories, year, category_id, images)
        print(f"✓ Staged {len(result.activities)} activities")

        print("\n[4/4] Extraction Summary")
        print(f"{'─'*60}")
        _print_result_summary(result)

        return result

    except ValidationError as e:
        print(f"\n✗ Validation error: {str(e)}")
        raise
    except IngestError as e:
        print(f"\n✗ Error during extraction: {type(e).__name__}: {str(e)}")
        raise


def commit_activities(
    activities: Sequence[Union[StagedActivity, ActivityCandidate, dict]],
    repository: Optional[PlanningRepository] = None
) -> BatchResult:
    """
    Commit confirmed activities, skipping duplicates.

    Args:
        activities: Confirmed staged activities, candidates or dicts
        repository: Planning repository (default: project SQLite database)

    Returns:
        BatchResult partitioned into created, skipped and failed
    """
    repository = repository or open_repository()
    candidates = [a.to_candidate() if isinstance(a, StagedActivity) else a for a in activities]

    result = BatchCommitter(repository).commit(candidates)

    print(f"✓ Created {len(result.created)}, skipped {len(result.skipped)}, failed {len(result.failed)}")
    for item in result.skipped:
        print(f"  → Skipped #{item.index} {item.title}: {item.reason}")
    for item in result.failed:
        print(f"  ✗ Failed #{item.index}: {item.error}")

    return result


def save_to_json(result: Union[ExtractionResult, BatchResult], output_path: str) -> None:
    """
    Save an extraction or commit result to a JSON file.

    Args:
        result: ExtractionResult or BatchResult to save
        output_path: Path to output JSON file
    """
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)

    print(f"✓ Saved to: {output_path}")


def load_staged_json(input_path: str) -> List[Any]:
    """
    Load confirmed activities from a file written by save_to_json.

    Records are returned as-is; reviewers may have edited them (e.g. added
    a focus_area_id), so each one is validated at commit time.

    Args:
        input_path: Path to the reviewed JSON file

    Returns:
        List of activity records

    Raises:
        ValidationError: If the file holds no activity list
    """
    with open(input_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, list):
        return data
    if not isinstance(data, dict) or not isinstance(data.get('activities', []), list):
        raise ValidationError(f"No activity list found in {input_path}")
    return list(data.get('activities', []))


def _print_result_summary(result: ExtractionResult) -> None:
    """Print a summary of the staged activities."""

    print(f"  Total Activities: {len(result.activities)}")

    matched = sum(1 for a in result.activities if a.matched_subcategory_id)
    review = sum(1 for a in result.activities if a.needs_review)
    print(f"    Matched: {matched}")
    print(f"    Needs review: {review}")

    if result.parsing_notes:
        print("\n  Notes:")
        for note in result.parsing_notes:
            print(f"    - {note}")

    # Show first few activities as examples
    if result.activities:
        print("\n  Sample Activities:")
        for i, activity in enumerate(result.activities[:3], 1):
            title = activity.title[:40] + "..." if len(activity.title) > 40 else activity.title
            focus = activity.matched_subcategory_name or "N/A"
            weeks = ', '.join(str(w) for w in activity.weeks) or "N/A"
            print(f"    {i}. {title} | {focus} ({activity.confidence:.0%}) | v. {weeks}")

        if len(result.activities) > 3:
            print(f"    ... and {len(result.activities) - 3} more activities")
