"""Errors, validation and utility functions for planning ingestion."""

import re
from pathlib import Path
from typing import Any, List, Optional

from .models import ExtractionResult


class IngestError(Exception):
    """Base class for ingestion pipeline errors."""
    pass


class ValidationError(IngestError):
    """Custom exception for validation errors."""
    pass


class StructureNotDetected(IngestError):
    """No month header row was found in the spreadsheet scan window."""
    pass


class ModelResponseInvalid(IngestError):
    """The model response is not a JSON array of candidate activities."""
    pass


class ModelCallError(IngestError):
    """The model call failed or timed out."""
    pass


class BatchTooLarge(IngestError):
    """A commit batch exceeds the maximum batch size."""
    pass


class PersistenceError(IngestError):
    """Writing an activity to the backing store failed."""
    pass


def validate_file_path(file_path: str, supported_extensions: set) -> Path:
    """
    Validate file path and extension.

    Args:
        file_path: Path to validate
        supported_extensions: Set of supported file extensions

    Returns:
        Validated Path object

    Raises:
        ValidationError: If validation fails
    """
    path = Path(file_path)

    if not path.exists():
        raise ValidationError(f"File not found: {path}")

    if not path.is_file():
        raise ValidationError(f"Path is not a file: {path}")

    if path.suffix.lower() not in supported_extensions:
        raise ValidationError(
            f"Unsupported file format: {path.suffix}. "
            f"Supported formats: {', '.join(sorted(supported_extensions))}"
        )

    return path


def sanitize_text(text: Any) -> str:
    """
    Sanitize a cell or model value into a single-line string.

    Args:
        text: Value to sanitize (non-strings are converted)

    Returns:
        Sanitized text, empty string for None
    """
    if text is None:
        return ""

    text = str(text)

    # Collapse whitespace, including line breaks inside cells
    text = re.sub(r'\s+', ' ', text)
    text = text.replace('\x00', '')

    return text.strip()


def optional_text(value: Any) -> Optional[str]:
    """Sanitize a value, mapping empty results to None."""
    text = sanitize_text(value)
    return text or None


def as_int(value: Any) -> Optional[int]:
    """
    Interpret a cell value as an integer.

    Accepts ints, integral floats and digit-only strings. Booleans are
    never numbers.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if re.fullmatch(r'\d{1,4}', text):
            return int(text)
    return None


def validate_extraction(result: ExtractionResult) -> List[str]:
    """
    Validate an extraction result and return warnings.

    Args:
        result: ExtractionResult to validate

    Returns:
        List of validation warning messages
    """
    warnings = []

    if not result.activities:
        warnings.append("No activities were extracted")
        return warnings

    unmatched = sum(1 for a in result.activities if not a.matched_subcategory_id)
    if unmatched > 0:
        warnings.append(f"{unmatched} activities have no matched focus area")

    needs_review = sum(1 for a in result.activities if a.needs_review)
    if needs_review > 0:
        warnings.append(f"{needs_review} activities need manual review")

    undated = sum(1 for a in result.activities if not a.start_date and not a.weeks)
    if undated > 0:
        warnings.append(f"{undated} activities have neither dates nor weeks")

    short_titles = sum(1 for a in result.activities if len(a.title.strip()) < 2)
    if short_titles > 0:
        warnings.append(f"{short_titles} activities have very short titles")

    return warnings


def format_confidence_report(result: ExtractionResult) -> str:
    """
    Generate a confidence report for the staged activities.

    Args:
        result: ExtractionResult to analyze

    Returns:
        Formatted report string
    """
    if not result.activities:
        return "No activities to analyze"

    scores = [a.confidence for a in result.activities]

    avg_score = sum(scores) / len(scores)
    min_score = min(scores)
    max_score = max(scores)

    high_confidence = sum(1 for s in scores if s >= 0.8)
    medium_confidence = sum(1 for s in scores if 0.5 <= s < 0.8)
    low_confidence = sum(1 for s in scores if s < 0.5)

    report = f"""
Confidence Report:
  Average: {avg_score:.2%}
  Range: {min_score:.2%} - {max_score:.2%}

  Distribution:
    High (≥80%): {high_confidence} activities
    Medium (50-80%): {medium_confidence} activities
    Low (<50%): {low_confidence} activities
"""

    return report.strip()


def is_supported_file(file_path: str, supported: set) -> bool:
    """
    Quick check if file is supported.

    Args:
        file_path: Path to check
        supported: Set of supported extensions

    Returns:
        True if file extension is supported
    """
    return Path(file_path).suffix.lower() in supported
