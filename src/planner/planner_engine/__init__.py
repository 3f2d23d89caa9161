"""Planner Engine Package for planning-data ingestion."""

__version__ = "0.1.0"

from .main import process_spreadsheet, process_description, commit_activities, save_to_json
from .models import StagedActivity, ActivityCandidate, MatchResult, BatchResult, ExtractionResult, SubcategoryInfo
from .calendar_weeks import iso_week_of, month_of_week
from .structure_detector import StructureDetector
from .row_preprocessor import RowPreprocessor
from .matcher import CategoryMatcher, RapidFuzzMatcher, match_category
from .extractor import ActivityExtractor
from .batch_commit import BatchCommitter
from .utils import validate_extraction, is_supported_file

__all__ = [
    'process_spreadsheet',
    'process_description',
    'commit_activities',
    'save_to_json',
    'StagedActivity',
    'ActivityCandidate',
    'MatchResult',
    'BatchResult',
    'ExtractionResult',
    'SubcategoryInfo',
    'iso_week_of',
    'month_of_week',
    'StructureDetector',
    'RowPreprocessor',
    'CategoryMatcher',
    'RapidFuzzMatcher',
    'match_category',
    'ActivityExtractor',
    'BatchCommitter',
    'validate_extraction',
    'is_supported_file',
]
