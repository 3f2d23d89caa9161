"""Data models for planning-data ingestion."""

from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any
from enum import Enum


class ActivityStatus(Enum):
    """Enumeration for activity statuses."""
    ONGOING = "ongoing"
    DECIDED = "decided"
    COMPLETED = "completed"

    @classmethod
    def from_string(cls, status_str: str) -> Optional['ActivityStatus']:
        """
        Parse status from English or Swedish labels.

        Args:
            status_str: String representation of status (e.g., "ongoing", "Beslutad")

        Returns:
            ActivityStatus enum or None if not matched
        """
        if not status_str or not isinstance(status_str, str):
            return None

        status_str = status_str.strip().lower()

        status_mapping = {
            'ongoing': cls.ONGOING, 'pågående': cls.ONGOING,
            'decided': cls.DECIDED, 'beslutad': cls.DECIDED,
            'completed': cls.COMPLETED, 'genomförd': cls.COMPLETED,
        }

        return status_mapping.get(status_str)


@dataclass
class SubcategoryInfo:
    """A subcategory (focus area) as seen by the matcher."""
    id: str
    name: str
    category_id: Optional[str] = None
    color: str = ""
    start_month: Optional[int] = None  # 0-11, None for theme-based
    end_month: Optional[int] = None
    sort_order: int = 0

    @property
    def is_time_based(self) -> bool:
        return self.start_month is not None and self.end_month is not None


@dataclass
class InfoHeader:
    """A free-text column that precedes the calendar columns."""
    column: int
    name: str


@dataclass
class CalendarColumn:
    """Month (0-11) and week number bound to a calendar column."""
    month: int
    week: int


@dataclass
class SheetStructure:
    """Layout detected in the header block of a planning spreadsheet."""
    month_header_row: int
    week_header_row: int
    year: int
    info_headers: List[InfoHeader] = field(default_factory=list)
    calendar_columns: Dict[int, CalendarColumn] = field(default_factory=dict)
    detected_year: Optional[int] = None

    @property
    def data_start_row(self) -> int:
        return self.week_header_row + 1


@dataclass
class DatedCell:
    """A calendar cell converted into an ISO date and its column's week."""
    date: str  # YYYY-MM-DD
    week: int


@dataclass
class PreprocessedRow:
    """A spreadsheet data row ready to be summarised for the model."""
    row_number: int  # 1-based, as shown in the spreadsheet
    title: Optional[str] = None
    row_data: Dict[str, str] = field(default_factory=dict)
    dates: List[DatedCell] = field(default_factory=list)
    section_header: Optional[str] = None

    @property
    def weeks(self) -> List[int]:
        return sorted({d.week for d in self.dates})

    def to_summary(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = {'row': self.row_number}
        summary.update(self.row_data)
        if self.dates:
            summary['dates'] = [asdict(d) for d in self.dates]
        if self.section_header:
            summary['section'] = self.section_header
        return summary


@dataclass
class PreprocessResult:
    """Rows produced by the row preprocessor."""
    rows: List[PreprocessedRow] = field(default_factory=list)
    section_headers: List[str] = field(default_factory=list)
    truncated: bool = False


@dataclass
class MatchResult:
    """Outcome of matching free text to a subcategory."""
    subcategory_id: Optional[str]
    subcategory_name: str
    confidence: float
    needs_review: bool
    review_reason: Optional[str] = None


@dataclass
class ActivityCandidate:
    """An activity ready to be committed by the batch commit engine."""
    focus_area_id: Optional[str]
    title: Optional[str]
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    weeks: List[int] = field(default_factory=list)
    responsible: Optional[str] = None
    purpose: Optional[str] = None
    theme: Optional[str] = None
    target_group: Optional[str] = None
    status: str = ActivityStatus.ONGOING.value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActivityCandidate':
        """Build a candidate from a confirmed JSON record (staged or plain)."""
        return cls(
            focus_area_id=data.get('focus_area_id') or data.get('matched_subcategory_id'),
            title=data.get('title'),
            description=data.get('description'),
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            weeks=list(data.get('weeks') or []),
            responsible=data.get('responsible'),
            purpose=data.get('purpose'),
            theme=data.get('theme'),
            target_group=data.get('target_group'),
            status=data.get('status') or ActivityStatus.ONGOING.value,
        )


@dataclass
class StagedActivity:
    """A not-yet-committed activity awaiting human confirmation."""
    title: str
    suggested_category_name: str
    matched_subcategory_id: Optional[str]
    matched_subcategory_name: str
    confidence: float
    needs_review: bool
    review_reason: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    weeks: List[int] = field(default_factory=list)
    responsible: Optional[str] = None
    purpose: Optional[str] = None
    theme: Optional[str] = None
    target_group: Optional[str] = None
    status: str = ActivityStatus.ONGOING.value
    source_row: Optional[int] = None

    def to_candidate(self) -> ActivityCandidate:
        return ActivityCandidate(
            focus_area_id=self.matched_subcategory_id,
            title=self.title,
            description=self.description,
            start_date=self.start_date,
            end_date=self.end_date,
            weeks=list(self.weeks),
            responsible=self.responsible,
            purpose=self.purpose,
            theme=self.theme,
            target_group=self.target_group,
            status=self.status,
        )

    def __str__(self) -> str:
        category = self.matched_subcategory_name or "Unmatched"
        return f"{self.title} [{category} {self.confidence:.0%}]"


@dataclass
class ExtractionResult:
    """Staged activities plus notes about how the input was interpreted."""
    activities: List[StagedActivity] = field(default_factory=list)
    parsing_notes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'activities': [asdict(a) for a in self.activities],
            'parsing_notes': list(self.parsing_notes),
        }

    def __len__(self) -> int:
        return len(self.activities)


@dataclass
class SkippedItem:
    """A batch item that duplicates an existing or earlier activity."""
    index: int
    title: str
    reason: str


@dataclass
class FailedItem:
    """A batch item that failed validation or persistence."""
    index: int
    error: str


@dataclass
class BatchResult:
    """Three-way partition of a batch commit."""
    created: List[Any] = field(default_factory=list)
    skipped: List[SkippedItem] = field(default_factory=list)
    failed: List[FailedItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'created': [a.to_dict() if hasattr(a, 'to_dict') else a for a in self.created],
            'skipped': [asdict(s) for s in self.skipped],
            'failed': [asdict(f) for f in self.failed],
        }

    def __len__(self) -> int:
        return len(self.created) + len(self.skipped) + len(self.failed)
