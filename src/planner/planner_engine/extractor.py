"""Extraction orchestrator: builds model context and stages candidates."""

import json
from typing import Dict, List, Optional, Sequence, Any

from .calendar_weeks import weeks_between
from .matcher import CategoryMatcher, format_subcategories_for_prompt, match_category
from .model_client import ImageBlob
from .models import (
    ExtractionResult,
    PreprocessedRow,
    StagedActivity,
    SubcategoryInfo,
)
from .parser import ActivityResponseParser, CandidateActivity, filter_weeks
from .row_preprocessor import RowPreprocessor
from .structure_detector import StructureDetector
from .utils import ModelResponseInvalid, ValidationError, sanitize_text

SYSTEM_INSTRUCTION = """
You extract planning activities for an organisation's annual plan.
Input is either rows from a planning spreadsheet or a free-text/image description,
usually in Swedish.

Return ONLY a JSON array. No markdown. No commentary. Each element:
{
  "title": string,
  "description": string or null,
  "suggested_focus_area": name of the best fitting focus area from the list, or null,
  "start_date": "YYYY-MM-DD" or null,
  "end_date": "YYYY-MM-DD" or null,
  "weeks": [week numbers 1-52],
  "responsible": string or null,
  "purpose": string or null,
  "theme": string or null,
  "target_group": string or null,
  "row": spreadsheet row number the activity came from, or null
}

Rules:
- Use only focus area names from the provided list.
- Use the given year for dates that lack one.
- Do not invent dates; leave them null when unknown.
- One element per activity. An empty array is valid.
""".strip()

# Info column headers mapped onto activity fields
FIELD_ALIASES = {
    'responsible': ('ansvarig', 'ansvariga', 'responsible', 'owner'),
    'purpose': ('syfte', 'purpose'),
    'theme': ('tema', 'theme'),
    'target_group': ('målgrupp', 'malgrupp', 'target group', 'target_group', 'audience'),
    'description': ('beskrivning', 'description', 'kommentar', 'comment'),
}


class ActivityExtractor:
    """Runs the model over spreadsheet rows or descriptions and stages the results."""

    def __init__(
        self,
        model_client: Any,
        matcher: Optional[CategoryMatcher] = None,
        detector: Optional[StructureDetector] = None,
        row_preprocessor: Optional[RowPreprocessor] = None,
        parser: Optional[ActivityResponseParser] = None
    ):
        """
        Initialize the extractor.

        Args:
            model_client: Object with generate(system_instruction, content) -> str
            matcher: Approximate category matcher (defaults to RapidFuzzMatcher)
            detector: Spreadsheet structure detector
            row_preprocessor: Spreadsheet row preprocessor
            parser: Model response parser
        """
        self.model_client = model_client
        self.matcher = matcher
        self.detector = detector or StructureDetector()
        self.row_preprocessor = row_preprocessor or RowPreprocessor()
        self.parser = parser or ActivityResponseParser()

    def extract_from_grid(
        self,
        grid: Sequence[Sequence[Any]],
        subcategories: Sequence[SubcategoryInfo],
        year: int,
        category_id: Optional[str] = None
    ) -> ExtractionResult:
        """
        Extract staged activities from a spreadsheet grid.

        Args:
            grid: Row-major cell values of the first worksheet
            subcategories: Candidate subcategories
            year: Year selected by the caller
            category_id: Restrict matching to this category

        Returns:
            ExtractionResult

        Raises:
            StructureNotDetected: If the sheet has no month header row
            ModelCallError: If the model call fails or times out
        """
        notes: List[str] = []

        structure = self.detector.detect(grid, year)
        if structure.detected_year is not None and structure.detected_year != year:
            notes.append(f"The sheet states year {structure.detected_year}; it was used instead of {year}")

        preprocessed = self.row_preprocessor.process(grid, structure)
        if preprocessed.truncated:
            notes.append(f"Only the first {self.row_preprocessor.max_rows} data rows were read")

        if not preprocessed.rows:
            notes.append("No activity rows found in the spreadsheet")
            return ExtractionResult(parsing_notes=notes)

        candidates = self._subcategories_for(subcategories, category_id)
        content = (
            f"Year: {structure.year}\n\n"
            f"Focus areas:\n{format_subcategories_for_prompt(candidates)}\n\n"
            f"Section headers found: {json.dumps(preprocessed.section_headers, ensure_ascii=False)}\n\n"
            f"Spreadsheet rows:\n"
            f"{json.dumps([r.to_summary() for r in preprocessed.rows], ensure_ascii=False, indent=1)}"
        )

        result = self._run_model(content, subcategories, category_id, preprocessed.rows)
        result.parsing_notes[:0] = notes
        return result

    def extract_from_description(
        self,
        description: str,
        subcategories: Sequence[SubcategoryInfo],
        year: int,
        category_id: Optional[str] = None,
        images: Sequence[ImageBlob] = ()
    ) -> ExtractionResult:
        """
        Extract staged activities from free text and optional images.

        Args:
            description: Free-text description of the activities
            subcategories: Candidate subcategories
            year: Year used for dates without a year
            category_id: Restrict matching to this category
            images: Encoded images sent alongside the text

        Returns:
            ExtractionResult

        Raises:
            ValidationError: If neither description nor images are given
            ModelCallError: If the model call fails or times out
        """
        description = (description or "").strip()
        if not description and not images:
            raise ValidationError("A description or at least one image is required")

        candidates = self._subcategories_for(subcategories, category_id)
        text = (
            f"Year: {year}\n\n"
            f"Focus areas:\n{format_subcategories_for_prompt(candidates)}\n\n"
            f"Description:\n{description or '(see attached images)'}"
        )
        content = [text, *images] if images else text

        return self._run_model(content, subcategories, category_id, rows=[])

    def _run_model(
        self,
        content: Any,
        subcategories: Sequence[SubcategoryInfo],
        category_id: Optional[str],
        rows: List[PreprocessedRow]
    ) -> ExtractionResult:
        result = ExtractionResult()
        response_text = self.model_client.generate(SYSTEM_INSTRUCTION, content)

        try:
            parsed = self.parser.parse(response_text)
        except ModelResponseInvalid as e:
            print(f"    Warning: {e}")
            result.parsing_notes.append(f"Could not interpret the AI response: {e}")
            return result

        rows_by_number = {r.row_number: r for r in rows}
        rows_by_title = {r.title.lower(): r for r in rows if r.title}

        for candidate in parsed:
            row = self._source_row(candidate, rows_by_number, rows_by_title)
            result.activities.append(self._stage(candidate, row, subcategories, category_id))

        review_count = sum(1 for a in result.activities if a.needs_review)
        if review_count:
            result.parsing_notes.append(f"{review_count} activities need a manual focus area review")

        return result

    def _stage(
        self,
        candidate: CandidateActivity,
        row: Optional[PreprocessedRow],
        subcategories: Sequence[SubcategoryInfo],
        category_id: Optional[str]
    ) -> StagedActivity:
        """Match the candidate's category and fill gaps from its source row."""
        suggested = candidate.suggested_focus_area or ""
        section = row.section_header if row else None

        # The section header is the stronger signal for spreadsheet rows
        source_name = section or suggested
        match = match_category(source_name, subcategories, category_id, self.matcher)
        if section and match.subcategory_id is None and suggested:
            fallback = match_category(suggested, subcategories, category_id, self.matcher)
            if fallback.subcategory_id is not None:
                source_name, match = suggested, fallback

        start_date = candidate.start_date.isoformat() if candidate.start_date else None
        end_date = candidate.end_date.isoformat() if candidate.end_date else None
        weeks = list(candidate.weeks)
        row_fields = self._row_fields(row) if row else {}

        if row and row.dates:
            if not start_date:
                start_date = min(d.date for d in row.dates)
                end_date = end_date or max(d.date for d in row.dates)
            if not weeks:
                weeks = filter_weeks(row.weeks)

        if not weeks and start_date:
            weeks = weeks_between(start_date, end_date)

        return StagedActivity(
            title=candidate.title,
            suggested_category_name=source_name,
            matched_subcategory_id=match.subcategory_id,
            matched_subcategory_name=match.subcategory_name,
            confidence=match.confidence,
            needs_review=match.needs_review,
            review_reason=match.review_reason,
            description=candidate.description or row_fields.get('description'),
            start_date=start_date,
            end_date=end_date,
            weeks=weeks,
            responsible=candidate.responsible or row_fields.get('responsible'),
            purpose=candidate.purpose or row_fields.get('purpose'),
            theme=candidate.theme or row_fields.get('theme'),
            target_group=candidate.target_group or row_fields.get('target_group'),
            source_row=row.row_number if row else candidate.row,
        )

    @staticmethod
    def _source_row(
        candidate: CandidateActivity,
        rows_by_number: Dict[int, PreprocessedRow],
        rows_by_title: Dict[str, PreprocessedRow]
    ) -> Optional[PreprocessedRow]:
        if candidate.row is not None and candidate.row in rows_by_number:
            return rows_by_number[candidate.row]
        return rows_by_title.get(candidate.title.lower())

    @staticmethod
    def _row_fields(row: PreprocessedRow) -> Dict[str, str]:
        fields = {}
        for header, value in row.row_data.items():
            key = sanitize_text(header).lower()
            for field_name, aliases in FIELD_ALIASES.items():
                if key in aliases:
                    fields.setdefault(field_name, value)
        return fields

    @staticmethod
    def _subcategories_for(
        subcategories: Sequence[SubcategoryInfo],
        category_id: Optional[str]
    ) -> List[SubcategoryInfo]:
        return [s for s in subcategories if category_id is None or s.category_id == category_id]
