"""Fuzzy matching of free-text category names to subcategories."""

from typing import List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process, utils as fuzz_utils

from .calendar_weeks import MONTHS
from .models import MatchResult, SubcategoryInfo

# At or above this confidence a fuzzy match is accepted without review
CONFIDENCE_THRESHOLD = 0.8

# rapidfuzz score (0-100) a candidate must reach to count as a match at all
FUZZY_SCORE_CUTOFF = 60


class CategoryMatcher:
    """Interface for approximate name matching."""

    def best_match(self, query: str, candidates: Sequence[str]) -> Optional[Tuple[int, float]]:
        """
        Find the closest candidate name.

        Args:
            query: Free-text name to look up
            candidates: Candidate names

        Returns:
            (index into candidates, confidence in [0, 1]) or None if nothing matches
        """
        raise NotImplementedError


class RapidFuzzMatcher(CategoryMatcher):
    """CategoryMatcher backed by rapidfuzz's weighted ratio."""

    def __init__(self, score_cutoff: float = FUZZY_SCORE_CUTOFF, scorer=fuzz.WRatio):
        self.score_cutoff = score_cutoff
        self.scorer = scorer

    def best_match(self, query: str, candidates: Sequence[str]) -> Optional[Tuple[int, float]]:
        if not candidates:
            return None

        # WRatio mixes full, token and partial ratios, so a match can sit
        # anywhere in the candidate string.
        match = process.extractOne(
            query,
            list(candidates),
            scorer=self.scorer,
            processor=fuzz_utils.default_process,
            score_cutoff=self.score_cutoff,
        )
        if match is None:
            return None

        _, score, index = match
        return index, min(max(score / 100.0, 0.0), 1.0)


_default_matcher = RapidFuzzMatcher()


def match_category(
    suggested_name: Optional[str],
    subcategories: Sequence[SubcategoryInfo],
    category_id: Optional[str] = None,
    matcher: Optional[CategoryMatcher] = None
) -> MatchResult:
    """
    Match a suggested category name against the available subcategories.

    Exact (case-insensitive) names always win with full confidence; only
    when there is none does approximate matching run.

    Args:
        suggested_name: Name suggested by the model or a section header
        subcategories: Candidate subcategories
        category_id: Restrict candidates to this parent category
        matcher: Approximate matcher (defaults to RapidFuzzMatcher)

    Returns:
        MatchResult with confidence and review flag
    """
    name = suggested_name or ""

    if not name.strip():
        return MatchResult(
            subcategory_id=None,
            subcategory_name=name,
            confidence=0.0,
            needs_review=True,
            review_reason="No focus area given",
        )

    available = [s for s in subcategories if category_id is None or s.category_id == category_id]
    if not available:
        return MatchResult(
            subcategory_id=None,
            subcategory_name=name,
            confidence=0.0,
            needs_review=True,
            review_reason="No focus areas available",
        )

    query = name.strip()
    for sub in available:
        if sub.name.lower() == query.lower():
            return MatchResult(
                subcategory_id=sub.id,
                subcategory_name=sub.name,
                confidence=1.0,
                needs_review=False,
            )

    matcher = matcher or _default_matcher
    best = matcher.best_match(query, [s.name for s in available])

    if best is None:
        return MatchResult(
            subcategory_id=None,
            subcategory_name=name,
            confidence=0.0,
            needs_review=True,
            review_reason=f'Could not match "{query}" to any focus area',
        )

    index, confidence = best
    sub = available[index]

    if confidence >= CONFIDENCE_THRESHOLD:
        return MatchResult(
            subcategory_id=sub.id,
            subcategory_name=sub.name,
            confidence=confidence,
            needs_review=False,
        )

    return MatchResult(
        subcategory_id=sub.id,
        subcategory_name=sub.name,
        confidence=confidence,
        needs_review=True,
        review_reason=f'Uncertain match: "{query}" → "{sub.name}" ({round(confidence * 100)}% confidence)',
    )


def match_categories(
    suggestions: Sequence[Optional[str]],
    subcategories: Sequence[SubcategoryInfo],
    category_id: Optional[str] = None,
    matcher: Optional[CategoryMatcher] = None
) -> List[MatchResult]:
    """Match several suggestions at once."""
    return [match_category(name, subcategories, category_id, matcher) for name in suggestions]


def format_subcategories_for_prompt(subcategories: Sequence[SubcategoryInfo]) -> str:
    """List subcategories with their month range or theme annotation."""
    lines = []
    for sub in subcategories:
        if sub.is_time_based:
            start = MONTHS[sub.start_month].name
            end = MONTHS[sub.end_month].name
            lines.append(f"- {sub.name} (months {sub.start_month + 1}-{sub.end_month + 1}, {start}-{end})")
        else:
            lines.append(f"- {sub.name} (theme-based)")
    return '\n'.join(lines)
