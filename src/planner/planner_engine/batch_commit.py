"""Per-item batch commit with duplicate suppression."""

from dataclasses import replace
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .models import ActivityCandidate, ActivityStatus, BatchResult, FailedItem, SkippedItem
from .parser import filter_weeks
from .utils import BatchTooLarge, sanitize_text

MAX_BATCH_SIZE = 100

CandidateInput = Union[ActivityCandidate, Mapping[str, Any]]


def duplicate_key(title: Optional[str], focus_area_id: Optional[str], start_date: Optional[str]) -> str:
    """Normalized key identifying an activity for duplicate detection."""
    return f"{sanitize_text(title).lower()}|{focus_area_id}|{start_date or 'null'}"


class DuplicateKeySet:
    """Keys of activities already present, grown as a batch is committed."""

    def __init__(self, existing: Iterable[Any] = ()):
        self._keys = {
            duplicate_key(a.title, a.focus_area_id, a.start_date)
            for a in existing
        }

    def add_if_new(self, key: str) -> bool:
        """Add the key; return False if it was already present."""
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)


class BatchCommitter:
    """Commits confirmed activities one by one through a repository."""

    def __init__(self, repository: Any, max_batch_size: int = MAX_BATCH_SIZE):
        """
        Initialize the committer.

        Args:
            repository: Object with create_activity(candidate) and list_activities(...)
            max_batch_size: Largest batch accepted
        """
        self.repository = repository
        self.max_batch_size = max_batch_size

    def commit(
        self,
        candidates: Sequence[CandidateInput],
        existing: Optional[Iterable[Any]] = None
    ) -> BatchResult:
        """
        Commit a batch of candidates in input order.

        Duplicates of existing activities, or of earlier items in the same
        batch, are skipped. Validation and persistence failures are recorded
        per item and never abort the rest of the batch.

        Args:
            candidates: ActivityCandidate objects or dicts
            existing: Snapshot of committed activities; read from the
                repository once when omitted

        Returns:
            BatchResult where every input index appears exactly once

        Raises:
            BatchTooLarge: If the batch exceeds max_batch_size
        """
        if len(candidates) > self.max_batch_size:
            raise BatchTooLarge(
                f"Batch of {len(candidates)} activities exceeds the limit of {self.max_batch_size}"
            )

        items = [self._convert(c) for c in candidates]

        if existing is None:
            focus_area_ids = sorted({c.focus_area_id for c, _ in items if c is not None and c.focus_area_id})
            existing = self.repository.list_activities(focus_area_ids=focus_area_ids) if focus_area_ids else []

        keys = DuplicateKeySet(existing)
        result = BatchResult()

        for index, (candidate, error) in enumerate(items):
            error = error or self._validate(candidate)
            if error:
                result.failed.append(FailedItem(index=index, error=error))
                continue

            key = duplicate_key(candidate.title, candidate.focus_area_id, candidate.start_date)
            if not keys.add_if_new(key):
                result.skipped.append(SkippedItem(
                    index=index,
                    title=candidate.title,
                    reason="An activity with the same title, focus area and start date already exists",
                ))
                continue

            normalized = replace(
                candidate,
                title=sanitize_text(candidate.title),
                weeks=filter_weeks(candidate.weeks),
                status=ActivityStatus.from_string(candidate.status).value,
            )
            try:
                created = self.repository.create_activity(normalized)
            except Exception as e:
                print(f"    Warning: could not create activity {index} ({candidate.title}): {e}")
                result.failed.append(FailedItem(index=index, error=str(e)))
                continue

            result.created.append(created)

        return result

    @staticmethod
    def _convert(candidate: CandidateInput) -> Tuple[Optional[ActivityCandidate], Optional[str]]:
        """Return (candidate, None), or (None, error) for a malformed record."""
        if isinstance(candidate, ActivityCandidate):
            return candidate, None
        try:
            return ActivityCandidate.from_dict(dict(candidate)), None
        except (TypeError, ValueError) as e:
            return None, f"Invalid activity record: {e}"

    @staticmethod
    def _validate(candidate: ActivityCandidate) -> Optional[str]:
        missing: List[str] = []
        if not candidate.focus_area_id:
            missing.append('focus_area_id')
        if not sanitize_text(candidate.title):
            missing.append('title')
        if missing:
            return f"{' and '.join(missing)} required"

        if ActivityStatus.from_string(candidate.status) is None:
            return f"Unknown status: {candidate.status}"

        if any(isinstance(w, bool) or not isinstance(w, int) for w in candidate.weeks):
            return "weeks must be whole numbers"

        return None
