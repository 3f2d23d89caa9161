"""Strict decoding of the model's candidate-activity JSON."""

import json
import re
from datetime import date
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from .calendar_weeks import MAX_WEEK
from .utils import ModelResponseInvalid

_FENCE_RE = re.compile(r'^```(?:json)?\s*(.*?)\s*```$', re.DOTALL | re.IGNORECASE)


def filter_weeks(values: Iterable[int]) -> List[int]:
    """Keep week numbers in 1-52, sorted and deduplicated."""
    return sorted({w for w in values if 1 <= w <= MAX_WEEK})


class CandidateActivity(BaseModel):
    """One activity as returned by the model."""
    model_config = ConfigDict(extra='ignore', str_strip_whitespace=True)

    title: str = Field(min_length=1)
    suggested_focus_area: Optional[str]
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    weeks: List[int] = Field(default_factory=list)
    responsible: Optional[str] = None
    purpose: Optional[str] = None
    theme: Optional[str] = None
    target_group: Optional[str] = None
    row: Optional[int] = None  # spreadsheet row number echoed back by the model

    @field_validator(
        'description', 'start_date', 'end_date', 'responsible',
        'purpose', 'theme', 'target_group', mode='before'
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator('weeks', mode='before')
    @classmethod
    def _null_weeks(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator('weeks')
    @classmethod
    def _valid_weeks(cls, value: List[int]) -> List[int]:
        # Models sometimes invent week 0 or 53+; those are dropped, not errors
        return filter_weeks(value)


_CANDIDATES = TypeAdapter(List[CandidateActivity])


class ActivityResponseParser:
    """Decodes a model response into validated CandidateActivity records."""

    def parse(self, text: Optional[str]) -> List[CandidateActivity]:
        """
        Parse the raw response text.

        Any shape mismatch rejects the whole response; partially valid
        payloads are never passed on.

        Args:
            text: Raw model response

        Returns:
            List of CandidateActivity

        Raises:
            ModelResponseInvalid: If the text is not a JSON array of activities
        """
        if not text or not text.strip():
            raise ModelResponseInvalid("Model returned an empty response")

        payload = self._strip_code_fence(text.strip())

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ModelResponseInvalid(f"Model response is not valid JSON: {e.msg}") from e

        if not isinstance(data, list):
            raise ModelResponseInvalid(
                f"Model response is not a JSON array (got {type(data).__name__})"
            )

        try:
            return _CANDIDATES.validate_python(data)
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = '.'.join(str(part) for part in first['loc'])
            raise ModelResponseInvalid(
                f"Model response does not match the activity schema "
                f"({e.error_count()} error(s), first at {location}: {first['msg']})"
            ) from e

    @staticmethod
    def _strip_code_fence(text: str) -> str:
        match = _FENCE_RE.match(text)
        return match.group(1) if match else text
