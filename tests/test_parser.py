import json
from datetime import date

import pytest

from planner_engine.parser import ActivityResponseParser, filter_weeks
from planner_engine.utils import ModelResponseInvalid


def _parse(payload):
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return ActivityResponseParser().parse(text)


def test_parses_complete_activity():
    [activity] = _parse([{
        "title": "Frukostmöte",
        "description": "Företagsfrukost i centrum",
        "suggested_focus_area": "Mod att växa",
        "start_date": "2026-03-12",
        "end_date": "2026-03-12",
        "weeks": [11],
        "responsible": "AB",
        "purpose": "Nätverkande",
        "theme": "Bransch",
        "target_group": "Företagare",
        "row": 7,
    }])

    assert activity.title == "Frukostmöte"
    assert activity.start_date == date(2026, 3, 12)
    assert activity.weeks == [11]
    assert activity.row == 7


def test_empty_array_is_valid():
    assert _parse("[]") == []


@pytest.mark.parametrize("text", ["not json", "", "   ", None, "[{]"])
def test_non_json_is_rejected(text):
    with pytest.raises(ModelResponseInvalid):
        ActivityResponseParser().parse(text)


@pytest.mark.parametrize("payload", [
    {"title": "Kickoff", "suggested_focus_area": "Mod att växa"},
    "just a string",
    42,
])
def test_non_array_is_rejected(payload):
    with pytest.raises(ModelResponseInvalid, match="not a JSON array"):
        ActivityResponseParser().parse(json.dumps(payload))


@pytest.mark.parametrize("item", [
    {"suggested_focus_area": "Mod att växa"},                        # no title
    {"title": "  ", "suggested_focus_area": "Mod att växa"},         # blank title
    {"title": "Kickoff"},                                            # no focus area key
    {"title": "Kickoff", "suggested_focus_area": "X", "weeks": "5"},  # weeks not a list
    {"title": "Kickoff", "suggested_focus_area": "X", "start_date": "15 januari"},
    "Kickoff",
])
def test_shape_mismatch_rejects_whole_response(item):
    valid = {"title": "Valid", "suggested_focus_area": "Mod att växa"}

    with pytest.raises(ModelResponseInvalid, match="schema"):
        _parse([valid, item])


def test_out_of_range_weeks_are_dropped():
    [activity] = _parse([{"title": "Kickoff", "suggested_focus_area": None, "weeks": [0, 5, 5, 53, 3, -1]}])

    assert activity.weeks == [3, 5]


def test_null_weeks_and_blank_optional_fields():
    [activity] = _parse([{
        "title": "Kickoff",
        "suggested_focus_area": "",
        "weeks": None,
        "start_date": "",
        "responsible": " ",
    }])

    assert activity.weeks == []
    assert activity.start_date is None
    assert activity.responsible is None


def test_markdown_code_fence_is_stripped():
    text = '```json\n[{"title": "Kickoff", "suggested_focus_area": "Mod att växa"}]\n```'

    [activity] = ActivityResponseParser().parse(text)

    assert activity.title == "Kickoff"


def test_unknown_keys_are_ignored():
    [activity] = _parse([{"title": "Kickoff", "suggested_focus_area": "X", "confidence": 0.3}])

    assert not hasattr(activity, "confidence")


def test_filter_weeks():
    assert filter_weeks([52, 1, 1, 53, 0]) == [1, 52]
