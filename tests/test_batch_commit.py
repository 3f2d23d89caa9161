import pytest

from planner_engine.batch_commit import MAX_BATCH_SIZE, BatchCommitter, DuplicateKeySet, duplicate_key
from planner_engine.models import ActivityCandidate
from planner_engine.utils import BatchTooLarge


def _candidate(title="Kickoff", focus_area_id="fa-mod", start_date="2026-01-15", **kwargs):
    return ActivityCandidate(focus_area_id=focus_area_id, title=title, start_date=start_date, **kwargs)


def test_creates_new_activities(fake_repository):
    repo = fake_repository()

    result = BatchCommitter(repo).commit([_candidate(), _candidate(title="Mingel")])

    assert [a.title for a in result.created] == ["Kickoff", "Mingel"]
    assert result.skipped == []
    assert result.failed == []


def test_duplicates_within_batch_are_collapsed(fake_repository):
    repo = fake_repository()
    batch = [_candidate(), _candidate(title="  KICKOFF ")]

    result = BatchCommitter(repo).commit(batch)

    assert len(result.created) == 1
    assert [s.index for s in result.skipped] == [1]
    assert "already exists" in result.skipped[0].reason


def test_existing_activity_is_skipped(fake_repository):
    repo = fake_repository(existing=[_candidate(title="kickoff")])

    result = BatchCommitter(repo).commit([_candidate(), _candidate(start_date="2026-02-01")])

    assert [s.index for s in result.skipped] == [0]
    assert [a.start_date for a in result.created] == ["2026-02-01"]


def test_same_title_in_other_focus_area_is_not_duplicate(fake_repository):
    repo = fake_repository(existing=[_candidate(focus_area_id="fa-plats")])

    result = BatchCommitter(repo).commit([_candidate()])

    assert len(result.created) == 1


def test_undated_activities_share_null_start_date(fake_repository):
    repo = fake_repository()

    result = BatchCommitter(repo).commit([_candidate(start_date=None), _candidate(start_date=None)])

    assert len(result.created) == 1
    assert len(result.skipped) == 1


def test_snapshot_is_read_once_for_batch_focus_areas(fake_repository):
    repo = fake_repository()

    BatchCommitter(repo).commit([_candidate(), _candidate(title="A", focus_area_id="fa-plats")])

    assert repo.list_calls == 1


def test_explicit_snapshot_skips_repository_read(fake_repository):
    repo = fake_repository()

    result = BatchCommitter(repo).commit([_candidate()], existing=[_candidate()])

    assert repo.list_calls == 0
    assert len(result.skipped) == 1


def test_oversized_batch_is_rejected_before_any_write(fake_repository):
    repo = fake_repository()
    batch = [_candidate(title=f"A{i}") for i in range(MAX_BATCH_SIZE + 1)]

    with pytest.raises(BatchTooLarge):
        BatchCommitter(repo).commit(batch)

    assert repo.created == []
    assert repo.list_calls == 0


def test_batch_at_limit_is_accepted(fake_repository):
    repo = fake_repository()
    batch = [_candidate(title=f"A{i}") for i in range(MAX_BATCH_SIZE)]

    result = BatchCommitter(repo).commit(batch)

    assert len(result.created) == MAX_BATCH_SIZE


@pytest.mark.parametrize("candidate, message", [
    (_candidate(focus_area_id=None), "focus_area_id required"),
    (_candidate(title="  "), "title required"),
    (_candidate(focus_area_id="", title=None), "focus_area_id and title required"),
    (_candidate(status="paused"), "Unknown status: paused"),
    (_candidate(weeks=[1, "2"]), "weeks must be whole numbers"),
])
def test_invalid_items_fail_without_stopping_batch(fake_repository, candidate, message):
    repo = fake_repository()

    result = BatchCommitter(repo).commit([candidate, _candidate(title="Mingel")])

    assert result.failed[0].index == 0
    assert result.failed[0].error == message
    assert [a.title for a in result.created] == ["Mingel"]


def test_persistence_failure_is_isolated(fake_repository):
    repo = fake_repository(fail_titles={"Mingel"})
    batch = [_candidate(title="A"), _candidate(title="Mingel"), _candidate(title="B")]

    result = BatchCommitter(repo).commit(batch)

    assert [a.title for a in result.created] == ["A", "B"]
    assert [f.index for f in result.failed] == [1]
    assert "Mingel" in result.failed[0].error


def test_every_index_is_reported_exactly_once(fake_repository):
    repo = fake_repository(existing=[_candidate(title="Old")], fail_titles={"Broken"})
    batch = [
        _candidate(title="New"),
        _candidate(title="Old"),
        _candidate(title=None),
        _candidate(title="Broken"),
        _candidate(title="new"),
    ]

    result = BatchCommitter(repo).commit(batch)

    assert len(result) == len(batch)
    assert [a.title for a in result.created] == ["New"]
    assert sorted([s.index for s in result.skipped] + [f.index for f in result.failed]) == [1, 2, 3, 4]


def test_values_are_normalized_before_insert(fake_repository):
    repo = fake_repository()

    BatchCommitter(repo).commit([_candidate(title=" Kick   off ", status="Beslutad", weeks=[9, 0, 3, 3, 60])])

    [created] = repo.created
    assert created.title == "Kick off"
    assert created.status == "decided"
    assert created.weeks == [3, 9]


def test_staged_dicts_are_accepted(fake_repository):
    repo = fake_repository()
    staged = {"title": "Kickoff", "matched_subcategory_id": "fa-mod", "start_date": "2026-01-15",
              "weeks": [3], "confidence": 0.9, "needs_review": False}

    result = BatchCommitter(repo).commit([staged])

    assert result.created[0].focus_area_id == "fa-mod"
    assert result.created[0].status == "ongoing"


@pytest.mark.parametrize("malformed", [
    {"title": "Bad", "focus_area_id": "fa-mod", "weeks": 5},
    42,
    "Kickoff",
])
def test_malformed_record_fails_without_stopping_batch(fake_repository, malformed):
    repo = fake_repository()
    good = {"title": "Good", "focus_area_id": "fa-mod"}

    result = BatchCommitter(repo).commit([malformed, good])

    assert [f.index for f in result.failed] == [0]
    assert result.failed[0].error.startswith("Invalid activity record")
    assert [a.title for a in result.created] == ["Good"]
    assert len(result) == 2


def test_committed_items_are_duplicates_in_next_batch(fake_repository):
    repo = fake_repository(remember_created=True)
    committer = BatchCommitter(repo)

    committer.commit([_candidate()])
    second = committer.commit([_candidate()])

    assert second.created == []
    assert len(second.skipped) == 1


def test_duplicate_key_format():
    assert duplicate_key("  Kick  Off ", "fa-mod", "2026-01-15") == "kick off|fa-mod|2026-01-15"
    assert duplicate_key("Kickoff", "fa-mod", None) == "kickoff|fa-mod|null"


def test_duplicate_key_set():
    keys = DuplicateKeySet([_candidate()])

    assert duplicate_key("kickoff", "fa-mod", "2026-01-15") in keys
    assert keys.add_if_new("x|y|null") is True
    assert keys.add_if_new("x|y|null") is False
    assert len(keys) == 2
