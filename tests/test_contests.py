from datetime import timedelta

import pytest
from pydantic import ValidationError

from contest_tracker.errors import Forbidden, InvalidInput, NotFound, Unauthorized
from contest_tracker.models import ContestUpdate

from conftest import contest_data


def test_create_requires_identity(contests, clock):
    with pytest.raises(Unauthorized):
        contests.create(contest_data(clock.now), None)


def test_create_stamps_creator_and_timestamps(contests, alice, clock):
    contest_id = contests.create(contest_data(clock.now + timedelta(days=1)), alice.id)
    contest = contests.get_by_id(contest_id)
    assert contest.created_by.id == alice.id
    assert contest.created_by.name == "Alice"
    assert contest.created_at == contest.updated_at == clock.now


def test_create_rejects_reversed_dates(clock):
    with pytest.raises(ValidationError):
        contest_data(clock.now, hours=-1)


def test_get_by_id_missing_returns_none(contests):
    assert contests.get_by_id(404) is None


def test_get_by_id_derives_duration_and_status(contests, alice, clock):
    contest_id = contests.create(contest_data(clock.now + timedelta(hours=1), hours=26), alice.id)
    contest = contests.get_by_id(contest_id)
    assert contest.duration == "1 day 2 hours"
    assert contest.status == "upcoming"
    assert contest.is_bookmarked is False
    assert contest.can_edit is False
    assert contest.user_solution is None


def test_get_by_id_keeps_explicit_duration(contests, alice, clock):
    contest_id = contests.create(contest_data(clock.now, duration="90 minutes"), alice.id)
    assert contests.get_by_id(contest_id).duration == "90 minutes"


def test_get_by_id_personalises_for_viewer(contests, bookmarks, solutions, alice, bob, clock):
    contest_id = contests.create(contest_data(clock.now + timedelta(hours=1)), alice.id)
    bookmarks.toggle(contest_id, bob.id)
    solutions.save(contest_id, "https://example.com/bob", "greedy", bob.id)

    as_bob = contests.get_by_id(contest_id, viewer_id=bob.id)
    assert as_bob.is_bookmarked is True
    assert as_bob.can_edit is False
    assert as_bob.user_solution.link == "https://example.com/bob"
    assert as_bob.user_solution.contest.id == contest_id

    as_alice = contests.get_by_id(contest_id, viewer_id=alice.id)
    assert as_alice.can_edit is True
    assert as_alice.is_bookmarked is False
    assert as_alice.user_solution is None


def test_status_follows_clock(contests, alice, clock):
    contest_id = contests.create(contest_data(clock.now + timedelta(hours=1), hours=1), alice.id)
    assert contests.get_by_id(contest_id).status == "upcoming"
    clock.advance(minutes=90)
    assert contests.get_by_id(contest_id).status == "ongoing"
    clock.advance(hours=1)
    assert contests.get_by_id(contest_id).status == "completed"


def test_update_by_owner_merges_and_bumps_updated_at(contests, alice, clock):
    contest_id = contests.create(contest_data(clock.now + timedelta(days=1)), alice.id)
    clock.advance(minutes=5)
    updated = contests.update(contest_id, ContestUpdate(title="Div. 2 Round", prizes="T-shirts"), alice.id)
    assert updated.title == "Div. 2 Round"
    assert updated.prizes == "T-shirts"
    assert updated.platform == "codeforces"
    assert updated.updated_at == clock.now
    assert updated.created_at == clock.now - timedelta(minutes=5)


def test_update_by_other_user_is_forbidden(contests, alice, bob, clock):
    contest_id = contests.create(contest_data(clock.now), alice.id)
    with pytest.raises(Forbidden):
        contests.update(contest_id, ContestUpdate(title="Mine now"), bob.id)
    assert contests.get_by_id(contest_id).title == "Weekly Round"


def test_update_missing_contest(contests, alice):
    with pytest.raises(NotFound):
        contests.update(999, ContestUpdate(title="x"), alice.id)


def test_update_requires_identity(contests, alice, clock):
    contest_id = contests.create(contest_data(clock.now), alice.id)
    with pytest.raises(Unauthorized):
        contests.update(contest_id, ContestUpdate(title="x"), None)


def test_update_checks_merged_dates(contests, alice, clock):
    contest_id = contests.create(contest_data(clock.now, hours=2), alice.id)
    with pytest.raises(InvalidInput):
        contests.update(contest_id, ContestUpdate(end_date=clock.now - timedelta(hours=1)), alice.id)


def test_update_payload_cannot_touch_ownership(contests, alice, bob, clock):
    contest_id = contests.create(contest_data(clock.now), alice.id)
    payload = ContestUpdate.model_validate({"title": "Renamed", "created_by_id": bob.id, "id": 77})
    updated = contests.update(contest_id, payload, alice.id)
    assert updated.id == contest_id
    assert updated.created_by.id == alice.id


def test_update_cannot_clear_required_field():
    with pytest.raises(ValidationError):
        ContestUpdate(title=None)


def test_delete_cascades_bookmarks_and_solutions(contests, bookmarks, solutions, alice, bob, clock):
    contest_id = contests.create(contest_data(clock.now), alice.id)
    other_id = contests.create(contest_data(clock.now, title="Other"), alice.id)
    for user in (alice, bob):
        bookmarks.toggle(contest_id, user.id)
        solutions.save(contest_id, f"https://example.com/{user.id}", None, user.id)
    bookmarks.toggle(other_id, bob.id)

    contests.delete(contest_id, alice.id)

    assert contests.get_by_id(contest_id) is None
    assert bookmarks.count_for_contest(contest_id) == 0
    assert solutions.count_for_contest(contest_id) == 0
    assert bookmarks.count_for_contest(other_id) == 1


def test_delete_by_other_user_is_forbidden(contests, bookmarks, alice, bob, clock):
    contest_id = contests.create(contest_data(clock.now), alice.id)
    bookmarks.toggle(contest_id, bob.id)
    with pytest.raises(Forbidden):
        contests.delete(contest_id, bob.id)
    assert contests.get_by_id(contest_id) is not None
    assert bookmarks.count_for_contest(contest_id) == 1


def test_delete_missing_contest(contests, alice):
    with pytest.raises(NotFound):
        contests.delete(123, alice.id)


def _seed(contests, user, clock, count, **overrides):
    for i in range(count):
        contests.create(contest_data(clock.now + timedelta(hours=i + 1), title=f"Round {i}", **overrides), user.id)


def test_list_pagination(contests, alice, clock):
    _seed(contests, alice, clock, 25)
    first = contests.list(page=1)
    last = contests.list(page=3)
    assert first.total_pages == 3
    assert len(first.items) == 9
    assert len(last.items) == 7
    assert [c.title for c in first.items][:2] == ["Round 0", "Round 1"]
    assert last.items[-1].title == "Round 24"


def test_list_sorted_by_start_date(contests, alice, clock):
    contests.create(contest_data(clock.now + timedelta(days=3), title="Late"), alice.id)
    contests.create(contest_data(clock.now + timedelta(days=1), title="Early"), alice.id)
    assert [c.title for c in contests.list().items] == ["Early", "Late"]


def test_list_filters_platform_and_category(contests, alice, clock):
    contests.create(contest_data(clock.now, title="CF"), alice.id)
    contests.create(contest_data(clock.now, title="LC", platform="leetcode"), alice.id)
    contests.create(contest_data(clock.now, title="Kaggle ML", platform="kaggle", category="machine-learning"), alice.id)

    assert [c.title for c in contests.list(platform="leetcode").items] == ["LC"]
    assert [c.title for c in contests.list(category="machine-learning").items] == ["Kaggle ML"]
    assert len(contests.list(platform="all", category="all").items) == 3


def test_list_filters_status(contests, alice, clock):
    now = clock.now
    contests.create(contest_data(now - timedelta(hours=5), hours=1, title="Done"), alice.id)
    contests.create(contest_data(now - timedelta(hours=1), hours=3, title="Running"), alice.id)
    contests.create(contest_data(now + timedelta(hours=1), title="Soon"), alice.id)

    ongoing = contests.list(status="ongoing").items
    assert [c.title for c in ongoing] == ["Running"]
    assert all(c.start_date <= now <= c.end_date for c in ongoing)
    assert [c.title for c in contests.list(status="upcoming").items] == ["Soon"]
    assert [c.title for c in contests.list(status="completed").items] == ["Done"]
    assert contests.list(status="all").total_pages == 1


def test_list_rejects_unknown_status(contests):
    with pytest.raises(InvalidInput):
        contests.list(status="paused")


def test_list_marks_bookmarks_for_viewer(contests, bookmarks, alice, bob, clock):
    first = contests.create(contest_data(clock.now + timedelta(hours=1)), alice.id)
    contests.create(contest_data(clock.now + timedelta(hours=2)), alice.id)
    bookmarks.toggle(first, bob.id)

    flags = [c.is_bookmarked for c in contests.list(viewer_id=bob.id).items]
    assert flags == [True, False]
    assert not any(c.is_bookmarked for c in contests.list().items)


def test_list_empty(contests):
    page = contests.list()
    assert page.items == []
    assert page.total_pages == 0


def test_list_upcoming(contests, alice, clock):
    contests.create(contest_data(clock.now - timedelta(hours=1), title="Started"), alice.id)
    _seed(contests, alice, clock, 8)
    upcoming = contests.list_upcoming()
    assert len(upcoming) == 6
    assert upcoming[0].title == "Round 0"
    assert all(c.status == "upcoming" for c in upcoming)
    assert len(contests.list_upcoming(limit=2)) == 2
