"""Tests for the item store adapter."""
from datetime import UTC, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from mihi.errors import InvalidItem, StoreError, StoreUnavailable
from mihi.models.models import Attempt, ExerciseKind, Poke, PokeStatus
from mihi.models.practice_models import Outcome, PracticeItem
from mihi.services.item_store import ItemStore

from conftest import NOW


@pytest.fixture
def store(db) -> ItemStore:
    return ItemStore(db)


def test_list_eligible_items_is_ordered(store, make_item) -> None:
    rosa_translate = make_item("rosa, rosae", "Translate")
    amicus_translate = make_item("amicus, amicī", "Translate")
    rosa_decline = make_item("rosa, rosae", "Decline", kind=ExerciseKind.INFLECTION)

    items = store.list_eligible_items()

    assert items == sorted([rosa_translate, amicus_translate, rosa_decline])
    assert items[:2] == [rosa_translate, rosa_decline]


def test_word_without_exercises_is_not_eligible(store, word_service) -> None:
    word_service.create_word("porta, portae")
    assert store.list_eligible_items() == []


def test_attempt_history_is_chronological_and_utc(store, make_item) -> None:
    item = make_item()
    store.append_attempt(item, Outcome.FAILURE, NOW - timedelta(hours=2))
    store.append_attempt(item, Outcome.SUCCESS, NOW - timedelta(hours=1))
    # Timestamps in other zones are stored as UTC
    store.append_attempt(item, Outcome.SUCCESS, NOW.astimezone(timezone(timedelta(hours=2))))

    attempts = store.attempt_history(item)

    assert [a.outcome for a in attempts] == [Outcome.FAILURE, Outcome.SUCCESS, Outcome.SUCCESS]
    assert attempts[-1].attempted_at == NOW
    assert all(a.attempted_at.tzinfo is not None for a in attempts)
    assert attempts[0].attempted_at.utcoffset() == UTC.utcoffset(None)


def test_append_attempt_rejects_invalid_pair(store, make_item) -> None:
    """An exercise can only be practiced on the words it applies to."""
    first = make_item()
    second = make_item()
    bogus = PracticeItem(first.word_id, second.exercise_id)

    with pytest.raises(InvalidItem):
        store.append_attempt(bogus, Outcome.SUCCESS, NOW)
    assert store.db.query(Attempt).count() == 0


def test_append_attempt_never_rewrites_history(store, db, make_item) -> None:
    item = make_item()
    store.append_attempt(item, Outcome.SUCCESS, NOW - timedelta(days=1))
    before = [(a.id, a.succeeded, a.attempted_at) for a in db.query(Attempt).all()]

    store.append_attempt(item, Outcome.FAILURE, NOW)

    after = [(a.id, a.succeeded, a.attempted_at) for a in db.query(Attempt).order_by(Attempt.id)]
    assert after[: len(before)] == before
    assert len(after) == 2


def test_poke_lifecycle(store, db, make_item) -> None:
    """pending -> consumed, and a consumed poke does not come back alone."""
    item = make_item()
    assert store.poke_flag(item) is False
    assert store.clear_poke(item) is False

    store.set_poke(item)
    assert store.poke_flag(item) is True

    assert store.clear_poke(item) is True
    assert store.poke_flag(item) is False
    assert store.clear_poke(item) is False

    poke = db.get(Poke, (item.word_id, item.exercise_id))
    assert poke.status == PokeStatus.CONSUMED
    assert poke.consumed_at is not None

    store.set_poke(item)
    assert store.poke_flag(item) is True
    assert db.get(Poke, (item.word_id, item.exercise_id)).consumed_at is None


def test_set_poke_rejects_invalid_pair(store, make_item) -> None:
    item = make_item()
    with pytest.raises(InvalidItem):
        store.set_poke(PracticeItem(item.word_id, item.exercise_id + 100))


def test_resolve_item(store, make_item) -> None:
    item = make_item("lupus, lupī", "Wolf translation")
    assert store.resolve_item(" lupus, lupī ", "Wolf translation") == item

    with pytest.raises(InvalidItem):
        store.resolve_item("canis, canis", "Wolf translation")
    with pytest.raises(InvalidItem):
        store.resolve_item("lupus, lupī", "Missing")


def test_transaction_commits_once(store, db, make_item, mocker) -> None:
    item = make_item()
    commit = mocker.spy(db, "commit")

    with store.transaction():
        store.append_attempt(item, Outcome.SUCCESS, NOW)
        store.set_poke(item)
        assert commit.call_count == 0

    assert commit.call_count == 1


def test_transaction_rolls_back_on_error(store, db, make_item) -> None:
    item = make_item()
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.append_attempt(item, Outcome.SUCCESS, NOW)
            raise RuntimeError("interrupted")

    assert store.attempt_history(item) == []


def test_operational_errors_become_store_unavailable(store, db, mocker) -> None:
    mocker.patch.object(
        db, "query", side_effect=OperationalError("SELECT", {}, Exception("unable to open database"))
    )
    with pytest.raises(StoreUnavailable):
        store.list_eligible_items()


def test_other_database_errors_become_store_error(store, db, make_item, mocker) -> None:
    item = make_item()
    mocker.patch.object(
        db, "commit", side_effect=IntegrityError("INSERT", {}, Exception("constraint failed"))
    )
    with pytest.raises(StoreError) as info:
        store.append_attempt(item, Outcome.SUCCESS, NOW)
    assert not isinstance(info.value, StoreUnavailable)
