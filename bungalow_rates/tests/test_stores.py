from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from bungalow_rates.app import models
from bungalow_rates.app.stores import InMemoryRateStore, SqlAlchemyRateStore


def _record(
    bungalow_id: int,
    stay_from: date,
    stay_to: date,
    *,
    value: str = "100",
    booking_to: date | None = None,
) -> models.BungalowRate:
    return models.BungalowRate(
        bungalow_id=bungalow_id,
        stay_from=stay_from,
        stay_to=stay_to,
        booking_from=date(2024, 12, 1),
        booking_to=booking_to,
        nights=1,
        value=Decimal(value),
    )


@pytest.fixture(params=["memory", "sqlalchemy"])
def rate_store(request):
    if request.param == "memory":
        return InMemoryRateStore()
    return SqlAlchemyRateStore(request.getfixturevalue("db_session"))


def test_save_assigns_identifiers(rate_store):
    first = rate_store.save(_record(1, date(2025, 1, 1), date(2025, 1, 5)))
    second = rate_store.save(_record(1, date(2025, 1, 6), date(2025, 1, 9)))

    assert first.id is not None
    assert second.id is not None
    assert first.id != second.id
    assert rate_store.exists_by_id(first.id)
    assert rate_store.find_by_id(second.id).stay_to == date(2025, 1, 9)


def test_queries_are_scoped_and_ordered(rate_store):
    late = rate_store.save(_record(1, date(2025, 2, 1), date(2025, 2, 5)))
    early = rate_store.save(_record(1, date(2025, 1, 1), date(2025, 1, 5)))
    closed = rate_store.save(
        _record(1, date(2025, 1, 10), date(2025, 1, 20), booking_to=date(2024, 12, 31))
    )
    rate_store.save(_record(2, date(2025, 1, 1), date(2025, 1, 5)))

    assert [r.id for r in rate_store.find_all(1)] == [early.id, closed.id, late.id]
    assert [r.id for r in rate_store.find_active(1)] == [early.id, late.id]
    assert rate_store.list_bungalow_ids() == [1, 2]


@pytest.mark.parametrize(
    "window, expected",
    [
        ((date(2025, 1, 5), date(2025, 1, 5)), ["a"]),
        ((date(2025, 1, 5), date(2025, 1, 6)), ["a", "b"]),
        ((date(2025, 1, 11), date(2025, 1, 31)), []),
        ((date(2024, 12, 1), date(2025, 1, 1)), ["a"]),
    ],
)
def test_overlap_query_uses_inclusive_bounds(rate_store, window, expected):
    saved = {
        "a": rate_store.save(_record(1, date(2025, 1, 1), date(2025, 1, 5))),
        "b": rate_store.save(_record(1, date(2025, 1, 6), date(2025, 1, 10))),
    }
    rate_store.save(_record(1, date(2025, 1, 1), date(2025, 1, 31), booking_to=date(2024, 12, 31)))

    found = rate_store.find_overlapping_active(1, *window)

    assert [r.id for r in found] == [saved[key].id for key in expected]


def test_delete_removes_record(rate_store):
    record = rate_store.save(_record(1, date(2025, 1, 1), date(2025, 1, 5)))

    rate_store.delete(record)

    assert not rate_store.exists_by_id(record.id)
    assert rate_store.find_by_id(record.id) is None
    assert rate_store.find_all(1) == []


def test_in_memory_reads_are_detached():
    store = InMemoryRateStore()
    record = store.save(_record(1, date(2025, 1, 1), date(2025, 1, 5)))

    loaded = store.find_by_id(record.id)
    loaded.booking_to = date(2025, 1, 1)

    assert store.find_by_id(record.id).is_active
    store.save(loaded)
    assert store.find_by_id(record.id).booking_to == date(2025, 1, 1)


def test_in_memory_atomic_restores_contents_on_error():
    store = InMemoryRateStore()
    kept = store.save(_record(1, date(2025, 1, 1), date(2025, 1, 5)))

    with pytest.raises(RuntimeError):
        with store.atomic():
            store.delete(kept)
            store.save(_record(1, date(2025, 1, 6), date(2025, 1, 9)))
            raise RuntimeError("boom")

    assert [r.id for r in store.find_all(1)] == [kept.id]


def test_sqlalchemy_atomic_leaves_caller_transaction_open(db_session):
    store = SqlAlchemyRateStore(db_session, commit=False)
    store.save(_record(1, date(2025, 1, 1), date(2025, 1, 5)))
    assert db_session.in_transaction()

    with store.atomic():
        record = store.save(_record(1, date(2025, 1, 6), date(2025, 1, 9)))

    assert db_session.in_transaction()
    assert store.exists_by_id(record.id)


def test_sqlalchemy_atomic_rolls_back_only_its_own_scope(db_session):
    store = SqlAlchemyRateStore(db_session, commit=False)
    kept = store.save(_record(1, date(2025, 1, 1), date(2025, 1, 5)))

    with pytest.raises(RuntimeError):
        with store.atomic():
            store.save(_record(1, date(2025, 1, 6), date(2025, 1, 9)))
            raise RuntimeError("boom")

    assert db_session.in_transaction()
    assert [r.id for r in store.find_all(1)] == [kept.id]


def test_sqlalchemy_atomic_commits_by_default(file_sessions):
    with file_sessions() as session:
        store = SqlAlchemyRateStore(session)
        with store.atomic():
            record = store.save(_record(1, date(2025, 1, 1), date(2025, 1, 5)))

        assert not session.in_transaction()
        record_id = record.id

    with file_sessions() as other:
        assert SqlAlchemyRateStore(other).exists_by_id(record_id)
