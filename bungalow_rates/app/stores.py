"""Persistence adapters for rate records.

The rate services only talk to a ``RateStore``; ``SqlAlchemyRateStore`` backs it
with the application database and ``InMemoryRateStore`` keeps everything in a
dictionary, which is handy for simulations and tests.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from itertools import count
from typing import ContextManager, Dict, Iterator, List, Optional, Protocol

from sqlalchemy.orm import Session

from . import models


class RateStore(Protocol):
    """Storage operations the rate engine relies on."""

    def find_all(self, bungalow_id: int) -> List[models.BungalowRate]:
        """Every record of the bungalow, ordered by ``stay_from``."""

    def find_active(self, bungalow_id: int) -> List[models.BungalowRate]:
        """Active records of the bungalow, ordered by ``stay_from``."""

    def find_overlapping_active(
        self, bungalow_id: int, stay_from: date, stay_to: date
    ) -> List[models.BungalowRate]:
        """Active records whose stay window intersects ``[stay_from, stay_to]``."""

    def find_by_id(self, rate_id: int) -> Optional[models.BungalowRate]:
        ...

    def exists_by_id(self, rate_id: int) -> bool:
        ...

    def list_bungalow_ids(self) -> List[int]:
        ...

    def save(self, record: models.BungalowRate) -> models.BungalowRate:
        ...

    def delete(self, record: models.BungalowRate) -> None:
        ...

    def atomic(self) -> ContextManager[None]:
        """Scope in which a failure leaves the store as it was on entry."""


class SqlAlchemyRateStore:
    """Rate store backed by a SQLAlchemy session.

    By default every ``atomic`` scope is committed as soon as it succeeds. Pass
    ``commit=False`` when the caller owns the transaction and commits it later.
    """

    def __init__(self, session: Session, *, commit: bool = True):
        self._session = session
        self._commit = commit

    @property
    def session(self) -> Session:
        return self._session

    def _query_unit(self, bungalow_id: int):
        return self._session.query(models.BungalowRate).filter(
            models.BungalowRate.bungalow_id == bungalow_id
        )

    def find_all(self, bungalow_id: int) -> List[models.BungalowRate]:
        return (
            self._query_unit(bungalow_id)
            .order_by(models.BungalowRate.stay_from.asc(), models.BungalowRate.id.asc())
            .all()
        )

    def find_active(self, bungalow_id: int) -> List[models.BungalowRate]:
        return (
            self._query_unit(bungalow_id)
            .filter(models.BungalowRate.booking_to.is_(None))
            .order_by(models.BungalowRate.stay_from.asc())
            .with_for_update()
            .all()
        )

    def find_overlapping_active(
        self, bungalow_id: int, stay_from: date, stay_to: date
    ) -> List[models.BungalowRate]:
        return (
            self._query_unit(bungalow_id)
            .filter(
                models.BungalowRate.booking_to.is_(None),
                models.BungalowRate.stay_to >= stay_from,
                models.BungalowRate.stay_from <= stay_to,
            )
            .order_by(models.BungalowRate.stay_from.asc())
            .with_for_update()
            .all()
        )

    def find_by_id(self, rate_id: int) -> Optional[models.BungalowRate]:
        return self._session.get(models.BungalowRate, rate_id)

    def exists_by_id(self, rate_id: int) -> bool:
        return (
            self._session.query(models.BungalowRate.id)
            .filter(models.BungalowRate.id == rate_id)
            .first()
            is not None
        )

    def list_bungalow_ids(self) -> List[int]:
        rows = (
            self._session.query(models.BungalowRate.bungalow_id)
            .distinct()
            .order_by(models.BungalowRate.bungalow_id.asc())
            .all()
        )
        return [bungalow_id for (bungalow_id,) in rows]

    def save(self, record: models.BungalowRate) -> models.BungalowRate:
        self._session.add(record)
        self._session.flush()
        return record

    def delete(self, record: models.BungalowRate) -> None:
        self._session.delete(record)
        self._session.flush()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run the enclosed work in a SAVEPOINT and commit it on success.

        A failure rolls back only this scope. With ``commit=False`` the session's
        transaction stays open and committing it is left to the caller.
        """

        with self._session.begin_nested():
            yield
        if self._commit:
            self._session.commit()


def _detached_copy(record: models.BungalowRate) -> models.BungalowRate:
    return models.BungalowRate(
        id=record.id,
        bungalow_id=record.bungalow_id,
        stay_from=record.stay_from,
        stay_to=record.stay_to,
        booking_from=record.booking_from,
        booking_to=record.booking_to,
        nights=record.nights,
        value=record.value,
    )


class InMemoryRateStore:
    """Dictionary backed rate store.

    Reads hand out copies, so a record only changes once it is saved again,
    mirroring how rows behave in a database.
    """

    def __init__(self) -> None:
        self._rows: Dict[int, models.BungalowRate] = {}
        self._ids = count(1)

    def _unit_rows(self, bungalow_id: int) -> List[models.BungalowRate]:
        rows = [row for row in self._rows.values() if row.bungalow_id == bungalow_id]
        rows.sort(key=lambda row: (row.stay_from, row.id))
        return [_detached_copy(row) for row in rows]

    def find_all(self, bungalow_id: int) -> List[models.BungalowRate]:
        return self._unit_rows(bungalow_id)

    def find_active(self, bungalow_id: int) -> List[models.BungalowRate]:
        return [row for row in self._unit_rows(bungalow_id) if row.booking_to is None]

    def find_overlapping_active(
        self, bungalow_id: int, stay_from: date, stay_to: date
    ) -> List[models.BungalowRate]:
        return [
            row
            for row in self.find_active(bungalow_id)
            if row.stay_to >= stay_from and row.stay_from <= stay_to
        ]

    def find_by_id(self, rate_id: int) -> Optional[models.BungalowRate]:
        row = self._rows.get(rate_id)
        return _detached_copy(row) if row is not None else None

    def exists_by_id(self, rate_id: int) -> bool:
        return rate_id in self._rows

    def list_bungalow_ids(self) -> List[int]:
        return sorted({row.bungalow_id for row in self._rows.values()})

    def save(self, record: models.BungalowRate) -> models.BungalowRate:
        if record.id is None:
            record.id = next(self._ids)
        self._rows[record.id] = _detached_copy(record)
        return record

    def delete(self, record: models.BungalowRate) -> None:
        del self._rows[record.id]

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot = dict(self._rows)
        try:
            yield
        except Exception:
            self._rows = snapshot
            raise
