"""Entry point for every change and pricing query on bungalow rates."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional

from .. import models, schemas
from ..config import RateSettings
from ..stores import RateStore
from .errors import RateNotFoundError, RateValidationError
from .price_resolver import PriceResolver, StayQuote
from .rate_merger import RateMerger
from .rate_splitter import RateSplitter
from .rate_validator import RateValidator
from .unit_locks import UnitLocks

LOGGER = logging.getLogger(__name__)


class RateService:
    """Keeps each bungalow's rate timeline consistent and prices stays against it.

    A new rate is validated, normalized to a per-night value, carved into the
    active timeline by ``RateSplitter``, stored as active and finally compacted
    by ``RateMerger``. Each change runs, validation included, in one
    ``store.atomic()`` scope entered while ``UnitLocks`` holds the bungalow, so
    a store that commits does so before the lock is released.
    """

    def __init__(
        self,
        store: RateStore,
        *,
        settings: Optional[RateSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        self._store = store
        self._settings = settings or RateSettings.from_env()
        self._today = today
        self._validator = RateValidator(today=today, value_scale=self._settings.value_scale)
        self._splitter = RateSplitter(store)
        self._merger = RateMerger(store)
        self._resolver = PriceResolver(store)

    # Reads

    def get_rate(self, rate_id: int) -> models.BungalowRate:
        record = self._store.find_by_id(rate_id)
        if record is None:
            raise RateNotFoundError(rate_id)
        return record

    def list_rates(self, bungalow_id: int) -> List[models.BungalowRate]:
        return self._store.find_all(bungalow_id)

    def list_active_rates(self, bungalow_id: int) -> List[models.BungalowRate]:
        return self._store.find_active(bungalow_id)

    # Timeline changes

    def create_rate(self, candidate: schemas.RateCreate) -> models.BungalowRate:
        with UnitLocks.hold([candidate.bungalow_id]), self._store.atomic():
            existing = self._existing_rates(candidate.bungalow_id)
            self._validator.validate(candidate, existing)
            record = self._insert(candidate)
            LOGGER.info(
                "Created rate %s for bungalow %s (%s..%s, %s per night)",
                record.id,
                record.bungalow_id,
                record.stay_from,
                record.stay_to,
                record.per_night_value,
            )
        return record

    def update_rate(self, rate_id: int, updated: schemas.RateCreate) -> models.BungalowRate:
        """Close rate ``rate_id`` today and create ``updated`` bookable from today."""

        bungalow_id = self._unit_of(rate_id)
        today = self._today()
        replacement = updated.model_copy(update={"booking_from": today})

        with UnitLocks.hold([bungalow_id, replacement.bungalow_id]), self._store.atomic():
            current = self.get_rate(rate_id)
            existing = [
                rate
                for rate in self._existing_rates(replacement.bungalow_id)
                if rate.id != current.id
            ]
            self._validator.validate(replacement, existing)
            if current.is_active:
                self._close(current, today)
            record = self._insert(replacement)
            LOGGER.info("Replaced rate %s with rate %s", rate_id, record.id)
        return record

    def close_rate(self, rate_id: int, cutoff: date) -> models.BungalowRate:
        bungalow_id = self._unit_of(rate_id)
        with UnitLocks.hold([bungalow_id]), self._store.atomic():
            record = self.get_rate(rate_id)
            if not record.is_active:
                raise RateValidationError(
                    f"Rate {rate_id} is already closed since {record.booking_to}"
                )
            if cutoff < record.booking_from:
                raise RateValidationError(
                    f"Closing date {cutoff} is before the rate opened on {record.booking_from}"
                )
            record.booking_to = cutoff
            self._store.save(record)
            LOGGER.info("Closed rate %s on %s", rate_id, cutoff)
        return record

    def delete_rate(self, rate_id: int) -> None:
        bungalow_id = self._unit_of(rate_id)
        with UnitLocks.hold([bungalow_id]), self._store.atomic():
            self._store.delete(self.get_rate(rate_id))
            LOGGER.info("Deleted rate %s of bungalow %s", rate_id, bungalow_id)

    def compact(self, bungalow_id: int, *, full: bool = False) -> int:
        """Merge adjacent equal rates of ``bungalow_id``; return the merge count."""

        with UnitLocks.hold([bungalow_id]), self._store.atomic():
            if full:
                return self._merger.compact_fully(bungalow_id)
            return self._merger.compact(bungalow_id)

    # Pricing

    def quote_stay(
        self, bungalow_id: int, arrival: date, departure: date, booking_date: date
    ) -> StayQuote:
        return self._resolver.quote_stay(bungalow_id, arrival, departure, booking_date)

    def price_stay(
        self, bungalow_id: int, arrival: date, departure: date, booking_date: date
    ) -> Decimal:
        return self._resolver.price_stay(bungalow_id, arrival, departure, booking_date)

    # Helpers

    def _unit_of(self, rate_id: int) -> int:
        with self._store.atomic():
            return self.get_rate(rate_id).bungalow_id

    def _existing_rates(self, bungalow_id: Optional[int]) -> List[models.BungalowRate]:
        if bungalow_id is None:
            return []
        return self._store.find_all(bungalow_id)

    def _insert(self, candidate: schemas.RateCreate) -> models.BungalowRate:
        value = models.normalized_per_night(
            candidate.value, candidate.nights, self._settings.value_scale
        )
        record = models.BungalowRate(
            bungalow_id=candidate.bungalow_id,
            stay_from=candidate.stay_from,
            stay_to=candidate.stay_to,
            booking_from=candidate.booking_from or self._today(),
            booking_to=None,
            nights=1,
            value=value,
        )

        self._splitter.resolve_overlaps(record)
        self._store.save(record)
        if self._settings.full_compaction:
            self._merger.compact_fully(record.bungalow_id)
        else:
            self._merger.compact(record.bungalow_id)
        return self._surviving_record(record)

    def _surviving_record(self, record: models.BungalowRate) -> models.BungalowRate:
        # Compaction may have folded the new record into a merged one.
        stored = self._store.find_by_id(record.id)
        if stored is not None and stored.is_active:
            return stored
        covering = self._store.find_overlapping_active(
            record.bungalow_id, record.stay_from, record.stay_from
        )
        return covering[0] if covering else record

    def _close(self, record: models.BungalowRate, cutoff: date) -> None:
        record.booking_to = cutoff
        if record.booking_from > cutoff:
            LOGGER.debug("Deleting rate %s, closed before it opened", record.id)
            self._store.delete(record)
            return
        self._store.save(record)
