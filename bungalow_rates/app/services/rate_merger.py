"""Coalesces adjacent active rates that charge the same price."""

from __future__ import annotations

import logging
from datetime import timedelta

from .. import models
from ..stores import RateStore

LOGGER = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


class RateMerger:
    """Keeps the active timeline of a bungalow minimal."""

    def __init__(self, store: RateStore):
        self._store = store

    @staticmethod
    def can_merge(current: models.BungalowRate, following: models.BungalowRate) -> bool:
        return (
            current.value == following.value
            and current.stay_to + ONE_DAY == following.stay_from
        )

    def compact(self, bungalow_id: int) -> int:
        """Run one merge pass over the active rates; return how many merges happened.

        The pass walks a snapshot of the active rates in stay order. A merged
        record is not compared again with the rate after it, so a run of three
        equal rates needs a second pass (see ``compact_fully``).
        """

        active = self._store.find_active(bungalow_id)
        merges = 0
        index = 0
        while index < len(active) - 1:
            current, following = active[index], active[index + 1]
            if not self.can_merge(current, following):
                index += 1
                continue
            self._merge(current, following)
            merges += 1
            index += 2
        if merges:
            LOGGER.debug("Merged %s adjacent rate pair(s) for bungalow %s", merges, bungalow_id)
        return merges

    def compact_fully(self, bungalow_id: int) -> int:
        """Repeat ``compact`` until a pass merges nothing."""

        total = 0
        while True:
            merges = self.compact(bungalow_id)
            if not merges:
                return total
            total += merges

    def _merge(self, current: models.BungalowRate, following: models.BungalowRate) -> None:
        current.booking_to = following.booking_from
        if current.booking_from > current.booking_to:
            self._store.delete(current)
        else:
            self._store.save(current)

        merged = self._store.save(models.BungalowRate.merged(current, following))
        self._store.delete(following)
        LOGGER.debug(
            "Merged rates %s and %s into rate %s (%s..%s)",
            current.id,
            following.id,
            merged.id,
            merged.stay_from,
            merged.stay_to,
        )
