"""Makes room on a bungalow timeline for an incoming rate."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List

from .. import models
from ..stores import RateStore

LOGGER = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


class RateSplitter:
    """Closes the active rates a new rate overlaps and re-opens what is left of them.

    Every overlapping active rate is closed at the new rate's booking start. The
    parts of its stay window that fall before or after the new rate are
    re-created as active fragments bookable from that same date, so the active
    timeline keeps covering them.
    """

    def __init__(self, store: RateStore):
        self._store = store

    def resolve_overlaps(self, candidate: models.BungalowRate) -> List[models.BungalowRate]:
        """Split the active rates overlapping ``candidate``; return the new fragments.

        ``candidate`` is not persisted here. Callers save it once this returns,
        when no active rate overlaps its stay window any more.
        """

        overlapping = self._store.find_overlapping_active(
            candidate.bungalow_id, candidate.stay_from, candidate.stay_to
        )
        fragments: List[models.BungalowRate] = []
        for old in overlapping:
            fragments.extend(self._split(old, candidate))
        if overlapping:
            LOGGER.debug(
                "Closed %s overlapping rate(s) for bungalow %s, re-opened %s fragment(s)",
                len(overlapping),
                candidate.bungalow_id,
                len(fragments),
            )
        return fragments

    def _split(
        self, old: models.BungalowRate, candidate: models.BungalowRate
    ) -> List[models.BungalowRate]:
        old_from, old_to = old.stay_from, old.stay_to
        fragments: List[models.BungalowRate] = []

        old.booking_to = candidate.booking_from
        if old.booking_from > old.booking_to:
            # Closing emptied its booking window: the rate was never bookable.
            LOGGER.debug("Deleting rate %s, closed before it opened", old.id)
            self._store.delete(old)
        else:
            self._store.save(old)

        if old_from < candidate.stay_from:
            fragments.append(
                self._open_fragment(old, old_from, candidate.stay_from - ONE_DAY, candidate.booking_from)
            )
        if old_to > candidate.stay_to:
            fragments.append(
                self._open_fragment(old, candidate.stay_to + ONE_DAY, old_to, candidate.booking_from)
            )
        return fragments

    def _open_fragment(
        self, old: models.BungalowRate, stay_from: date, stay_to: date, booking_from: date
    ) -> models.BungalowRate:
        fragment = models.BungalowRate.fragment_of(
            old, stay_from=stay_from, stay_to=stay_to, booking_from=booking_from
        )
        self._store.save(fragment)
        LOGGER.debug(
            "Re-opened %s..%s of rate %s as rate %s", stay_from, stay_to, old.id, fragment.id
        )
        return fragment
