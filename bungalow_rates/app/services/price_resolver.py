"""Prices a stay night by night against a bungalow's rate history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from .. import models
from ..stores import RateStore
from .errors import InvalidStayRangeError, NoApplicableRateError

ONE_DAY = timedelta(days=1)


@dataclass
class NightlyPrice:
    """Price charged for one night and the rate that set it."""

    night: date
    rate_id: Optional[int]
    amount: Decimal


@dataclass
class StayQuote:
    """Night-by-night breakdown of a stay price."""

    bungalow_id: int
    arrival: date
    departure: date
    booking_date: date
    nights: List[NightlyPrice] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self.nights), Decimal("0"))


def _closed_search_order(rate: models.BungalowRate) -> tuple:
    # Most recently closed first, then most recently opened, then newest record.
    return (
        -rate.booking_to.toordinal(),
        -rate.booking_from.toordinal(),
        -(rate.id or 0),
    )


def find_applicable_rate(
    night: date,
    booking_date: date,
    closed_rates: Sequence[models.BungalowRate],
    active_rates: Sequence[models.BungalowRate],
) -> Optional[models.BungalowRate]:
    """Return the rate pricing ``night`` for a booking made on ``booking_date``.

    Closed rates are searched first, in the order given, and must have been
    bookable on ``booking_date``. Active rates only need to have opened by then.
    """

    for rate in closed_rates:
        if rate.covers_night(night) and rate.booking_from <= booking_date <= rate.booking_to:
            return rate
    for rate in active_rates:
        if rate.covers_night(night) and rate.booking_from <= booking_date:
            return rate
    return None


class PriceResolver:
    """Computes stay prices from the stored rates of a bungalow."""

    def __init__(self, store: RateStore):
        self._store = store

    @staticmethod
    def split_history(
        rates: Iterable[models.BungalowRate],
    ) -> tuple[List[models.BungalowRate], List[models.BungalowRate]]:
        """Split ``rates`` into closed rates in search order and active rates."""

        closed: List[models.BungalowRate] = []
        active: List[models.BungalowRate] = []
        for rate in rates:
            (active if rate.is_active else closed).append(rate)
        closed.sort(key=_closed_search_order)
        return closed, active

    def quote_stay(
        self, bungalow_id: int, arrival: date, departure: date, booking_date: date
    ) -> StayQuote:
        """Price every night from ``arrival`` up to, not including, ``departure``."""

        if arrival >= departure:
            raise InvalidStayRangeError(arrival, departure)

        closed, active = self.split_history(self._store.find_all(bungalow_id))
        quote = StayQuote(
            bungalow_id=bungalow_id,
            arrival=arrival,
            departure=departure,
            booking_date=booking_date,
        )
        night = arrival
        while night < departure:
            rate = find_applicable_rate(night, booking_date, closed, active)
            if rate is None:
                raise NoApplicableRateError(night)
            quote.nights.append(
                NightlyPrice(night=night, rate_id=rate.id, amount=rate.per_night_value)
            )
            night += ONE_DAY
        return quote

    def price_stay(
        self, bungalow_id: int, arrival: date, departure: date, booking_date: date
    ) -> Decimal:
        return self.quote_stay(bungalow_id, arrival, departure, booking_date).total
