"""Checks applied to a rate submission before it reaches the timeline."""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable

from .. import models, schemas
from ..config import DEFAULT_VALUE_SCALE
from .errors import RateValidationError


class RateValidator:
    """Rejects malformed rate submissions and unchanged re-submissions."""

    def __init__(
        self,
        *,
        today: Callable[[], date] = date.today,
        value_scale: int = DEFAULT_VALUE_SCALE,
    ):
        self._today = today
        self._value_scale = value_scale

    def validate(
        self, candidate: schemas.RateCreate, existing_rates: Iterable[models.BungalowRate]
    ) -> None:
        """Raise ``RateValidationError`` when ``candidate`` cannot be accepted.

        Checks run in a fixed order so the first broken rule is the one
        reported: stay window, value, nights, bungalow, booking window and,
        last, duplication against ``existing_rates``.
        """

        if candidate.stay_from is None or candidate.stay_to is None:
            raise RateValidationError("Stay date range cannot be null")
        if candidate.stay_from > candidate.stay_to:
            raise RateValidationError("Stay start date cannot be after end date")
        if candidate.value is None or candidate.value <= 0:
            raise RateValidationError("Rate value must be positive")
        if candidate.nights is None or candidate.nights < 1:
            raise RateValidationError("Number of nights must be positive")
        if candidate.bungalow_id is None:
            raise RateValidationError("Bungalow ID is required")

        if (
            candidate.booking_from is not None
            and candidate.booking_to is not None
            and candidate.booking_from > candidate.booking_to
        ):
            raise RateValidationError("Booking start date cannot be after booking end date")

        duplicate = self.find_duplicate(candidate, existing_rates)
        if duplicate is not None:
            raise RateValidationError(
                f"Identical rate already exists within this period (rate {duplicate.id})."
            )

    def find_duplicate(
        self, candidate: schemas.RateCreate, existing_rates: Iterable[models.BungalowRate]
    ) -> models.BungalowRate | None:
        """Return the still-bookable rate that already prices ``candidate``, if any."""

        today = self._today()
        # Compared the way the create path will store it.
        per_night = models.normalized_per_night(
            candidate.value, candidate.nights, self._value_scale
        )
        for existing in existing_rates:
            fully_inside = (
                existing.stay_from <= candidate.stay_from
                and candidate.stay_to <= existing.stay_to
            )
            if not fully_inside:
                continue
            if existing.per_night_value != per_night:
                continue
            if existing.booking_to is None or existing.booking_to > today:
                return existing
        return None
