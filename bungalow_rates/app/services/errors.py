"""Errors raised by the rate engine."""

from __future__ import annotations

from datetime import date
from typing import Optional


class RateServiceError(RuntimeError):
    """Base class for rate engine failures."""


class RateValidationError(RateServiceError, ValueError):
    """Raised when a rate submission is malformed or duplicates an existing rule."""


class RateNotFoundError(RateServiceError, LookupError):
    """Raised when an operation targets a rate that does not exist."""

    def __init__(self, rate_id: Optional[int]):
        self.rate_id = rate_id
        super().__init__(f"Rate not found with id {rate_id}")


class InvalidStayRangeError(RateServiceError, ValueError):
    """Raised when a stay does not end after it starts."""

    def __init__(self, arrival: date, departure: date):
        self.arrival = arrival
        self.departure = departure
        super().__init__(
            f"Arrival date must be before departure date (got {arrival} -> {departure})"
        )


class NoApplicableRateError(RateServiceError, LookupError):
    """Raised when a night of a stay is not covered by any rate."""

    def __init__(self, night: date):
        self.night = night
        super().__init__(f"No rate found for date: {night.isoformat()}")
