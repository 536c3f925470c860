"""Service layer implementing the rate timeline engine."""

from .errors import (
    InvalidStayRangeError,
    NoApplicableRateError,
    RateNotFoundError,
    RateServiceError,
    RateValidationError,
)
from .price_resolver import NightlyPrice, PriceResolver, StayQuote
from .rate_merger import RateMerger
from .rate_splitter import RateSplitter
from .rate_validator import RateValidator
from .rates import RateService
from .unit_locks import UnitLocks

__all__ = [
    "InvalidStayRangeError",
    "NoApplicableRateError",
    "RateNotFoundError",
    "RateServiceError",
    "RateValidationError",
    "NightlyPrice",
    "PriceResolver",
    "StayQuote",
    "RateMerger",
    "RateSplitter",
    "RateValidator",
    "RateService",
    "UnitLocks",
]
