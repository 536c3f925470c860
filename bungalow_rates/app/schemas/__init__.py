"""Expose Pydantic schemas for convenient imports."""

from .rate import NightlyPriceRead, RateCreate, StayQuoteRead

__all__ = [
    "NightlyPriceRead",
    "RateCreate",
    "StayQuoteRead",
]
