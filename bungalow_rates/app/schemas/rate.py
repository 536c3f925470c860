"""Pydantic shapes for rate submissions and rate read-outs."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RateCreate(BaseModel):
    """A rate submitted for a bungalow.

    Only types are coerced here; the business rules (ranges, positive values,
    duplicates) are checked by ``RateValidator`` so that every entry point
    reports them the same way.
    """

    bungalow_id: Optional[int] = Field(
        default=None, description="Identifier of the priced bungalow"
    )
    stay_from: Optional[date] = Field(default=None, description="First priced night")
    stay_to: Optional[date] = Field(default=None, description="Last priced night")
    booking_from: Optional[date] = Field(
        default=None, description="First booking date the rate applies to (default: today)"
    )
    booking_to: Optional[date] = Field(
        default=None, description="Last booking date the rate applies to"
    )
    nights: int = Field(default=1, description="Nights the value was quoted for")
    value: Decimal = Field(..., description="Total price for ``nights`` nights")

    model_config = ConfigDict(from_attributes=True)


class NightlyPriceRead(BaseModel):
    night: date
    rate_id: Optional[int] = None
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)


class StayQuoteRead(BaseModel):
    bungalow_id: int
    arrival: date
    departure: date
    booking_date: date
    nights: List[NightlyPriceRead]
    total: Decimal

    model_config = ConfigDict(from_attributes=True)
