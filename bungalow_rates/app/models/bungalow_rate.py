"""SQLAlchemy model for bungalow rate records."""

from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import CheckConstraint, Column, Date, Index, Integer, Numeric

from ..database import Base


def normalized_per_night(value, nights: int, value_scale: int) -> Decimal:
    """Per-night value a rate quoted for ``nights`` nights is stored with."""

    value = Decimal(value)
    if nights <= 1:
        return value
    scale = Decimal(1).scaleb(-value_scale)
    return (value / nights).quantize(scale, rounding=ROUND_HALF_UP)


class BungalowRate(Base):
    """A per-night price for a bungalow over a stay window.

    The record is bookable from ``booking_from`` until ``booking_to``. A missing
    ``booking_to`` marks the record as active; once it is set the record is
    closed and only kept to price bookings made inside its booking window.
    """

    __tablename__ = "bungalow_rates"
    __table_args__ = (
        CheckConstraint(
            "stay_date_to >= stay_date_from", name="ck_bungalow_rates_stay_range"
        ),
        CheckConstraint("nights >= 1", name="ck_bungalow_rates_nights_positive"),
        CheckConstraint("value > 0", name="ck_bungalow_rates_value_positive"),
        Index(
            "bungalow_rates_unit_active_idx",
            "bungalow_id",
            "booking_date_to",
            "stay_date_from",
        ),
    )

    id = Column("rate_id", Integer, primary_key=True, autoincrement=True)
    bungalow_id = Column(Integer, nullable=False, index=True)
    stay_from = Column("stay_date_from", Date, nullable=False)
    stay_to = Column("stay_date_to", Date, nullable=False)
    booking_from = Column("booking_date_from", Date, nullable=False)
    booking_to = Column("booking_date_to", Date, nullable=True)
    nights = Column(Integer, nullable=False, default=1)
    value = Column(Numeric(12, 4), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<BungalowRate id={self.id} bungalow={self.bungalow_id} "
            f"stay={self.stay_from}..{self.stay_to} "
            f"booking={self.booking_from}..{self.booking_to or ''} value={self.value}>"
        )

    @property
    def is_active(self) -> bool:
        return self.booking_to is None

    @property
    def per_night_value(self) -> Decimal:
        return Decimal(self.value) / Decimal(self.nights)

    def covers_night(self, night: date) -> bool:
        return self.stay_from <= night <= self.stay_to

    def valid_for_booking(self, booking_date: date) -> bool:
        if booking_date < self.booking_from:
            return False
        return self.booking_to is None or booking_date <= self.booking_to

    @classmethod
    def fragment_of(
        cls,
        source: "BungalowRate",
        *,
        stay_from: date,
        stay_to: date,
        booking_from: date,
    ) -> "BungalowRate":
        """Build a new active record carrying only the pricing of ``source``."""

        return cls(
            bungalow_id=source.bungalow_id,
            value=source.value,
            nights=source.nights,
            stay_from=stay_from,
            stay_to=stay_to,
            booking_from=booking_from,
            booking_to=None,
        )

    @classmethod
    def merged(cls, first: "BungalowRate", second: "BungalowRate") -> "BungalowRate":
        """Build the active record spanning two adjacent records of equal value."""

        return cls(
            bungalow_id=first.bungalow_id,
            value=first.value,
            nights=1,
            stay_from=first.stay_from,
            stay_to=second.stay_to,
            booking_from=second.booking_from,
            booking_to=None,
        )
