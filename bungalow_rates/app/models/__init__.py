"""Expose SQLAlchemy models for convenient imports."""

from .bungalow_rate import BungalowRate, normalized_per_night

__all__ = ["BungalowRate", "normalized_per_night"]
