"""Bungalow rate timeline engine."""

from __future__ import annotations

from .services import RateService
from .stores import InMemoryRateStore, RateStore, SqlAlchemyRateStore

__all__ = ["InMemoryRateStore", "RateService", "RateStore", "SqlAlchemyRateStore"]
