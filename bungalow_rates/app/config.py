"""Environment driven settings for the rate engine."""

from __future__ import annotations

import os
from dataclasses import dataclass

VALUE_SCALE_ENV = "RATES_VALUE_SCALE"
FULL_COMPACTION_ENV = "RATES_FULL_COMPACTION"

DEFAULT_VALUE_SCALE = 4


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return value


def _read_bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RateSettings:
    """Tunables for normalization and compaction."""

    value_scale: int = DEFAULT_VALUE_SCALE
    full_compaction: bool = False

    @classmethod
    def from_env(cls) -> "RateSettings":
        return cls(
            value_scale=_read_int_env(VALUE_SCALE_ENV, DEFAULT_VALUE_SCALE),
            full_compaction=_read_bool_env(FULL_COMPACTION_ENV, False),
        )
