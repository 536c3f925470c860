"""Per-bungalow serialization of timeline changes."""

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from threading import Lock
from typing import Dict, Iterable, Iterator, Optional


class UnitLocks:
    """Thread-safe registry handing out one lock per bungalow.

    The locks serialize changes inside one process only. A store created with
    ``commit=False`` leaves committing to its caller, which happens after the
    lock is released, so another writer may read the bungalow before that
    commit lands.
    """

    _lock = Lock()
    _units: Dict[int, Lock] = {}

    @classmethod
    def for_unit(cls, bungalow_id: int) -> Lock:
        with cls._lock:
            unit_lock = cls._units.get(bungalow_id)
            if unit_lock is None:
                unit_lock = Lock()
                cls._units[bungalow_id] = unit_lock
            return unit_lock

    @classmethod
    @contextmanager
    def hold(cls, bungalow_ids: Iterable[Optional[int]]) -> Iterator[None]:
        """Hold the locks of every given bungalow; ``None`` entries are ignored.

        Locks are taken in ascending id order so two callers locking the same
        pair of bungalows cannot deadlock.
        """

        with ExitStack() as stack:
            for bungalow_id in sorted({bid for bid in bungalow_ids if bid is not None}):
                stack.enter_context(cls.for_unit(bungalow_id))
            yield

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._units.clear()
