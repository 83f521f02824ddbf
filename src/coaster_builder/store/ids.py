"""Point id generators injected into :class:`~coaster_builder.store.PathStore`."""

from __future__ import annotations

import itertools
import uuid


class CounterIdGenerator:
    """Monotonic ``<prefix>-<n>`` ids, starting at ``start``."""

    def __init__(self, prefix: str = "point", start: int = 1) -> None:
        self._prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


class UUIDIdGenerator:
    """Random UUID4 ids; for hosts that merge tracks from several sessions."""

    def __call__(self) -> str:
        return uuid.uuid4().hex
