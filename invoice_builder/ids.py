# invoice_builder/ids.py
"""Identifier generators for items and taxes.

The engine never invents ids on its own: callers hand it a generator, so tests
can use a predictable counter while the service uses uuids.
"""
from __future__ import annotations

import itertools
import uuid
from typing import Callable, Iterable

IdGenerator = Callable[[], str]


class CounterIds:
    """Monotonic ids: ``item-1``, ``item-2``, ..."""

    def __init__(self, prefix: str = "id", start: int = 1):
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


def uuid_ids() -> str:
    return uuid.uuid4().hex


def allocate_id(ids: IdGenerator, taken: Iterable[str]) -> str:
    """Draw an id from ``ids`` that is not already used in ``taken``.

    A generator that repeats itself gets a numeric suffix appended until the
    id is free.
    """
    used = set(taken)
    candidate = ids()
    if candidate not in used:
        return candidate
    n = 2
    while f"{candidate}-{n}" in used:
        n += 1
    return f"{candidate}-{n}"
