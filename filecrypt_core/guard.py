"""
filecrypt_core.guard
--------------------
Reentrant suppression of transparent encrypt/decrypt interception.

Each raw-I/O region enters `suppressed()`; interception stays off while the
per-thread depth is non-zero, so an inner region exiting (e.g. a recursive
directory walk) cannot re-enable it for the rest of the outer region.
"""

from __future__ import annotations
import threading
from contextlib import contextmanager
from typing import Iterator


class InterceptionGuard:
    def __init__(self):
        self._local = threading.local()

    @property
    def depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @property
    def intercepting(self) -> bool:
        return self.depth == 0

    @contextmanager
    def suppressed(self) -> Iterator["InterceptionGuard"]:
        self._local.depth = self.depth + 1
        try:
            yield self
        finally:
            self._local.depth -= 1
