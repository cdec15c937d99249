"""
Storefront Core — Persistence Seams
=====================================
The order core talks to storage only through repositories and a
unit of work. A unit of work is all-or-nothing: if the block raises,
every write made inside it is discarded.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Callable, Protocol


class UnitOfWork(Protocol):
    def atomic(self) -> AbstractContextManager:
        """Context manager; commits on normal exit, rolls back on error."""
        ...

    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run callback once the enclosing unit of work has committed."""
        ...


__all__ = ["UnitOfWork"]
