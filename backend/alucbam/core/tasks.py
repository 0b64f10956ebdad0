"""
Fire-and-forget execution of persistence writes.

In-memory state is authoritative for the current session; store writes run
as background tasks whose failures are logged and recorded, never raised
into the calculation path and never rolled back. Writes are tagged with the
collection they touch so a later read of that collection can wait for them
with ``settle``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import partial
from typing import Any

from alucbam.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PersistenceFailure:
    """A background write that did not complete."""

    operation: str
    error: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def _unfinished(tasks: Iterable[asyncio.Task[Any]]) -> list[asyncio.Task[Any]]:
    return [task for task in tasks if not task.done()]


class PersistenceDispatcher:
    """Schedules store coroutines without blocking the caller.

    Usage::

        dispatcher = PersistenceDispatcher()
        dispatcher.submit(
            "create_report",
            store.create("cbamReports", record),
            collection="cbamReports",
        )
        await dispatcher.settle("cbamReports")   # before reading reports again
        ...
        await dispatcher.drain()
    """

    def __init__(self, *, max_failures: int = 100) -> None:
        self._pending: set[asyncio.Task[Any]] = set()
        self._by_collection: dict[str, set[asyncio.Task[Any]]] = {}
        self._failures: list[PersistenceFailure] = []
        self._max_failures = max_failures

    @property
    def failures(self) -> list[PersistenceFailure]:
        """Most recent write failures, oldest first."""
        return list(self._failures)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(
        self,
        operation: str,
        coro: Coroutine[Any, Any, Any],
        *,
        collection: str | None = None,
    ) -> asyncio.Task[Any]:
        """Schedule *coro* on the running loop and return immediately."""
        task = asyncio.get_running_loop().create_task(self._run(operation, coro))
        # Keep a strong reference until the task finishes
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        if collection is not None:
            self._by_collection.setdefault(collection, set()).add(task)
            task.add_done_callback(partial(self._forget, collection))
        return task

    async def settle(self, collection: str) -> None:
        """Wait for outstanding writes to *collection*.

        Failed writes are recorded as usual and never raised here.
        """
        while waiting := _unfinished(self._by_collection.get(collection, ())):
            await asyncio.gather(*waiting)

    async def drain(self) -> None:
        """Wait for all outstanding writes to settle."""
        while waiting := _unfinished(self._pending):
            await asyncio.gather(*waiting)

    def _forget(self, collection: str, task: asyncio.Task[Any]) -> None:
        tasks = self._by_collection.get(collection)
        if tasks is not None:
            tasks.discard(task)
            if not tasks:
                del self._by_collection[collection]

    async def _run(self, operation: str, coro: Coroutine[Any, Any, Any]) -> None:
        try:
            await coro
        except Exception as exc:
            logger.exception("persistence_write_failed", operation=operation)
            self._failures.append(PersistenceFailure(operation=operation, error=repr(exc)))
            if len(self._failures) > self._max_failures:
                del self._failures[0]
