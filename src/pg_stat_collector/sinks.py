"""Observation sinks

A sink is the only resource shared between collectors that run concurrently,
so every implementation here accepts pushes from independent callers.
"""

from __future__ import annotations

import asyncio
from threading import Lock
from typing import Protocol, runtime_checkable

from pg_stat_collector.models import Observation


@runtime_checkable
class MetricSink(Protocol):
    """Receiver of emitted observations."""

    def push(self, observation: Observation) -> None:
        """Accept one observation."""
        ...


class ListSink:
    """In-memory sink that keeps every observation it receives."""

    def __init__(self) -> None:
        self._observations: list[Observation] = []
        self._lock = Lock()

    def push(self, observation: Observation) -> None:
        with self._lock:
            self._observations.append(observation)

    def extend(self, observations: list[Observation]) -> None:
        with self._lock:
            self._observations.extend(observations)

    @property
    def observations(self) -> list[Observation]:
        with self._lock:
            return list(self._observations)

    def clear(self) -> None:
        with self._lock:
            self._observations.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._observations)


class QueueSink:
    """Sink backed by an unbounded asyncio queue.

    Pushing never blocks; consumers drain the queue with ``get()`` or
    ``drain()`` on the same event loop.
    """

    def __init__(self) -> None:
        self.queue: asyncio.Queue[Observation] = asyncio.Queue()

    def push(self, observation: Observation) -> None:
        self.queue.put_nowait(observation)

    async def get(self) -> Observation:
        return await self.queue.get()

    def drain(self) -> list[Observation]:
        items: list[Observation] = []
        while True:
            try:
                items.append(self.queue.get_nowait())
            except asyncio.QueueEmpty:
                return items
