"""sinks.py tests"""

from __future__ import annotations

import threading

import pytest

from pg_stat_collector.catalog import STAT_DATABASE_CATALOG
from pg_stat_collector.models import Observation
from pg_stat_collector.sinks import ListSink, MetricSink, QueueSink

DEADLOCKS = STAT_DATABASE_CATALOG.get("pg_stat_database_deadlocks")


def observation(value: float = 1.0, datid: str = "1") -> Observation:
    return Observation(DEADLOCKS, value, (datid, "postgres"))


def test_sinks_satisfy_protocol() -> None:
    assert isinstance(ListSink(), MetricSink)
    assert isinstance(QueueSink(), MetricSink)


class TestListSink:
    def test_push_and_clear(self) -> None:
        sink = ListSink()
        sink.push(observation(1.0))
        sink.extend([observation(2.0), observation(3.0)])

        assert [o.value for o in sink.observations] == [1.0, 2.0, 3.0]

        sink.clear()
        assert len(sink) == 0

    def test_concurrent_pushes_are_all_kept(self) -> None:
        sink = ListSink()

        def producer(datid: str) -> None:
            for i in range(200):
                sink.push(observation(float(i), datid))

        threads = [threading.Thread(target=producer, args=(str(n),)) for n in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(sink) == 1000


class TestQueueSink:
    @pytest.mark.asyncio
    async def test_push_then_get(self) -> None:
        sink = QueueSink()
        sink.push(observation(4.0))

        received = await sink.get()

        assert received.value == 4.0

    @pytest.mark.asyncio
    async def test_drain_empties_queue(self) -> None:
        sink = QueueSink()
        for i in range(3):
            sink.push(observation(float(i)))

        assert [o.value for o in sink.drain()] == [0.0, 1.0, 2.0]
        assert sink.drain() == []
