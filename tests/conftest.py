"""Shared test fixtures"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from pg_stat_collector.catalog import STAT_DATABASE_CATALOG, MetricCatalog


class FakeRow:
    """Stands in for a SQLAlchemy Row; only ``_mapping`` is used."""

    def __init__(self, mapping: dict[str, Any]) -> None:
        self._mapping = mapping


class FakeResult:
    """Async-iterable result stream with an awaitable ``close``.

    ``error_at`` raises ``error`` when iteration reaches that row index.
    """

    def __init__(
        self,
        rows: list[dict[str, Any]],
        error: BaseException | None = None,
        error_at: int | None = None,
    ) -> None:
        self._rows = rows
        self._error = error
        self._error_at = error_at
        self.close = AsyncMock()
        self.yielded = 0

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for index, row in enumerate(self._rows):
            if self._error is not None and index == self._error_at:
                raise self._error
            self.yielded += 1
            yield FakeRow(row)
        if self._error is not None and self._error_at == len(self._rows):
            raise self._error


def make_connection(result: FakeResult | None = None, error: Exception | None = None) -> MagicMock:
    """MagicMock connection whose ``stream`` returns ``result`` or raises ``error``."""
    conn = MagicMock()
    if error is not None:
        conn.stream = AsyncMock(side_effect=error)
    else:
        conn.stream = AsyncMock(return_value=result)
    return conn


@pytest.fixture
def catalog() -> MetricCatalog:
    return STAT_DATABASE_CATALOG


@pytest.fixture
def stats_reset_at() -> datetime:
    return datetime(2024, 1, 15, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_row(stats_reset_at: datetime) -> Callable[..., dict[str, Any]]:
    """Build a fully populated pg_stat_database row; keyword overrides win."""

    def _make_row(**overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "datid": 12345,
            "datname": "appdb",
            "numbackends": 3,
            "xact_commit": 100,
            "xact_rollback": 2,
            "blks_read": 500,
            "blks_hit": 9500,
            "tup_returned": 20000,
            "tup_fetched": 8000,
            "tup_inserted": 150,
            "tup_updated": 75,
            "tup_deleted": 10,
            "conflicts": 0,
            "temp_files": 4,
            "temp_bytes": 409600,
            "deadlocks": 1,
            "blk_read_time": 12.5,
            "blk_write_time": 3.25,
            "stats_reset": stats_reset_at,
        }
        row.update(overrides)
        return row

    return _make_row
