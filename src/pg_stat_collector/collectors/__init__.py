"""Collectors for PostgreSQL statistics views

Each collector queries one view and pushes typed observations to a sink.
"""

from pg_stat_collector.collectors.stat_database import (
    StatDatabaseCollector,
    build_query,
    decode_row,
    emit_row,
    select_columns,
)

__all__ = [
    "StatDatabaseCollector",
    "build_query",
    "decode_row",
    "emit_row",
    "select_columns",
]
