"""Collector for ``pg_stat_database``

Builds a version-appropriate query, decodes each row with per-column
tolerance and emits one observation per available metric per database.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Sequence

import structlog
from packaging.version import Version
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from pg_stat_collector.catalog import STAT_DATABASE_CATALOG, MetricCatalog
from pg_stat_collector.exceptions import CollectorError, QueryExecutionError, RowScanError
from pg_stat_collector.models import (
    ABSENT,
    ColumnValue,
    DecodedRow,
    MetricDefinition,
    Observation,
    ValueType,
    timestamp_to_seconds,
)
from pg_stat_collector.sinks import MetricSink

logger = structlog.get_logger(__name__)

STAT_DATABASE_VIEW = "pg_stat_database"


def select_columns(catalog: MetricCatalog, version: Version | None) -> tuple[str, ...]:
    """Columns to request from a server of ``version``.

    Identity columns first, then unconditional metric columns, then each
    satisfied version-gated column, all in declared order. ``None`` means the
    version is unknown and only unconditional columns are requested.
    """
    return catalog.identity_columns + tuple(d.column for d in catalog.active(version))


def build_query(columns: Sequence[str]) -> str:
    """Query selecting exactly ``columns`` from the view, unfiltered."""
    return f"SELECT {','.join(columns)} FROM {STAT_DATABASE_VIEW};"


def _decode_number(raw: Any) -> ColumnValue:
    if raw is None or isinstance(raw, bool):
        return ABSENT
    try:
        return ColumnValue.of(float(raw))
    except (TypeError, ValueError):
        return ABSENT


def _decode_timestamp(raw: Any) -> ColumnValue:
    if isinstance(raw, datetime):
        return ColumnValue.of(raw)
    return ABSENT


_DECODERS = {
    ValueType.NUMBER: _decode_number,
    ValueType.TIMESTAMP: _decode_timestamp,
}


def decode_row(
    mapping: Mapping[str, Any],
    columns: Sequence[str],
    catalog: MetricCatalog,
    log: Any = None,
) -> DecodedRow | None:
    """Decode one result row.

    Returns ``None`` when an identity column is null, which discards the row.
    NULL or unconvertible metric values become absent values.

    Raises:
        RowScanError: a requested column is missing from the row itself
    """
    log = log or logger
    missing = [column for column in columns if column not in mapping]
    if missing:
        raise RowScanError(catalog.subsystem, f"result row is missing columns: {missing}")

    labels: dict[str, str] = {}
    for column in catalog.identity_columns:
        raw = mapping[column]
        if raw is None:
            log.debug("skipping row without identity", column=column)
            return None
        labels[column] = str(raw)

    requested = set(columns)
    values: dict[str, ColumnValue] = {}
    for definition in catalog:
        if definition.column not in requested:
            continue
        raw = mapping[definition.column]
        value = _DECODERS[definition.value_type](raw)
        if not value.present and raw is not None:
            log.debug(
                "unconvertible column value",
                column=definition.column,
                raw_type=type(raw).__name__,
            )
        values[definition.column] = value

    return DecodedRow(labels=labels, values=values)


def _emitted_value(definition: MetricDefinition, value: ColumnValue) -> float:
    raw = value.value
    if definition.value_type is ValueType.TIMESTAMP:
        return timestamp_to_seconds(raw)
    return raw / definition.divisor


def emit_row(
    row: DecodedRow,
    definitions: Sequence[MetricDefinition],
    log: Any = None,
) -> list[Observation]:
    """One observation per definition whose value is present or defaulted."""
    log = log or logger
    observations: list[Observation] = []
    for definition in definitions:
        value = row.get(definition.column)
        if value.present:
            metric_value = _emitted_value(definition, value)
        elif definition.default is not None:
            log.debug(
                "no value, collecting default instead",
                column=definition.column,
                default=definition.default,
            )
            metric_value = definition.default
        else:
            log.debug("skipping metric without value", column=definition.column)
            continue

        label_values = tuple(row.labels[name] for name in definition.label_names)
        observations.append(Observation(definition, metric_value, label_values))
    return observations


class StatDatabaseCollector:
    """Stateless per-database statistics collector.

    A single instance may serve concurrent scrapes; each ``collect`` call
    opens and releases its own result stream.
    """

    def __init__(self, catalog: MetricCatalog = STAT_DATABASE_CATALOG) -> None:
        self.catalog = catalog

    @property
    def name(self) -> str:
        return self.catalog.subsystem

    async def collect(
        self,
        conn: AsyncConnection,
        version: Version | None,
        sink: MetricSink,
    ) -> int:
        """Run one scrape cycle and push its observations to ``sink``.

        Observations are buffered until the whole result stream has been read,
        so a failed cycle pushes nothing.

        Args:
            conn: open connection to the target server
            version: detected server version, or ``None`` if unknown
            sink: receiver of the observations

        Returns:
            Number of observations pushed

        Raises:
            QueryExecutionError: the query could not be executed
            RowScanError: the result stream failed or was malformed
        """
        columns = select_columns(self.catalog, version)
        definitions = self.catalog.active(version)
        query = build_query(columns)
        log = logger.bind(collector=self.name, version=str(version) if version else None)
        log.debug("query execution started", columns=len(columns))

        try:
            result = await conn.stream(text(query))
        except Exception as e:
            log.error("query execution failed", error=str(e), query=query[:200])
            raise QueryExecutionError(self.name, str(e)) from e

        buffered: list[Observation] = []
        rows = 0
        discarded = 0
        try:
            async for row in result:
                rows += 1
                decoded = decode_row(row._mapping, columns, self.catalog, log)
                if decoded is None:
                    discarded += 1
                    continue
                buffered.extend(emit_row(decoded, definitions, log.bind(**decoded.labels)))
        except CollectorError:
            raise
        except Exception as e:
            log.error("row iteration failed", error=str(e), rows=rows)
            raise RowScanError(self.name, str(e)) from e
        finally:
            await result.close()

        for observation in buffered:
            sink.push(observation)

        log.info(
            "collection complete",
            rows=rows,
            discarded=discarded,
            observations=len(buffered),
        )
        return len(buffered)
