"""Metric catalog

Declares every observable column of ``pg_stat_database`` once, at import time.
Version-gated columns carry the lowest server version that exposes them.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from packaging.version import Version

from pg_stat_collector.exceptions import ConfigurationError
from pg_stat_collector.models import MetricDefinition, MetricKind, ValueType

DEFAULT_NAMESPACE = "pg"
STAT_DATABASE_SUBSYSTEM = "stat_database"
STAT_DATABASE_LABELS = ("datid", "datname")


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty parts of a metric name with underscores."""
    return "_".join(part for part in (namespace, subsystem, name) if part)


class MetricCatalog:
    """Immutable, ordered set of metric definitions for one source view.

    ``identity_columns`` are requested before any metric column and scope every
    metric derived from a row.
    """

    def __init__(
        self,
        subsystem: str,
        identity_columns: Iterable[str],
        definitions: Iterable[MetricDefinition],
    ) -> None:
        self.subsystem = subsystem
        self.identity_columns = tuple(identity_columns)
        self._definitions = tuple(definitions)

        seen_names: set[str] = set()
        seen_columns: set[str] = set(self.identity_columns)
        for definition in self._definitions:
            if definition.name in seen_names:
                raise ConfigurationError(f"duplicate metric name: {definition.name}")
            if definition.column in seen_columns:
                raise ConfigurationError(f"duplicate column: {definition.column}")
            missing = set(definition.label_names) - set(self.identity_columns)
            if missing:
                raise ConfigurationError(
                    f"{definition.name}: labels {sorted(missing)} are not identity columns"
                )
            seen_names.add(definition.name)
            seen_columns.add(definition.column)

    def __iter__(self) -> Iterator[MetricDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    @property
    def definitions(self) -> tuple[MetricDefinition, ...]:
        return self._definitions

    def get(self, name: str) -> MetricDefinition:
        for definition in self._definitions:
            if definition.name == name:
                return definition
        raise KeyError(name)

    def active(self, version: Version | None) -> tuple[MetricDefinition, ...]:
        """Definitions whose column may be requested for ``version``.

        Unconditional definitions come first in declared order, followed by
        the satisfied version-gated ones, also in declared order.
        """
        unconditional = [d for d in self._definitions if d.min_version is None]
        gated = [
            d for d in self._definitions if d.min_version is not None and d.available_in(version)
        ]
        return tuple(unconditional + gated)


def _stat_database_metric(
    namespace: str,
    column: str,
    help_text: str,
    kind: MetricKind = MetricKind.COUNTER,
    name: str | None = None,
    **kwargs: object,
) -> MetricDefinition:
    return MetricDefinition(
        column=column,
        name=build_fq_name(namespace, STAT_DATABASE_SUBSYSTEM, name or column),
        help=help_text,
        kind=kind,
        label_names=STAT_DATABASE_LABELS,
        **kwargs,  # type: ignore[arg-type]
    )


def build_stat_database_catalog(namespace: str = DEFAULT_NAMESPACE) -> MetricCatalog:
    """Build the ``pg_stat_database`` catalog under ``namespace``."""
    ns = namespace
    return MetricCatalog(
        subsystem=STAT_DATABASE_SUBSYSTEM,
        identity_columns=STAT_DATABASE_LABELS,
        definitions=[
            _stat_database_metric(
                ns,
                "numbackends",
                "Number of backends currently connected to this database. This is the only "
                "column in this view that returns a value reflecting current state; all other "
                "columns return the accumulated values since the last reset.",
                kind=MetricKind.GAUGE,
            ),
            _stat_database_metric(
                ns,
                "xact_commit",
                "Number of transactions in this database that have been committed",
            ),
            _stat_database_metric(
                ns,
                "xact_rollback",
                "Number of transactions in this database that have been rolled back",
            ),
            _stat_database_metric(ns, "blks_read", "Number of disk blocks read in this database"),
            _stat_database_metric(
                ns,
                "blks_hit",
                "Number of times disk blocks were found already in the buffer cache, so that a "
                "read was not necessary (this only includes hits in the PostgreSQL buffer cache, "
                "not the operating system's file system cache)",
            ),
            _stat_database_metric(
                ns, "tup_returned", "Number of rows returned by queries in this database"
            ),
            _stat_database_metric(
                ns, "tup_fetched", "Number of rows fetched by queries in this database"
            ),
            _stat_database_metric(
                ns, "tup_inserted", "Number of rows inserted by queries in this database"
            ),
            _stat_database_metric(
                ns, "tup_updated", "Number of rows updated by queries in this database"
            ),
            _stat_database_metric(
                ns, "tup_deleted", "Number of rows deleted by queries in this database"
            ),
            _stat_database_metric(
                ns,
                "conflicts",
                "Number of queries canceled due to conflicts with recovery in this database. "
                "(Conflicts occur only on standby servers; see pg_stat_database_conflicts for "
                "details.)",
            ),
            _stat_database_metric(
                ns,
                "temp_files",
                "Number of temporary files created by queries in this database. All temporary "
                "files are counted, regardless of why the temporary file was created (e.g., "
                "sorting or hashing), and regardless of the log_temp_files setting.",
            ),
            _stat_database_metric(
                ns,
                "temp_bytes",
                "Total amount of data written to temporary files by queries in this database. "
                "All temporary files are counted, regardless of why the temporary file was "
                "created, and regardless of the log_temp_files setting.",
            ),
            _stat_database_metric(ns, "deadlocks", "Number of deadlocks detected in this database"),
            _stat_database_metric(
                ns,
                "blk_read_time",
                "Time spent reading data file blocks by backends in this database, in milliseconds",
            ),
            _stat_database_metric(
                ns,
                "blk_write_time",
                "Time spent writing data file blocks by backends in this database, in milliseconds",
            ),
            # 0 means "never reset", distinct from "not collected"
            _stat_database_metric(
                ns,
                "stats_reset",
                "Time at which these statistics were last reset",
                value_type=ValueType.TIMESTAMP,
                default=0.0,
            ),
            _stat_database_metric(
                ns,
                "active_time",
                "Time spent executing SQL statements in this database, in seconds",
                name="active_time_seconds_total",
                min_version=Version("14.0.0"),
                divisor=1000.0,
            ),
        ],
    )


STAT_DATABASE_CATALOG = build_stat_database_catalog()
