"""pg-stat-collector

Version-aware collector for PostgreSQL's ``pg_stat_database`` view. Requests
only the columns the detected server exposes, tolerates missing values per
column and pushes typed, labeled observations to a sink.

Usage:
    python -m pg_stat_collector scrape
    python -m pg_stat_collector columns --server-version 14.2
"""

from pg_stat_collector.catalog import STAT_DATABASE_CATALOG, MetricCatalog
from pg_stat_collector.collectors import StatDatabaseCollector
from pg_stat_collector.models import MetricDefinition, MetricKind, Observation
from pg_stat_collector.sinks import ListSink, MetricSink, QueueSink

__all__ = [
    "STAT_DATABASE_CATALOG",
    "ListSink",
    "MetricCatalog",
    "MetricDefinition",
    "MetricKind",
    "MetricSink",
    "Observation",
    "QueueSink",
    "StatDatabaseCollector",
]
__version__ = "0.1.0"
