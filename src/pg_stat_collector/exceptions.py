"""Custom exceptions

Separates cycle-aborting collection errors from startup configuration errors.
"""

from __future__ import annotations


class MetricsError(Exception):
    """Base class for all collector errors"""


class CollectorError(MetricsError):
    """Collection error

    Aborts the current scrape cycle. No observations from the failing
    collector are emitted for that cycle.
    """

    def __init__(self, collector_name: str, message: str) -> None:
        self.collector_name = collector_name
        super().__init__(f"[{collector_name}] {message}")


class QueryExecutionError(CollectorError):
    """Raised when the statistics query cannot be executed."""


class RowScanError(CollectorError):
    """Raised when the result stream is malformed or fails mid-iteration."""


class ConfigurationError(MetricsError):
    """Configuration error

    Raised at startup for invalid settings or an inconsistent metric catalog.
    """


class DatabaseConnectionError(MetricsError):
    """Raised when the target server cannot be reached or refuses the session."""


class VersionDetectionError(MetricsError):
    """Raised when the server version cannot be read or parsed."""
