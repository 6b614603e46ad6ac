"""Data models

Metric definitions, decoded rows and the observations handed to sinks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from packaging.version import Version


class MetricKind(str, Enum):
    """How a metric value should be interpreted downstream."""

    GAUGE = "gauge"
    COUNTER = "counter"


class ValueType(str, Enum):
    """Raw type of the source column."""

    NUMBER = "number"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class MetricDefinition:
    """One observable column of the source view.

    ``divisor`` is applied at emission time so decoded rows keep raw values.
    ``default`` is emitted when the value is absent; ``None`` skips the metric.
    """

    column: str
    name: str
    help: str
    kind: MetricKind
    label_names: tuple[str, ...]
    min_version: Version | None = None
    value_type: ValueType = ValueType.NUMBER
    divisor: float = 1.0
    default: float | None = None

    def available_in(self, version: Version | None) -> bool:
        """Whether the column can be requested from a server of ``version``.

        An unknown version only admits unconditional columns.
        """
        if self.min_version is None:
            return True
        if version is None:
            return False
        return version >= self.min_version


@dataclass(frozen=True)
class ColumnValue:
    """A decoded column value that is explicitly present or absent."""

    value: Any = None
    present: bool = False

    @classmethod
    def of(cls, value: Any) -> ColumnValue:
        return cls(value=value, present=True)

    @classmethod
    def absent(cls) -> ColumnValue:
        return cls()


ABSENT = ColumnValue.absent()


@dataclass(frozen=True)
class DecodedRow:
    """One ``pg_stat_database`` record after decoding."""

    labels: Mapping[str, str]
    values: Mapping[str, ColumnValue] = field(default_factory=dict)

    def get(self, column: str) -> ColumnValue:
        return self.values.get(column, ABSENT)


@dataclass(frozen=True)
class Observation:
    """A typed, labeled sample pushed to a sink."""

    definition: MetricDefinition
    value: float
    label_values: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.label_values) != len(self.definition.label_names):
            raise ValueError(
                f"{self.definition.name}: expected {len(self.definition.label_names)} "
                f"label values, got {len(self.label_values)}"
            )

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def kind(self) -> MetricKind:
        return self.definition.kind

    @property
    def labels(self) -> dict[str, str]:
        return dict(zip(self.definition.label_names, self.label_values))

    def to_dict(self) -> dict[str, Any]:
        """Return a plain dict for JSON output."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "value": self.value,
            "labels": self.labels,
        }


def timestamp_to_seconds(value: datetime) -> float:
    """Convert a timestamp column to unix seconds; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return float(int(value.timestamp()))
