"""Prometheus exposition

Groups a batch of observations into metric families and renders them in the
Prometheus text format with prometheus_client.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily, Metric

from pg_stat_collector.models import MetricDefinition, MetricKind, Observation


def _new_family(definition: MetricDefinition) -> Metric:
    if definition.kind is MetricKind.GAUGE:
        return GaugeMetricFamily(
            definition.name,
            definition.help,
            labels=list(definition.label_names),
        )
    family_name = definition.name
    if family_name.endswith("_total"):
        family_name = family_name[: -len("_total")]
    return Metric(family_name, definition.help, "counter")


class ObservationCollector:
    """prometheus_client collector over a fixed batch of observations."""

    def __init__(self, observations: Iterable[Observation]) -> None:
        self._observations = list(observations)

    def collect(self) -> Iterator[Metric]:
        families: dict[str, Metric] = {}
        for observation in self._observations:
            definition = observation.definition
            family = families.get(definition.name)
            if family is None:
                family = _new_family(definition)
                families[definition.name] = family
            if definition.kind is MetricKind.GAUGE:
                family.add_metric(list(observation.label_values), observation.value)
            else:
                # sample keeps the catalog name, no "_total" suffix is added
                family.add_sample(definition.name, observation.labels, observation.value)
        yield from families.values()


def render_exposition(observations: Iterable[Observation]) -> bytes:
    """Render observations in the Prometheus text exposition format."""
    registry = CollectorRegistry(auto_describe=False)
    registry.register(ObservationCollector(observations))
    return generate_latest(registry)
