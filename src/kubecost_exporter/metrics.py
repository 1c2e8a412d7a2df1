"""
Prometheus metrics generated from configuration.

Each configured metric exports one numeric allocation field as a gauge. All
gauges share the same variable labels, whose values are read from each
allocation's properties through dotted paths.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple

from prometheus_client import CollectorRegistry, Gauge

from .canonical import canonicalize
from .cli_errors import ConfigError
from .constants import LABEL_SEPARATOR
from .models import Accessor, AllocationRecord, field_accessor, is_known_field
from .paths import resolve_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricName:
    name: str
    field: str


@dataclass(frozen=True)
class LabelSource:
    name: str
    key: str


def _entries(value: Any, setting: str) -> List[Mapping[str, Any]]:
    if value is None:
        raise ConfigError(f"'{setting}' is missing", context="Metric schema")
    if not isinstance(value, list):
        raise ConfigError(
            f"'{setting}' must be a list, got {type(value).__name__}", context="Metric schema"
        )
    for index, entry in enumerate(value):
        if not isinstance(entry, Mapping):
            raise ConfigError(
                f"'{setting}[{index}]' must be a mapping, got {type(entry).__name__}",
                context="Metric schema",
            )
    return value


def _required_string(entry: Mapping[str, Any], key: str, setting: str) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"'{setting}' entry needs a non-empty '{key}'", context="Metric schema")
    return value


@dataclass(frozen=True)
class MetricSchema:
    """Which allocation fields become metrics, and where their label values come from."""

    names: Tuple[MetricName, ...]
    labels: Tuple[LabelSource, ...]

    @classmethod
    def from_config(cls, names: Any, labels: Any) -> "MetricSchema":
        """
        Build the schema from the ``metrics.names`` and ``metrics.labels`` settings.

        Raises:
            ConfigError: If either setting is missing or malformed
        """
        metric_names = []
        for entry in _entries(names, "metrics.names"):
            metric = MetricName(
                name=_required_string(entry, "name", "metrics.names"),
                field=str(entry.get("field") or ""),
            )
            if not is_known_field(metric.field):
                logger.warning(
                    f"Metric '{metric.name}' exports unknown field '{metric.field}'; "
                    "it will always read 0"
                )
            metric_names.append(metric)

        label_sources = []
        seen = set()
        for entry in _entries(labels, "metrics.labels"):
            label = LabelSource(
                name=_required_string(entry, "name", "metrics.labels"),
                key=_required_string(entry, "key", "metrics.labels"),
            )
            if label.name in seen:
                raise ConfigError(
                    f"Duplicate label name '{label.name}'", context="Metric schema"
                )
            seen.add(label.name)
            label_sources.append(label)

        return cls(names=tuple(metric_names), labels=tuple(label_sources))

    @property
    def label_names(self) -> List[str]:
        return [label.name for label in self.labels]


def build_gauges(
    schema: MetricSchema,
    registry: CollectorRegistry,
    namespace: str = "",
    subsystem: str = "",
) -> Dict[str, Gauge]:
    """
    Create and register one gauge per configured metric, keyed by metric name.

    Gauges are registered on ``registry`` only, never on the global default
    registry, so the scrape endpoint exposes nothing but allocation metrics.

    Raises:
        ConfigError: If a metric or label name is invalid or already registered
    """
    gauges: Dict[str, Gauge] = {}
    for metric in schema.names:
        try:
            gauges[metric.name] = Gauge(
                metric.name,
                f"Kubecost allocation {metric.field or 'value'}",
                labelnames=schema.label_names,
                namespace=namespace,
                subsystem=subsystem,
                registry=registry,
            )
        except ValueError as e:
            raise ConfigError(
                f"Cannot create metric '{metric.name}': {e}", context="Metric schema"
            ) from e
    return gauges


class MetricUpdater:
    """Sets gauges from allocation records."""

    def __init__(
        self,
        schema: MetricSchema,
        gauges: Mapping[str, Gauge],
        separator: str = LABEL_SEPARATOR,
    ):
        self.schema = schema
        self.separator = separator
        self._targets: List[Tuple[str, Gauge, Accessor]] = []
        for metric in schema.names:
            gauge = gauges.get(metric.name)
            if gauge is None:
                logger.warning(
                    f"No gauge registered for metric '{metric.name}'; it will not be updated"
                )
                continue
            self._targets.append((metric.name, gauge, field_accessor(metric.field)))

    def build_labels(self, properties: Mapping[str, Any]) -> Dict[str, str]:
        """
        Resolve every configured label against an allocation's properties.

        Absent paths produce an empty label value, so every record carries the
        full label set.
        """
        labels: Dict[str, str] = {}
        for label in self.schema.labels:
            value, found = resolve_path(label.key, properties)
            labels[label.name] = canonicalize(value, self.separator) if found else ""
        return labels

    def update(self, records: Iterable[AllocationRecord]) -> int:
        """Set every configured gauge for every record. Returns the number of gauges set."""
        updated = 0
        for record in records:
            labels = self.build_labels(record.properties)
            for name, gauge, accessor in self._targets:
                try:
                    child = gauge.labels(**labels) if labels else gauge
                    child.set(accessor(record))
                except ValueError as e:
                    logger.error(
                        f"Number of label values is not the same as the number of variable "
                        f"labels for metric '{name}' (labels {sorted(labels)}): {e}"
                    )
                    continue
                updated += 1
        return updated
