"""Sensor catalog, value model and collector.

The collector depends only on the ``MetricSource`` interface; the concrete
source for the running platform comes from ``get_metric_source()``.
"""

from desktop_companion.sensors.catalog import CATALOG, CATALOG_BY_ID, CatalogEntry, default_enabled
from desktop_companion.sensors.collector import MetricSnapshot, SensorCollector, sanitize_identifier
from desktop_companion.sensors.platforms import MetricSource, PsutilMetricSource, get_metric_source
from desktop_companion.sensors.types import (
    SensorCategory,
    SensorDefinition,
    SensorListItem,
    SensorType,
    SensorValue,
    StateClass,
    StateValue,
)

__all__ = [
    "CATALOG",
    "CATALOG_BY_ID",
    "CatalogEntry",
    "MetricSnapshot",
    "MetricSource",
    "PsutilMetricSource",
    "SensorCategory",
    "SensorCollector",
    "SensorDefinition",
    "SensorListItem",
    "SensorType",
    "SensorValue",
    "StateClass",
    "StateValue",
    "default_enabled",
    "get_metric_source",
    "sanitize_identifier",
]
