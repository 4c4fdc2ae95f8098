from typing import Any, Dict, List

from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import get_meter_provider, set_meter_provider
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import Resource
from pydantic import BaseModel, Field

from ._resource import _inject_otel_resource_attributes, _process_metadata

# ============================================================
# CONFIG OBJECTS
# ============================================================


class MetricReader(BaseModel):
    """
    Defines how a metric reader should be constructed.
    Only push-based readers are supported (PeriodicExportingMetricReader).
    """

    reader: Any
    config: Dict[str, Any] = Field(default_factory=dict)
    exporters: List[Any] = Field(default_factory=list)


class MetricsConfig(BaseModel):
    resource: Dict[str, Any] = Field(default_factory=dict)
    readers: List[MetricReader] = Field(default_factory=list)


_CONFIGURED_METRICS = False


# ============================================================
# APPLY METRICS CONFIGURATION
# ============================================================


def configure_metrics(cfg: MetricsConfig, service_name: str = "bender-mq") -> None:
    global _CONFIGURED_METRICS
    if _CONFIGURED_METRICS:
        return

    metadata = _process_metadata(service_name)
    resource = Resource(attributes=_inject_otel_resource_attributes(resource=cfg.resource, metadata=metadata))

    # each exporter gets its own reader
    readers = [r.reader(exporter=exporter, **r.config) for r in cfg.readers for exporter in r.exporters]

    set_meter_provider(MeterProvider(resource=resource, metric_readers=readers))

    _CONFIGURED_METRICS = True


# ============================================================
# ACCESSOR
# ============================================================


def get_metric_meter(name: str):
    """
    Returns a Meter from the global MeterProvider.
    """
    return get_meter_provider().get_meter(name)


__all__ = [
    "OTLPMetricExporter",
    "ConsoleMetricExporter",
    "PeriodicExportingMetricReader",
    "MetricReader",
    "MetricsConfig",
    "configure_metrics",
    "get_metric_meter",
]
