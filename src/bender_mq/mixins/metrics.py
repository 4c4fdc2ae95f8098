"""
Built-in OpenTelemetry instruments for publish and topology operations.

Instruments are created lazily on first use so that a MeterProvider configured
after import (telemetry.metrics.configure_metrics) is picked up. Until one is
configured the global no-op provider makes every record call free.
"""

from typing import Callable

from .. import telemetry

# ============================================================
# LAZY METER INITIALIZATION
# ============================================================

_meter = None
_instruments = {}


def _get_meter():
    global _meter
    if _meter is None:
        _meter = telemetry.metrics.get_metric_meter("bender_mq")
    return _meter


def _get_instrument(name: str, factory: Callable):
    if name not in _instruments:
        _instruments[name] = factory(_get_meter())
    return _instruments[name]


def _publish_total():
    return _get_instrument(
        "bender_mq.publish.total",
        lambda m: m.create_counter(
            name="bender_mq.publish.total",
            description="Publish attempts, by exchange and outcome",
            unit="1",
        ),
    )


def _publish_duration():
    return _get_instrument(
        "bender_mq.publish.duration",
        lambda m: m.create_histogram(
            name="bender_mq.publish.duration",
            description="Time spent handing a message to the channel",
            unit="s",
        ),
    )


def _publish_returned():
    return _get_instrument(
        "bender_mq.publish.returned",
        lambda m: m.create_counter(
            name="bender_mq.publish.returned",
            description="Mandatory messages returned by the broker as unroutable",
            unit="1",
        ),
    )


def _topology_declarations():
    return _get_instrument(
        "bender_mq.topology.declarations",
        lambda m: m.create_counter(
            name="bender_mq.topology.declarations",
            description="Exchange/queue declarations and bindings, by outcome",
            unit="1",
        ),
    )


# ============================================================
# RECORDING HELPERS
# ============================================================


def record_publish(exchange: str, duration: float, outcome: str):
    """outcome: "ok" | "error" """
    attrs = {"exchange": exchange, "outcome": outcome}
    _publish_total().add(1, attrs)
    _publish_duration().record(duration, {"exchange": exchange})


def record_returned(exchange: str, reply_code: int):
    _publish_returned().add(1, {"exchange": exchange, "reply_code": reply_code})


def record_declaration(kind: str, name: str, outcome: str):
    """kind: "exchange" | "queue" | "binding" """
    _topology_declarations().add(1, {"kind": kind, "name": name, "outcome": outcome})
