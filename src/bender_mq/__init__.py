"""
bender_mq: the messaging topology of the bender job pipeline on top of pika.

Producers announce job/task state on `info-topic`, hand off work on the `job`
and `work` direct exchanges, and workers report status on `worker-topic`.
"""

from . import telemetry, topology
from .channel import BenderMQ
from .config import BenderConfig, RabbitmqConfig, config_location, load_config
from .exceptions import (
    BenderMQException,
    ConfigException,
    ConnectionException,
    ExceptionType,
    PublishException,
    SerializationException,
    TopologyException,
)
from .models import OutgoingMessage, PublishErrorPolicy
from .payload import Identifiable, JsonPayload, Serializable

__all__ = [
    "BenderMQ",
    "BenderConfig",
    "RabbitmqConfig",
    "config_location",
    "load_config",
    "BenderMQException",
    "ConfigException",
    "ConnectionException",
    "ExceptionType",
    "PublishException",
    "SerializationException",
    "TopologyException",
    "OutgoingMessage",
    "PublishErrorPolicy",
    "Identifiable",
    "JsonPayload",
    "Serializable",
    "telemetry",
    "topology",
]

__version__ = "0.1.0"
