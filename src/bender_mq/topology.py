"""
Wire-level topology shared by every bender service.

These names and kinds are a contract with existing brokers and consumers:
a given exchange name must always be declared with the same kind.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExchangeKind(str, Enum):
    DIRECT = "direct"
    TOPIC = "topic"


INFO_EXCHANGE = "info-topic"
JOB_EXCHANGE = "job"
WORK_EXCHANGE = "work"
WORKER_EXCHANGE = "worker-topic"

INFO_QUEUE = "info"
JOB_QUEUE = "job"
WORK_QUEUE = "work"
WORKER_QUEUE = "worker"

JOB_ROUTING_KEY = "job"
WORK_ROUTING_KEY = "work"

MATCH_ALL = "#"


class ExchangeSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: ExchangeKind
    durable: bool = True
    auto_delete: bool = False
    internal: bool = False
    passive: bool = False


class QueueSpec(BaseModel):
    """
    A durable queue and, optionally, the exchange it drains.

    `binding_key` is the pattern used for the queue-bind call; `None` means
    the queue is declared without any binding. Queues fed by a direct
    exchange carry `direct_key` instead: the routing key producers use, which
    equals the queue name.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    exchange: Optional[str] = None
    binding_key: Optional[str] = None
    durable: bool = True
    exclusive: bool = False
    auto_delete: bool = False
    passive: bool = False
    direct_key: Optional[str] = Field(default=None, description="Routing key used by the direct exchange")


EXCHANGES: Dict[str, ExchangeSpec] = {
    "info": ExchangeSpec(name=INFO_EXCHANGE, kind=ExchangeKind.TOPIC),
    "job": ExchangeSpec(name=JOB_EXCHANGE, kind=ExchangeKind.DIRECT),
    "work": ExchangeSpec(name=WORK_EXCHANGE, kind=ExchangeKind.DIRECT),
    "worker": ExchangeSpec(name=WORKER_EXCHANGE, kind=ExchangeKind.TOPIC),
}

QUEUES: Dict[str, QueueSpec] = {
    "info": QueueSpec(name=INFO_QUEUE, exchange=INFO_EXCHANGE, binding_key=MATCH_ALL),
    "job": QueueSpec(name=JOB_QUEUE, exchange=JOB_EXCHANGE, direct_key=JOB_ROUTING_KEY),
    "work": QueueSpec(name=WORK_QUEUE, exchange=WORK_EXCHANGE, direct_key=WORK_ROUTING_KEY),
    "worker": QueueSpec(name=WORKER_QUEUE, exchange=WORKER_EXCHANGE, binding_key=MATCH_ALL),
}
