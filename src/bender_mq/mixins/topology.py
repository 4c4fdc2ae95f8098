import logging

import pika
from pika.adapters.blocking_connection import BlockingChannel

from .. import topology
from ..exceptions import TopologyException
from . import metrics as mixin_metrics

logger = logging.getLogger(__name__)


class TopologyMixin:
    """
    Idempotent declarations of the shared exchanges and queues.

    Every call is a single attempt; failures raise TopologyException and are
    meant to abort service start-up.
    """

    channel: BlockingChannel

    # -------------------------------------------------------------------
    # EXCHANGES
    # -------------------------------------------------------------------
    def declare_topic_exchange(self) -> None:
        """Declare the `info-topic` topic exchange used by post_to_info/post_job_info/post_task_info."""
        self._declare_exchange(topology.EXCHANGES["info"])

    def declare_job_exchange(self) -> None:
        """Declare the `job` direct exchange used by post_to_job/post_job."""
        self._declare_exchange(topology.EXCHANGES["job"])

    def declare_work_exchange(self) -> None:
        """Declare the `work` direct exchange used by post_to_work/post_task."""
        self._declare_exchange(topology.EXCHANGES["work"])

    def declare_worker_exchange(self) -> None:
        """Declare the `worker-topic` topic exchange used by worker_post."""
        self._declare_exchange(topology.EXCHANGES["worker"])

    # -------------------------------------------------------------------
    # QUEUES
    # -------------------------------------------------------------------
    def create_info_queue(self) -> None:
        self._create_queue(topology.QUEUES["info"])

    def create_job_queue(self, bind: bool = True) -> None:
        """
        Declare the `job` queue. With `bind` (the default) it is also bound to
        the `job` exchange on routing key `job`; `bind=False` leaves it unbound.
        """
        self._create_queue(topology.QUEUES["job"], bind_direct=bind)

    def create_work_queue(self, bind: bool = True) -> None:
        self._create_queue(topology.QUEUES["work"], bind_direct=bind)

    def create_worker_queue(self) -> None:
        self._create_queue(topology.QUEUES["worker"])

    def declare_topology(self, bind_direct_queues: bool = True) -> None:
        """Declare every exchange, then every queue, in table order."""
        self.declare_topic_exchange()
        self.declare_job_exchange()
        self.declare_work_exchange()
        self.declare_worker_exchange()

        self.create_info_queue()
        self.create_job_queue(bind=bind_direct_queues)
        self.create_work_queue(bind=bind_direct_queues)
        self.create_worker_queue()

    # -------------------------------------------------------------------
    # INTERNALS
    # -------------------------------------------------------------------
    def _declare_exchange(self, spec: topology.ExchangeSpec) -> None:
        try:
            self.channel.exchange_declare(
                exchange=spec.name,
                exchange_type=spec.kind.value,
                passive=spec.passive,
                durable=spec.durable,
                auto_delete=spec.auto_delete,
                internal=spec.internal,
            )
        except pika.exceptions.AMQPError as exc:
            mixin_metrics.record_declaration("exchange", spec.name, "error")
            logger.error(f"Declaration of {spec.kind.value} exchange '{spec.name}' failed: {exc!r}")
            raise TopologyException(
                f"Declaration of {spec.kind.value} exchange '{spec.name}' failed: {exc}",
                exchange=spec.name,
            ) from exc

        mixin_metrics.record_declaration("exchange", spec.name, "ok")
        logger.info(f"Exchange '{spec.name}' ({spec.kind.value}) declared.")

    def _create_queue(self, spec: topology.QueueSpec, bind_direct: bool = False) -> None:
        try:
            self.channel.queue_declare(
                queue=spec.name,
                passive=spec.passive,
                durable=spec.durable,
                exclusive=spec.exclusive,
                auto_delete=spec.auto_delete,
            )
        except pika.exceptions.AMQPError as exc:
            mixin_metrics.record_declaration("queue", spec.name, "error")
            logger.error(f"Declaration of queue '{spec.name}' failed: {exc!r}")
            raise TopologyException(
                f"Declaration of queue '{spec.name}' failed: {exc}",
                queue=spec.name,
            ) from exc

        mixin_metrics.record_declaration("queue", spec.name, "ok")
        logger.info(f"Declared queue: {spec.name} (Durable: {spec.durable}, Exclusive: {spec.exclusive})")

        routing_key = spec.binding_key
        if routing_key is None and bind_direct:
            routing_key = spec.direct_key

        if spec.exchange is not None and routing_key is not None:
            self._bind_queue(spec.name, spec.exchange, routing_key)

    def _bind_queue(self, queue: str, exchange: str, routing_key: str) -> None:
        try:
            self.channel.queue_bind(queue=queue, exchange=exchange, routing_key=routing_key)
        except pika.exceptions.AMQPError as exc:
            mixin_metrics.record_declaration("binding", queue, "error")
            logger.error(f"Binding queue '{queue}' to '{exchange}' with key '{routing_key}' failed: {exc!r}")
            raise TopologyException(
                f"Binding queue '{queue}' to '{exchange}' with key '{routing_key}' failed: {exc}",
                exchange=exchange,
                queue=queue,
            ) from exc

        mixin_metrics.record_declaration("binding", queue, "ok")
        logger.info(f"Queue '{queue}' bound to exchange '{exchange}' with key '{routing_key}'")
