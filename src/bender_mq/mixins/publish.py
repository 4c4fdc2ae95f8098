import logging
import time
from typing import Optional, Union

import pika
from pika.adapters.blocking_connection import BlockingChannel

from .. import topology
from ..exceptions import PublishException
from ..models import OutgoingMessage, PublishErrorCallback, PublishErrorPolicy
from . import metrics as mixin_metrics

logger = logging.getLogger(__name__)

Body = Union[str, bytes]


class PublishMixin:
    """
    Fire-and-forget publishing to the shared exchanges.

    Messages go out with content type "text" and the mandatory flag set; the
    caller never waits for a broker acknowledgement. What a failed publish
    does is decided by the PublishErrorPolicy (log and continue by default).
    """

    channel: BlockingChannel
    on_publish_error: PublishErrorPolicy = PublishErrorPolicy.LOG
    publish_error_callback: Optional[PublishErrorCallback] = None

    # -------------------------------------------------------------------
    # NAMED EXCHANGES
    # -------------------------------------------------------------------
    def post_to_info(self, routing_key: str, body: Body, on_error: Optional[PublishErrorPolicy] = None) -> bool:
        """Post to the `info-topic` exchange with a routing key of your choice."""
        return self.publish(topology.INFO_EXCHANGE, routing_key, body, on_error=on_error)

    def post_to_job(self, body: Body, on_error: Optional[PublishErrorPolicy] = None) -> bool:
        return self.publish(topology.JOB_EXCHANGE, topology.JOB_ROUTING_KEY, body, on_error=on_error)

    def post_to_work(self, body: Body, on_error: Optional[PublishErrorPolicy] = None) -> bool:
        return self.publish(topology.WORK_EXCHANGE, topology.WORK_ROUTING_KEY, body, on_error=on_error)

    def worker_post(self, routing_key: str, body: Body, on_error: Optional[PublishErrorPolicy] = None) -> bool:
        """Post a worker status message to the `worker-topic` exchange."""
        return self.publish(topology.WORKER_EXCHANGE, routing_key, body, on_error=on_error)

    # -------------------------------------------------------------------
    # GENERIC PUBLISH
    # -------------------------------------------------------------------
    def publish(
        self,
        exchange: str,
        routing_key: str,
        body: Body,
        on_error: Optional[PublishErrorPolicy] = None,
    ) -> bool:
        """
        Publish one message, exactly once.

        Returns:
            True when the message was handed to the channel, False when the
            publish failed and the active policy swallowed the failure.

        Raises:
            PublishException: the publish failed and the policy is RAISE.
        """
        policy = self._resolve_policy(on_error)
        message = OutgoingMessage(exchange=exchange, routing_key=routing_key, body=body)

        start = time.perf_counter()
        try:
            self.channel.basic_publish(
                exchange=message.exchange,
                routing_key=message.routing_key,
                body=message.body,
                properties=pika.BasicProperties(content_type=message.content_type),
                mandatory=message.mandatory,
            )
        except pika.exceptions.AMQPError as exc:
            mixin_metrics.record_publish(exchange, time.perf_counter() - start, "error")
            error = PublishException(
                f"Couldn't publish message to {exchange} exchange: {exc!r}",
                exchange=exchange,
                routing_key=routing_key,
            )
            if policy is PublishErrorPolicy.RAISE:
                logger.error(f"Publish failed: {error}")
                raise error from exc
            self._swallow_publish_error(message, error, policy)
            return False

        mixin_metrics.record_publish(exchange, time.perf_counter() - start, "ok")
        logger.debug(f"Published message to exchange '{exchange}' with key '{routing_key}' ({len(message.body)} bytes)")
        return True

    # -------------------------------------------------------------------
    # ERROR POLICY
    # -------------------------------------------------------------------
    def _resolve_policy(self, on_error: Optional[PublishErrorPolicy]) -> PublishErrorPolicy:
        policy = PublishErrorPolicy(on_error) if on_error is not None else self.on_publish_error
        if policy is PublishErrorPolicy.CALLBACK and self.publish_error_callback is None:
            raise ValueError("PublishErrorPolicy.CALLBACK requires a publish_error_callback.")
        return policy

    def _swallow_publish_error(self, message: OutgoingMessage, error: PublishException, policy: PublishErrorPolicy):
        logger.error(f"Publish failed, message dropped: {error}")

        if policy is PublishErrorPolicy.CALLBACK:
            self.publish_error_callback(message, error)

    # -------------------------------------------------------------------
    # MANDATORY RETURNS
    # -------------------------------------------------------------------
    def _on_message_returned(self, channel, method, properties, body) -> None:
        """Return callback registered on the channel; unroutable messages are only logged."""
        mixin_metrics.record_returned(method.exchange, method.reply_code)
        logger.warning(
            f"Broker returned unroutable message (exchange='{method.exchange}', "
            f"routing_key='{method.routing_key}', reply={method.reply_code} {method.reply_text}, "
            f"{len(body or b'')} bytes)"
        )
