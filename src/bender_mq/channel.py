import logging
from typing import Optional

import pika
from pika.adapters.blocking_connection import BlockingChannel

from . import connection as amqp_connection
from .config import BenderConfig, load_config
from .mixins import PayloadMixin, PublishMixin, TopologyMixin
from .models import PublishErrorCallback, PublishErrorPolicy

logger = logging.getLogger(__name__)


class BenderMQ(TopologyMixin, PublishMixin, PayloadMixin):
    """
    Owns one open AMQP channel and exposes the bender messaging topology on it.

    A BenderMQ is not thread safe: declare and publish calls are stateful frame
    exchanges on a single channel, so use one instance per thread (or guard a
    shared one with a lock).

        with BenderMQ.open_channel("amqp://localhost/%2F") as mq:
            mq.declare_topology()
            mq.post_to_info("abc123", "hello")
    """

    def __init__(
        self,
        channel: BlockingChannel,
        connection: Optional[pika.BlockingConnection] = None,
        on_publish_error: PublishErrorPolicy = PublishErrorPolicy.LOG,
        publish_error_callback: Optional[PublishErrorCallback] = None,
    ) -> None:
        self.channel = channel
        self.connection = connection
        self.on_publish_error = PublishErrorPolicy(on_publish_error)
        self.publish_error_callback = publish_error_callback

        if self.on_publish_error is PublishErrorPolicy.CALLBACK and publish_error_callback is None:
            raise ValueError("PublishErrorPolicy.CALLBACK requires a publish_error_callback.")

        self.channel.add_on_return_callback(self._on_message_returned)

    # ---------- Bootstrap ----------

    @classmethod
    def open_channel(cls, url: str, **options) -> "BenderMQ":
        """
        Open a session to `url` and wrap channel 1 on it.

        Raises:
            ConnectionException: the session or the channel could not be opened.
            ValueError: `options` were rejected; the session is closed again.
        """
        conn, channel = amqp_connection.open_channel(url)
        try:
            return cls(channel, connection=conn, **options)
        except Exception:
            amqp_connection.close_quietly(conn)
            raise

    @classmethod
    def open_default_channel(cls, config: Optional[BenderConfig] = None, **options) -> "BenderMQ":
        """
        Like open_channel, with the URL taken from `config.rabbitmq.url`.
        When no config is given it is loaded with load_config().

        Raises:
            ConfigException: no config given and none could be loaded.
            ConnectionException: the session or the channel could not be opened.
        """
        if config is None:
            config = load_config()
        return cls.open_channel(config.rabbitmq.url, **options)

    # ---------- Lifecycle ----------

    @property
    def is_open(self) -> bool:
        return bool(self.channel and self.channel.is_open)

    def close(self) -> None:
        """
        Close channel and connection, if they are open.
        """
        try:
            if self.channel and self.channel.is_open:
                self.channel.close()
        finally:
            if self.connection and self.connection.is_open:
                self.connection.close()
                logger.info("RabbitMQ connection closed.")

    def __enter__(self) -> "BenderMQ":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
