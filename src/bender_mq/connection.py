import logging
from typing import Tuple
from urllib.parse import urlsplit

import pika
from pika.adapters.blocking_connection import BlockingChannel

from .config import AMQP_SCHEMES
from .exceptions import ConnectionException, mask_url

logger = logging.getLogger(__name__)

CHANNEL_NUMBER = 1


# ---------- Connection / Channel ----------


def open_connection(url: str) -> pika.BlockingConnection:
    """
    Open a blocking AMQP session to `url`.

    Raises:
        ConnectionException: the URL is not an AMQP URL or the broker could not
            be reached / refused the session.
    """
    safe_url = mask_url(url)

    if urlsplit(url).scheme not in AMQP_SCHEMES:
        raise ConnectionException(f"Not an AMQP URL: {safe_url}", url=url)

    try:
        params = pika.URLParameters(url)
    except ValueError as exc:
        raise ConnectionException(f"Invalid AMQP URL {safe_url}: {exc}", url=url) from exc

    try:
        connection = pika.BlockingConnection(params)
    except pika.exceptions.AMQPError as exc:
        logger.error(f"Error while opening a connection to {safe_url}: {exc!r}")
        raise ConnectionException(f"Error while opening a connection to {safe_url}", url=url) from exc

    logger.info(f"Connected to RabbitMQ at {safe_url}")
    return connection


def open_channel(url: str) -> Tuple[pika.BlockingConnection, BlockingChannel]:
    """
    Open a session to `url` and channel number 1 on it.

    A channel that fails to open never leaks: the session is closed and the
    failure surfaces as a ConnectionException.
    """
    connection = open_connection(url)

    try:
        channel = connection.channel(channel_number=CHANNEL_NUMBER)
    except pika.exceptions.AMQPError as exc:
        logger.error(f"Could not open channel {CHANNEL_NUMBER} on {mask_url(url)}: {exc!r}")
        close_quietly(connection)
        raise ConnectionException(
            f"Could not open channel {CHANNEL_NUMBER} on {mask_url(url)}", url=url
        ) from exc

    return connection, channel


def close_quietly(connection: pika.BlockingConnection) -> None:
    try:
        if connection.is_open:
            connection.close()
    except pika.exceptions.AMQPError as exc:
        logger.warning(f"Error closing connection after a failed open: {exc!r}")
