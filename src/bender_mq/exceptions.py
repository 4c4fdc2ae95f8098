from enum import Enum
from urllib.parse import urlsplit, urlunsplit


class ExceptionType(str, Enum):
    BUSINESS = "BUSINESS"
    SYSTEM = "SYSTEM"


def mask_url(url: str | None) -> str | None:
    """Hide the password part of an AMQP URL before it reaches a log line."""
    if not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if parts.password is None:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


class BenderMQException(Exception):
    """
    Base class for every error raised by bender_mq.
    """

    message: str = "A messaging error occurred."
    category: ExceptionType = ExceptionType.SYSTEM

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    def __str__(self):
        return self.message

    def context(self) -> dict:
        return {}

    def to_dict(self):
        return {
            "message": self.message,
            "category": self.category.value,
            "type": self.__class__.__name__,
            **self.context(),
        }


class ConnectionException(BenderMQException):
    """
    Raised when a session or its channel cannot be opened.
    """

    message: str = "Could not open a connection to the broker."

    def __init__(self, message: str | None = None, url: str | None = None):
        self.url = mask_url(url)
        super().__init__(message)

    def context(self) -> dict:
        return {"url": self.url}


class ConfigException(BenderMQException):
    """
    Raised when the connection configuration cannot be loaded or is invalid.
    """

    message: str = "Could not load the messaging configuration."

    def __init__(self, message: str | None = None, path: str | None = None):
        self.path = path
        super().__init__(message)

    def context(self) -> dict:
        return {"path": self.path}


class TopologyException(BenderMQException):
    """
    Raised when an exchange or queue declaration, or a queue binding, fails.
    """

    message: str = "A topology declaration failed."

    def __init__(
        self,
        message: str | None = None,
        exchange: str | None = None,
        queue: str | None = None,
    ):
        self.exchange = exchange
        self.queue = queue
        super().__init__(message)

    def context(self) -> dict:
        return {"exchange": self.exchange, "queue": self.queue}


class SerializationException(BenderMQException):
    """
    Raised when a payload cannot be turned into wire text.
    Nothing is published when this happens.
    """

    message: str = "The payload could not be serialized."
    category: ExceptionType = ExceptionType.BUSINESS

    def __init__(self, message: str | None = None, payload_type: str | None = None):
        self.payload_type = payload_type
        super().__init__(message)

    def context(self) -> dict:
        return {"payload_type": self.payload_type}


class PublishException(BenderMQException):
    """
    Raised (or handed to the publish error callback) when the broker rejects a
    publish or the connection drops while publishing.
    """

    message: str = "A message could not be published."

    def __init__(
        self,
        message: str | None = None,
        exchange: str | None = None,
        routing_key: str | None = None,
    ):
        self.exchange = exchange
        self.routing_key = routing_key
        super().__init__(message)

    def __str__(self):
        return f"({self.exchange} - {self.routing_key!r}) {self.message}"

    def context(self) -> dict:
        return {"exchange": self.exchange, "routing_key": self.routing_key}
