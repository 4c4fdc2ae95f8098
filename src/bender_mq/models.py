from enum import Enum
from typing import Callable, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import PublishException

TEXT_CONTENT_TYPE = "text"


class PublishErrorPolicy(str, Enum):
    """What a failed publish does to the caller."""

    LOG = "log"
    RAISE = "raise"
    CALLBACK = "callback"


class OutgoingMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    exchange: str = Field(description="Exchange the message is published to")
    routing_key: str = Field(description="Routing key, used verbatim")
    body: bytes = Field(default=b"", description="Raw message body")
    content_type: str = Field(default=TEXT_CONTENT_TYPE, description="Content type property")
    mandatory: bool = Field(default=True, description="Ask the broker to return unroutable messages")
    immediate: bool = Field(default=False, description="Deprecated AMQP flag, always false")

    @field_validator("body", mode="before")
    @classmethod
    def encode_body(cls, value: Union[str, bytes, bytearray, memoryview]) -> bytes:
        if isinstance(value, str):
            return value.encode("utf-8")
        if isinstance(value, (bytearray, memoryview)):
            return bytes(value)
        return value


PublishErrorCallback = Callable[[OutgoingMessage, PublishException], None]
