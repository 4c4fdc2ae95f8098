from typing import Protocol, Union, runtime_checkable

from pydantic import BaseModel, ConfigDict, ValidationError

from .exceptions import SerializationException


@runtime_checkable
class Serializable(Protocol):
    """Anything that can render itself as wire text (Job, Task)."""

    def serialize(self) -> Union[str, bytes]: ...


@runtime_checkable
class Identifiable(Protocol):
    def id(self) -> str: ...


class JsonPayload(BaseModel):
    """
    Convenience base for payloads that travel as JSON.

    Subclasses get a `serialize()` compatible with the post_* operations.
    Models that need a routing id should define an `id()` method returning it
    (a field named `id` would shadow the method).
    """

    model_config = ConfigDict(validate_assignment=True)

    def serialize(self) -> str:
        try:
            return self.model_dump_json()
        except (ValidationError, ValueError, TypeError) as exc:
            raise SerializationException(
                f"Could not serialize {type(self).__name__}: {exc}",
                payload_type=type(self).__name__,
            ) from exc
