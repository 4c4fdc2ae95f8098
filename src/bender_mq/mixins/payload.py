import logging
from typing import Optional

from ..exceptions import SerializationException
from ..models import PublishErrorPolicy
from ..payload import Identifiable, Serializable

logger = logging.getLogger(__name__)


class PayloadMixin:
    """
    Serialize a Job or Task once and publish the resulting text.

    Each post_* returns the exact text placed on the wire so callers can log it
    or fingerprint it without serializing again. When serialization fails
    nothing is published.
    """

    def post_job(self, job: Serializable, on_error: Optional[PublishErrorPolicy] = None) -> str:
        """Serialize a job and hand it off on the `job` exchange."""
        text = self._serialize(job)
        self.post_to_job(text, on_error=on_error)
        return text

    def post_job_info(self, job: Identifiable, on_error: Optional[PublishErrorPolicy] = None) -> str:
        """
        Serialize a job and broadcast it on `info-topic`, routed by the job's id.
        """
        text = self._serialize(job)
        self.post_to_info(job.id(), text, on_error=on_error)
        return text

    def post_task(self, task: Serializable, on_error: Optional[PublishErrorPolicy] = None) -> str:
        text = self._serialize(task)
        self.post_to_work(text, on_error=on_error)
        return text

    def post_task_info(
        self, task: Serializable, routing_key: str, on_error: Optional[PublishErrorPolicy] = None
    ) -> str:
        text = self._serialize(task)
        self.post_to_info(routing_key, text, on_error=on_error)
        return text

    @staticmethod
    def _serialize(payload: Serializable) -> str:
        payload_type = type(payload).__name__

        try:
            text = payload.serialize()
        except SerializationException:
            logger.error(f"Serialization of {payload_type} failed; nothing published")
            raise
        except Exception as exc:
            logger.error(f"Serialization of {payload_type} failed; nothing published: {exc!r}")
            raise SerializationException(
                f"Could not serialize {payload_type}: {exc}", payload_type=payload_type
            ) from exc

        if isinstance(text, bytes):
            try:
                text = text.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise SerializationException(
                    f"{payload_type}.serialize() returned bytes that are not UTF-8", payload_type=payload_type
                ) from exc

        if not isinstance(text, str):
            raise SerializationException(
                f"{payload_type}.serialize() returned {type(text).__name__}, expected str",
                payload_type=payload_type,
            )

        return text
