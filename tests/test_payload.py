"""Tests for bender_mq.mixins.payload: Job/Task serialization hand-off."""

import json

import pika
import pytest

from bender_mq import JsonPayload, PublishErrorPolicy, PublishException, SerializationException
from tests.mocks import FakeJob, FakeTask, failing_job, make_declared_mq


class RenderJob(JsonPayload):
    job_id: str
    frames: int

    def id(self) -> str:
        return self.job_id


# =====================================================================
#   Jobs
# =====================================================================


class TestPostJob:
    def test_returns_serialized_text_and_publishes_it(self):
        mq, channel = make_declared_mq()
        job = FakeJob(job_id="abc", text='{"id":"abc"}')

        result = mq.post_job(job)

        assert result == '{"id":"abc"}'
        (call,) = channel.calls_to("basic_publish")
        assert (call["exchange"], call["routing_key"]) == ("job", "job")
        assert call["body"] == result.encode("utf-8")

    def test_serializes_exactly_once(self):
        mq, _ = make_declared_mq()
        job = FakeJob()

        mq.post_job(job)
        mq.post_job_info(job)

        assert job.serialize_calls == 2

    def test_serialization_error_returned_unchanged_and_nothing_published(self):
        mq, channel = make_declared_mq()
        job = failing_job()

        with pytest.raises(SerializationException) as exc_info:
            mq.post_job(job)

        assert exc_info.value is job._error
        assert channel.calls_to("basic_publish") == []

    def test_foreign_serialization_error_is_wrapped(self):
        mq, channel = make_declared_mq()
        cause = TypeError("Object of type set is not JSON serializable")
        job = FakeJob(error=cause)

        with pytest.raises(SerializationException) as exc_info:
            mq.post_job(job)

        assert exc_info.value.__cause__ is cause
        assert exc_info.value.payload_type == "FakeJob"
        assert channel.calls_to("basic_publish") == []

    def test_non_text_result_is_rejected(self):
        mq, channel = make_declared_mq()

        with pytest.raises(SerializationException):
            mq.post_job(FakeJob(text=42))

        assert channel.calls_to("basic_publish") == []

    def test_utf8_bytes_result_is_accepted(self):
        mq, channel = make_declared_mq()

        result = mq.post_job(FakeJob(text='{"name":"über"}'.encode("utf-8")))

        assert result == '{"name":"über"}'
        assert channel.calls_to("basic_publish")[0]["body"] == '{"name":"über"}'.encode("utf-8")

    def test_post_job_info_routes_by_job_id(self):
        mq, channel = make_declared_mq()

        result = mq.post_job_info(FakeJob(job_id="5f0c.render", text="{}"))

        assert result == "{}"
        (call,) = channel.calls_to("basic_publish")
        assert (call["exchange"], call["routing_key"]) == ("info-topic", "5f0c.render")

    def test_publish_failure_still_returns_text_by_default(self):
        mq, channel = make_declared_mq()
        channel.publish_error = pika.exceptions.ChannelWrongStateError("Channel is closed.")

        assert mq.post_job(FakeJob(text="{}")) == "{}"

    def test_publish_failure_raises_when_asked(self):
        mq, channel = make_declared_mq()
        channel.publish_error = pika.exceptions.ChannelWrongStateError("Channel is closed.")

        with pytest.raises(PublishException):
            mq.post_job(FakeJob(text="{}"), on_error=PublishErrorPolicy.RAISE)


# =====================================================================
#   Tasks
# =====================================================================


class TestPostTask:
    def test_post_task_goes_to_work(self):
        mq, channel = make_declared_mq()
        task = FakeTask(text='{"frame":3}')

        assert mq.post_task(task) == '{"frame":3}'

        (call,) = channel.calls_to("basic_publish")
        assert (call["exchange"], call["routing_key"], call["body"]) == ("work", "work", b'{"frame":3}')
        assert task.serialize_calls == 1

    def test_post_task_info_uses_caller_key(self):
        mq, channel = make_declared_mq()

        mq.post_task_info(FakeTask(text="{}"), "abc.task.7")

        (call,) = channel.calls_to("basic_publish")
        assert (call["exchange"], call["routing_key"]) == ("info-topic", "abc.task.7")

    def test_post_task_serialization_failure(self):
        mq, channel = make_declared_mq()
        err = SerializationException("bad task")

        with pytest.raises(SerializationException) as exc_info:
            mq.post_task_info(FakeTask(error=err), "k")

        assert exc_info.value is err
        assert channel.calls_to("basic_publish") == []


# =====================================================================
#   JsonPayload
# =====================================================================


class TestJsonPayload:
    def test_serialize_renders_json(self):
        job = RenderJob(job_id="abc", frames=3)

        assert json.loads(job.serialize()) == {"job_id": "abc", "frames": 3}

    def test_works_with_post_job_info(self):
        mq, channel = make_declared_mq()
        job = RenderJob(job_id="abc", frames=3)

        text = mq.post_job_info(job)

        (call,) = channel.calls_to("basic_publish")
        assert call["routing_key"] == "abc"
        assert call["body"] == text.encode("utf-8")
