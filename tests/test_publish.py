"""Tests for bender_mq.mixins.publish: raw publishing, error policy and mandatory returns."""

import logging

import pika
import pytest

from bender_mq import BenderMQ, OutgoingMessage, PublishErrorPolicy, PublishException
from tests.mocks import FakeChannel, make_declared_mq, make_mq

# =====================================================================
#   Exchanges and routing keys
# =====================================================================


class TestRouting:
    @pytest.mark.parametrize("key", ["abc123", "", "render.frame.42", "#"])
    def test_post_to_info_uses_info_topic_and_key_verbatim(self, key):
        mq, channel = make_declared_mq()

        assert mq.post_to_info(key, "hello") is True

        (call,) = channel.calls_to("basic_publish")
        assert call["exchange"] == "info-topic"
        assert call["routing_key"] == key
        assert call["body"] == b"hello"

    @pytest.mark.parametrize("key", ["worker-1", "", "gpu.node.7"])
    def test_worker_post_uses_worker_topic(self, key):
        mq, channel = make_declared_mq()

        mq.worker_post(key, b"idle")

        (call,) = channel.calls_to("basic_publish")
        assert call["exchange"] == "worker-topic"
        assert call["routing_key"] == key

    @pytest.mark.parametrize("body", [b"", b"\x00\x01", '{"id":"x"}', "ü"])
    def test_post_to_job_always_job_job(self, body):
        mq, channel = make_declared_mq()

        mq.post_to_job(body)

        (call,) = channel.calls_to("basic_publish")
        assert (call["exchange"], call["routing_key"]) == ("job", "job")
        assert call["body"] == (body.encode("utf-8") if isinstance(body, str) else body)

    def test_post_to_work_always_work_work(self):
        mq, channel = make_declared_mq()

        mq.post_to_work(b"frame-1")

        (call,) = channel.calls_to("basic_publish")
        assert (call["exchange"], call["routing_key"]) == ("work", "work")

    def test_standard_properties(self):
        mq, channel = make_declared_mq()

        mq.post_to_info("k", "v")

        (call,) = channel.calls_to("basic_publish")
        assert call["mandatory"] is True
        assert isinstance(call["properties"], pika.BasicProperties)
        assert call["properties"].content_type == "text"

    def test_each_call_publishes_exactly_once(self):
        mq, channel = make_declared_mq()

        mq.post_to_info("a", "1")
        mq.worker_post("b", "2")

        assert len(channel.calls_to("basic_publish")) == 2


# =====================================================================
#   Error policy
# =====================================================================


class TestPublishErrorPolicy:
    def test_default_logs_and_swallows(self, caplog):
        mq, channel = make_mq()
        channel.publish_error = pika.exceptions.StreamLostError("Stream connection lost")

        with caplog.at_level(logging.ERROR, logger="bender_mq"):
            result = mq.post_to_job(b"payload")

        assert result is False
        assert len(channel.calls_to("basic_publish")) == 1
        assert "Publish failed" in caplog.text

    def test_raise_policy_on_manager(self):
        mq, channel = make_mq(on_publish_error=PublishErrorPolicy.RAISE)
        channel.publish_error = pika.exceptions.ChannelWrongStateError("Channel is closed.")

        with pytest.raises(PublishException) as exc_info:
            mq.post_to_work(b"payload")

        assert exc_info.value.exchange == "work"
        assert exc_info.value.routing_key == "work"
        assert isinstance(exc_info.value.__cause__, pika.exceptions.ChannelWrongStateError)

    def test_raise_policy_per_call(self):
        mq, channel = make_mq()
        channel.publish_error = pika.exceptions.ChannelWrongStateError("Channel is closed.")

        with pytest.raises(PublishException):
            mq.post_to_info("k", "v", on_error="raise")

        assert mq.post_to_info("k", "v") is False

    def test_callback_policy(self):
        seen = []
        mq, channel = make_mq(
            on_publish_error=PublishErrorPolicy.CALLBACK,
            publish_error_callback=lambda message, exc: seen.append((message, exc)),
        )
        channel.publish_error = pika.exceptions.ChannelWrongStateError("Channel is closed.")

        assert mq.worker_post("w1", "busy") is False

        (message, exc), = seen
        assert isinstance(message, OutgoingMessage)
        assert (message.exchange, message.routing_key, message.body) == ("worker-topic", "w1", b"busy")
        assert isinstance(exc, PublishException)

    def test_callback_policy_requires_callback(self):
        with pytest.raises(ValueError):
            BenderMQ(FakeChannel(), on_publish_error=PublishErrorPolicy.CALLBACK)

        mq, _ = make_mq()
        with pytest.raises(ValueError):
            mq.post_to_job(b"x", on_error=PublishErrorPolicy.CALLBACK)

    def test_closed_channel_does_not_raise_by_default(self):
        mq, channel = make_mq()
        channel.close()

        assert mq.post_to_info("k", "v") is False


# =====================================================================
#   Mandatory returns
# =====================================================================


class TestMandatoryReturns:
    def test_return_callback_registered(self):
        mq, channel = make_mq()

        assert channel.return_callbacks == [mq._on_message_returned]

    def test_unroutable_message_is_logged(self, caplog):
        mq, channel = make_mq()
        mq.declare_worker_exchange()

        with caplog.at_level(logging.WARNING, logger="bender_mq"):
            result = mq.worker_post("nobody.listens", "hello")

        assert result is True
        assert "returned unroutable message" in caplog.text
        assert "nobody.listens" in caplog.text
