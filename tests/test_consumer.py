"""
Unit tests for the polling consumer.
"""
import pytest
from unittest.mock import MagicMock

from mongomq.core.exceptions import ReceiveError
from mongomq.schemas.results import OperationResult
from mongomq.workers.base_consumer import BaseConsumer


class RecordingConsumer(BaseConsumer):
    """Consumer that records bodies and fails on request."""

    def __init__(self, *args, outcome=True, **kwargs):
        super().__init__(*args, **kwargs)
        self.outcome = outcome
        self.seen = []

    def process_message(self, message):
        self.seen.append(message.body)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


class TestBaseConsumer:
    """Test cases for BaseConsumer."""

    def test_successful_messages_are_deleted(self, lease_queue):
        """Test that processed messages are acknowledged."""
        lease_queue.send_message("orders", "a")
        lease_queue.send_message("orders", "b")
        consumer = RecordingConsumer("orders", lease_queue, batch_size=5, sleep=lambda s: None)

        assert consumer.poll_once() == 2
        assert sorted(consumer.seen) == ["a", "b"]
        assert lease_queue.get_queue_attributes("orders").value.size == 0

    def test_failed_message_is_redelivered_after_lease(self, lease_queue, clock):
        """Test that a handler returning False leaves the message for redelivery."""
        lease_queue.send_message("orders", "a")
        consumer = RecordingConsumer("orders", lease_queue, outcome=False, sleep=lambda s: None)

        assert consumer.poll_once() == 0
        assert lease_queue.get_queue_attributes("orders").value.leased_count == 1

        clock.advance(31)
        consumer.outcome = True
        assert consumer.poll_once() == 1
        assert consumer.seen == ["a", "a"]

    def test_raising_handler_does_not_stop_batch(self, lease_queue):
        """Test that an exception in one message is contained."""
        lease_queue.send_message("orders", "a")
        consumer = RecordingConsumer(
            "orders", lease_queue, outcome=ValueError("bad payload"), sleep=lambda s: None
        )

        assert consumer.poll_once() == 0
        assert lease_queue.get_queue_attributes("orders").value.size == 1

    def test_receive_failure_is_logged_not_raised(self):
        """Test that a failed receive yields zero acknowledgements."""
        queue = MagicMock()
        queue.receive_message.return_value = OperationResult.failure(
            ReceiveError("receive_message", "connection reset", "primary")
        )
        consumer = RecordingConsumer("orders", queue, sleep=lambda s: None)

        assert consumer.poll_once() == 0
        queue.delete_message.assert_not_called()

    def test_run_sleeps_between_empty_polls(self, lease_queue):
        """Test the loop's idle sleep and max_polls bound."""
        sleeps = []
        consumer = RecordingConsumer("orders", lease_queue, poll_interval=0.5, sleep=sleeps.append)

        consumer.run(max_polls=3)

        assert sleeps == [0.5, 0.5, 0.5]

    def test_stop_ends_loop(self, lease_queue):
        """Test that stop() from a handler ends the loop."""
        lease_queue.send_message("orders", "a")
        consumer = RecordingConsumer("orders", lease_queue, sleep=lambda s: None)
        consumer.process_message = lambda message: consumer.stop() or True

        consumer.run(max_polls=10)

        assert lease_queue.get_queue_attributes("orders").value.size == 0

    def test_process_message_must_be_overridden(self, lease_queue):
        """Test the abstract handler."""
        consumer = BaseConsumer("orders", lease_queue)

        with pytest.raises(NotImplementedError):
            consumer.process_message(None)
