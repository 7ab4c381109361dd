"""
Unit tests for configuration, queue policies and the command line.
"""
import io
import json
import logging
import sys

import pytest
from pydantic import ValidationError

from mongomq.__main__ import build_parser, run
from mongomq.core.config import Settings
from mongomq.core.logging import get_logger, setup_logging
from mongomq.core.queue_policies import QueuePolicy, get_queue_policy


class TestSettings:
    """Test cases for Settings validation."""

    def test_log_level_is_normalized(self):
        """Test that log levels are upper-cased."""
        assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_invalid_environment_rejected(self):
        """Test environment validation."""
        with pytest.raises(ValidationError):
            Settings(ENVIRONMENT="qa")

    def test_unacknowledged_writes_rejected(self):
        """Test that writes must be acknowledged."""
        with pytest.raises(ValidationError):
            Settings(MONGO_WRITE_CONCERN_W=0)


class TestQueuePolicy:
    """Test cases for QueuePolicy backoff."""

    def test_exponential_backoff(self):
        """Test 2^attempt delays."""
        policy = QueuePolicy(max_attempts=4, visibility_timeout_seconds=30)

        assert [policy.backoff_delay(a) for a in (1, 2, 3)] == [2.0, 4.0, 8.0]

    def test_backoff_is_capped(self):
        """Test the maximum delay."""
        policy = QueuePolicy(max_attempts=20, visibility_timeout_seconds=30, max_delay_seconds=60)

        assert policy.backoff_delay(10) == 60

    def test_unknown_queue_uses_default_policy(self):
        """Test the settings-based default."""
        policy = get_queue_policy("unregistered")

        assert policy.max_attempts == 1
        assert policy.visibility_timeout_seconds == 3600


class TestCommandLine:
    """Test cases for the mongomq command line."""

    def test_send_and_receive(self, lease_queue, capsys):
        """Test sending and receiving through the CLI."""
        parser = build_parser()

        assert run(parser.parse_args(["--no-failover", "send", "orders", "payload-1"]), lease_queue) == 0
        capsys.readouterr()

        assert run(parser.parse_args(["--no-failover", "receive", "orders", "--max-messages", "3"]), lease_queue) == 0
        printed = json.loads(capsys.readouterr().out)
        assert [m["Body"] for m in printed] == ["payload-1"]

    def test_attributes_output(self, lease_queue, capsys):
        """Test that attributes print with SQS-style names."""
        lease_queue.send_message("orders", "payload-1")

        assert run(build_parser().parse_args(["attributes", "orders"]), lease_queue) == 0
        printed = json.loads(capsys.readouterr().out)
        assert printed["ApproximateNumberOfMessages"] == 1

    def test_failure_prints_error_and_exits_non_zero(self, lease_queue, capsys):
        """Test the failure path."""
        code = run(build_parser().parse_args(["delete", "orders", "not-an-object-id"]), lease_queue)

        assert code == 1
        assert "delete_message" in capsys.readouterr().err


class TestLogging:
    """Test cases for the logging setup."""

    def test_records_are_flat_json_on_stderr(self):
        """Test that log records keep stdout clean and carry context as JSON keys."""
        setup_logging()
        handler = logging.getLogger().handlers[0]
        assert handler.stream is sys.stderr

        buffer = io.StringIO()
        previous = handler.setStream(buffer)
        try:
            get_logger("mongomq.tests").warning("Queue created", queue="orders")
        finally:
            handler.setStream(previous)

        record = json.loads(buffer.getvalue())
        assert record["message"] == "Queue created"
        assert record["queue"] == "orders"
        assert record["levelname"] == "WARNING"
