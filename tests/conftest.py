"""
Pytest configuration and fixtures for MongoMQ tests.
"""
import pytest
import mongomock
from unittest.mock import MagicMock

from mongomq.core.logging import setup_logging
from mongomq.core.mongo_client import MongoStoreClient
from mongomq.core.sqs_client import SQSClient
from mongomq.services.failover_queue import FailoverQueue
from mongomq.services.lease_queue import LeaseQueue
from mongomq.schemas.results import OperationResult


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Route structlog through stdlib logging as the application does."""
    setup_logging()


class FakeClock:
    """Manually advanced clock for lease expiry."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mongo_store():
    """MongoDB store backed by an in-memory mongomock client."""
    return MongoStoreClient(client=mongomock.MongoClient(), database="queues_test")


@pytest.fixture
def lease_queue(mongo_store, clock):
    """Lease queue with a 30 second visibility timeout."""
    return LeaseQueue(store=mongo_store, visibility_timeout=30, clock=clock)


@pytest.fixture
def mock_sqs():
    """Mock SQS client."""
    sqs = MagicMock(spec=SQSClient)
    sqs.receive_message.return_value = []
    sqs.send_message.return_value = "sqs-message-id"
    sqs.delete_message.return_value = True
    return sqs


@pytest.fixture
def mock_primary():
    """Mock MongoDB lease queue."""
    primary = MagicMock(spec=LeaseQueue)
    primary.store = MagicMock()
    primary.error = ""
    primary.send_message.return_value = OperationResult.success("primary-id")
    primary.receive_message.return_value = OperationResult.success([])
    primary.delete_message.return_value = OperationResult.success(True)
    return primary


@pytest.fixture
def sleeps():
    """Records backoff sleeps instead of blocking."""
    return []


@pytest.fixture
def failover(mock_primary, mock_sqs, sleeps):
    """Failover queue over mocked backends."""
    return FailoverQueue(primary=mock_primary, secondary=mock_sqs, sleep=sleeps.append)
