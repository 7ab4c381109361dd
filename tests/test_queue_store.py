"""
Unit tests for queue lifecycle and attributes on MongoDB.
"""
import pytest
from unittest.mock import MagicMock
from pymongo.errors import ServerSelectionTimeoutError

from mongomq.core.exceptions import StoreError
from mongomq.services.queue_store import QueueStore


class TestQueueStore:
    """Test cases for QueueStore."""

    @pytest.fixture
    def store(self, mongo_store):
        return QueueStore(store=mongo_store)

    def test_create_queue_is_idempotent(self, store):
        """Test that creating an existing queue still succeeds."""
        assert store.create_queue("orders")
        assert store.create_queue("orders")

        assert store.list_queues().value == ["orders"]

    def test_list_queues_filters_by_prefix(self, store):
        """Test prefix filtering of queue names."""
        for name in ["orders", "orders-dlq", "invoices"]:
            store.create_queue(name)

        assert store.list_queues("ord").value == ["orders", "orders-dlq"]
        assert store.list_queues().value == ["invoices", "orders", "orders-dlq"]

    def test_delete_queue_drops_collection(self, store):
        """Test deleting a queue."""
        store.create_queue("orders")

        assert store.delete_queue("orders")
        assert store.list_queues().value == []

    def test_delete_queue_not_acknowledged(self):
        """Test a drop the server reports as not ok."""
        mongo = MagicMock()
        mongo.drop_collection.return_value = False
        store = QueueStore(store=mongo)

        result = store.delete_queue("orders")

        assert not result
        assert isinstance(result.error, StoreError)

    def test_create_queue_failure_returns_store_error(self):
        """Test that a driver exception during create becomes a StoreError."""
        mongo = MagicMock()
        mongo.create_collection.side_effect = ServerSelectionTimeoutError("no servers")
        store = QueueStore(store=mongo)

        result = store.create_queue("orders")

        assert not result
        assert isinstance(result.error, StoreError)
        assert store.error.startswith("QueueStore::create_queue()")
        assert "no servers" in store.error

    def test_list_queues_failure_returns_store_error(self):
        """Test that an enumeration failure becomes a StoreError."""
        mongo = MagicMock()
        mongo.list_collection_names.side_effect = ServerSelectionTimeoutError("no servers")
        store = QueueStore(store=mongo)

        result = store.list_queues()

        assert not result
        assert "list_queues" in store.error

    def test_attributes_after_sending_and_claiming(self, lease_queue):
        """Test counts after sending k messages and claiming j of them."""
        for i in range(5):
            lease_queue.send_message("orders", f"payload-{i}")
        lease_queue.receive_message("orders", max_messages=2)

        attributes = lease_queue.get_queue_attributes("orders").value

        assert attributes.size == 5
        assert attributes.visible_count == 3
        assert attributes.leased_count == 2
        assert attributes.as_sqs_dict() == {
            "size": 5,
            "ApproximateNumberOfMessages": 3,
            "ApproximateNumberOfMessagesNotVisible": 2,
        }

    def test_attributes_failure_returns_store_error(self):
        """Test that a count failure becomes a StoreError."""
        mongo = MagicMock()
        mongo.count.side_effect = ServerSelectionTimeoutError("no servers")
        store = QueueStore(store=mongo)

        result = store.get_queue_attributes("orders")

        assert not result
        assert "get_queue_attributes" in store.error

    def test_set_queue_attributes_is_a_no_op(self, store):
        """Test that MongoDB queues accept any attribute without effect."""
        assert store.set_queue_attributes("orders", "VisibilityTimeout", 60)
