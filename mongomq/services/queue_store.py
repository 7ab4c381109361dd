from typing import Optional

from mongomq.core.exceptions import StoreError
from mongomq.core.mongo_client import MongoStoreClient, mongo_client
from mongomq.schemas.message import Backend
from mongomq.schemas.queue import QueueAttributes
from mongomq.schemas.results import OperationResult
from .base_service import BaseService


class QueueStore(BaseService):
    """Queue lifecycle on MongoDB: one collection per queue."""

    backend = Backend.PRIMARY

    def __init__(self, store: Optional[MongoStoreClient] = None):
        super().__init__()
        self.store = store or mongo_client

    def create_queue(self, queue_name: str, visibility_timeout: Optional[int] = None) -> OperationResult:
        """Create a queue. The visibility timeout only matters to SQS."""
        try:
            created = self.store.create_collection(queue_name)
            self.logger.info("Queue created", queue=queue_name)
            return OperationResult.success(created)
        except Exception as e:
            return self.fail(StoreError("create_queue", e, self.backend.value))

    def delete_queue(self, queue_name: str) -> OperationResult:
        try:
            dropped = self.store.drop_collection(queue_name)
        except Exception as e:
            return self.fail(StoreError("delete_queue", e, self.backend.value))
        if not dropped:
            return self.fail(StoreError("delete_queue", f"drop of {queue_name} not acknowledged", self.backend.value))
        self.logger.info("Queue deleted", queue=queue_name)
        return OperationResult.success(True)

    def list_queues(self, prefix: str = "") -> OperationResult:
        """List queue names, optionally only those starting with prefix."""
        try:
            names = self.store.list_collection_names()
        except Exception as e:
            return self.fail(StoreError("list_queues", e, self.backend.value))
        return OperationResult.success(sorted(name for name in names if not prefix or name.startswith(prefix)))

    def get_queue_attributes(self, queue_name: str, attribute: str = "All") -> OperationResult:
        """
        Count messages in a queue.

        Total and unclaimed counts are two separate queries, so under
        concurrent traffic they are only approximately consistent.
        """
        try:
            total = self.store.count(queue_name)
            visible = self.store.count(queue_name, {"claimed_at": None})
        except Exception as e:
            return self.fail(StoreError("get_queue_attributes", e, self.backend.value))
        return OperationResult.success(
            QueueAttributes(size=total, visible_count=visible, leased_count=total - visible)
        )

    def set_queue_attributes(self, queue_name: str, attribute: str, value) -> OperationResult:
        # MongoDB queues have no settable server-side attributes
        return OperationResult.success(True)
