import time
from typing import Any, Callable, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId

from mongomq.core.exceptions import DeleteError, ReceiveError, SendError
from mongomq.core.mongo_client import MongoStoreClient
from mongomq.core.queue_policies import get_queue_policy
from mongomq.schemas.message import PrimaryHandle, ReceivedMessage, SecondaryHandle
from mongomq.schemas.results import OperationResult
from .queue_store import QueueStore

RESERVED_FIELDS = ("_id", "body", "enqueued_at", "claimed_at")


class LeaseQueue(QueueStore):
    """
    SQS-style messaging on MongoDB with lease-based visibility.

    A message is visible while ``claimed_at`` is null or older than the
    visibility timeout. Receiving claims it by stamping ``claimed_at`` with a
    single atomic find-and-modify, so two consumers never hold the same lease.
    A lease that is not acknowledged before it expires makes the message
    visible again (at-least-once delivery).
    """

    def __init__(
        self,
        store: Optional[MongoStoreClient] = None,
        visibility_timeout: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(store)
        self.visibility_timeout = visibility_timeout
        self.clock = clock

    def default_visibility_timeout(self, queue_name: str) -> int:
        if self.visibility_timeout:
            return self.visibility_timeout
        return get_queue_policy(queue_name).visibility_timeout_seconds

    def send_message(self, queue_name: str, body: str, attributes: Optional[Dict[str, Any]] = None) -> OperationResult:
        """Enqueue a message; caller attributes never override reserved fields."""
        document: Dict[str, Any] = {
            "body": body,
            "enqueued_at": self.clock(),
            "claimed_at": None,
        }
        for name, value in (attributes or {}).items():
            if name not in RESERVED_FIELDS:
                document[name] = value

        try:
            message_id = self.store.insert(queue_name, document)
        except Exception as e:
            return self.fail(SendError("send_message", e, self.backend.value))

        self.logger.debug("Message queued", queue=queue_name, message_id=str(message_id))
        return OperationResult.success(str(message_id))

    def receive_message(
        self,
        queue_name: str,
        max_messages: Optional[int] = None,
        visibility_timeout: Optional[int] = None,
    ) -> OperationResult:
        """
        Claim up to max_messages visible messages, one atomic claim each.

        An empty queue ends the loop early and is not an error. Any other
        failure fails the whole call and drops the messages it already
        claimed; those stay leased until their visibility timeout passes.
        """
        max_messages = max_messages or 1
        visibility_timeout = visibility_timeout or self.default_visibility_timeout(queue_name)

        messages: List[ReceivedMessage] = []
        for _ in range(max_messages):
            try:
                self.store.ensure_index(queue_name, "claimed_at")
                now = self.clock()
                result = self.store.find_and_modify(
                    queue_name,
                    {"$or": [{"claimed_at": None}, {"claimed_at": {"$lt": now - visibility_timeout}}]},
                    {"$set": {"claimed_at": now}},
                )
            except Exception as e:
                return self.fail(ReceiveError("receive_message", e, self.backend.value))

            if result.matched:
                messages.append(self._to_message(result.document))
            elif result.no_match:
                break
            else:
                if messages:
                    self.logger.warning(
                        "Dropping claimed messages after receive failure",
                        queue=queue_name,
                        leaked=len(messages),
                    )
                return self.fail(ReceiveError("receive_message", result.error_message, self.backend.value))

        if messages:
            self.logger.debug("Messages claimed", queue=queue_name, count=len(messages))
        return OperationResult.success(messages)

    def delete_message(self, queue_name: str, receipt_handle) -> OperationResult:
        """
        Acknowledge a message by the handle ``receive_message`` returned, a
        received message, or its id; unknown or stale ids are an error.
        """
        if isinstance(receipt_handle, ReceivedMessage):
            receipt_handle = receipt_handle.receipt_handle
        if isinstance(receipt_handle, SecondaryHandle):
            return self.fail(
                DeleteError("delete_message", "receipt handle belongs to the secondary backend", self.backend.value)
            )
        if isinstance(receipt_handle, PrimaryHandle):
            receipt_handle = receipt_handle.message_id

        try:
            message_id = receipt_handle if isinstance(receipt_handle, ObjectId) else ObjectId(str(receipt_handle))
        except (InvalidId, TypeError) as e:
            return self.fail(DeleteError("delete_message", e, self.backend.value))

        try:
            removed = self.store.remove(queue_name, {"_id": message_id})
        except Exception as e:
            return self.fail(DeleteError("delete_message", e, self.backend.value))

        if removed == 0:
            return self.fail(DeleteError("delete_message", "no such message", self.backend.value))

        self.logger.debug("Message deleted", queue=queue_name, message_id=str(message_id))
        return OperationResult.success(True)

    def _to_message(self, document: Dict[str, Any]) -> ReceivedMessage:
        message_id = str(document["_id"])
        return ReceivedMessage(
            message_id=message_id,
            body=document.get("body", ""),
            receipt_handle=PrimaryHandle(message_id=message_id),
            attributes={k: v for k, v in document.items() if k not in RESERVED_FIELDS},
            enqueued_at=document.get("enqueued_at"),
            claimed_at=document.get("claimed_at"),
        )
