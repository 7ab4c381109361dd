"""
MongoMQ with Amazon SQS as a failover backend.

Sends go to MongoDB until it fails ``max_attempts`` times in a row; from then
on the controller is degraded and every send goes to SQS for the rest of the
process. Receives poll SQS first only while degraded or while SQS is the
preferred source, and switch back to MongoDB as soon as SQS comes back empty.
"""
import time
from typing import Any, Callable, Dict, Optional

from bson import ObjectId

from mongomq.core.config import settings
from mongomq.core.exceptions import DeleteError, QueueError, ReceiveError, SendError, StoreError
from mongomq.core.queue_policies import get_queue_policy
from mongomq.core.sqs_client import SQSClient
from mongomq.schemas.message import (
    Backend,
    PrimaryHandle,
    ReceivedMessage,
    SecondaryHandle,
)
from mongomq.schemas.queue import FailoverState, QueueAttributes
from mongomq.schemas.results import OperationResult
from .base_service import BaseService
from .lease_queue import LeaseQueue


class FailoverQueue(BaseService):
    """Queue facade over a MongoDB lease queue with SQS backup."""

    def __init__(
        self,
        primary: Optional[LeaseQueue] = None,
        secondary: Optional[SQSClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__()
        self.state = FailoverState()
        self.sleep = sleep
        self.primary = primary or LeaseQueue()
        self.secondary: Optional[SQSClient] = None
        try:
            secondary = secondary or SQSClient()
            secondary.connect()
            self.secondary = secondary
            self.primary.store.connect()
        except Exception as e:
            # Start degraded instead of failing construction
            self.fail(QueueError("__init__", e))
            self.state.mark_degraded()

    @property
    def degraded(self) -> bool:
        return self.state.degraded

    # Queue management: SQS is the source of truth for queue existence

    def create_queue(self, queue_name: str, visibility_timeout: Optional[int] = None) -> OperationResult:
        try:
            self._secondary("create_queue").create_queue(queue_name, visibility_timeout)
        except Exception as e:
            return self.fail(StoreError("create_queue", e, Backend.SECONDARY.value))
        self.logger.info("Queue created", queue=queue_name)
        return OperationResult.success(True)

    def delete_queue(self, queue_name: str) -> OperationResult:
        """Delete the SQS queue, then drop the MongoDB collection."""
        try:
            self._secondary("delete_queue").delete_queue(queue_name)
        except Exception as e:
            return self.fail(StoreError("delete_queue", e, Backend.SECONDARY.value))
        return self._from_primary(self.primary.delete_queue(queue_name))

    def list_queues(self, prefix: str = "") -> OperationResult:
        return self._from_primary(self.primary.list_queues(prefix))

    def get_queue_attributes(self, queue_name: str, attribute: str = "All") -> OperationResult:
        """SQS attributes with the MongoDB counts added in; size is MongoDB's."""
        try:
            sqs_attributes: Dict[str, Any] = self._secondary("get_queue_attributes").get_queue_attributes(
                queue_name, attribute
            )
        except Exception as e:
            return self.fail(StoreError("get_queue_attributes", e, Backend.SECONDARY.value))

        visible = int(sqs_attributes.pop("ApproximateNumberOfMessages", 0))
        leased = int(sqs_attributes.pop("ApproximateNumberOfMessagesNotVisible", 0))

        primary_result = self.primary.get_queue_attributes(queue_name, attribute)
        if primary_result:
            primary_attributes: QueueAttributes = primary_result.value
            return OperationResult.success(
                QueueAttributes(
                    size=primary_attributes.size,
                    visible_count=visible + primary_attributes.visible_count,
                    leased_count=leased + primary_attributes.leased_count,
                    extra=sqs_attributes,
                )
            )

        self.logger.warning(
            "Primary attributes unavailable, reporting SQS counts only",
            queue=queue_name,
            error=self.primary.error,
        )
        return OperationResult.success(
            QueueAttributes(size=visible + leased, visible_count=visible, leased_count=leased, extra=sqs_attributes)
        )

    def set_queue_attributes(self, queue_name: str, attribute: str, value) -> OperationResult:
        try:
            self._secondary("set_queue_attributes").set_queue_attributes(queue_name, attribute, value)
        except Exception as e:
            return self.fail(StoreError("set_queue_attributes", e, Backend.SECONDARY.value))
        return OperationResult.success(True)

    # Messages

    def send_message(
        self,
        queue_name: str,
        body: str,
        attributes: Optional[Dict[str, Any]] = None,
        max_attempts: Optional[int] = None,
    ) -> OperationResult:
        """
        Send to MongoDB with retries; once it is exhausted, mark the controller
        degraded and send to SQS with the same retry policy.
        """
        policy = get_queue_policy(queue_name)
        attempts = max(1, max_attempts or policy.max_attempts)

        if not self.state.degraded:
            result = self._retry(
                lambda: self.primary.send_message(queue_name, body, attributes),
                attempts,
                queue_name,
                Backend.PRIMARY,
            )
            if result:
                return result
            if self.state.mark_degraded():
                self.logger.error(
                    "Primary backend exhausted, switching sends to SQS",
                    queue=queue_name,
                    attempts=attempts,
                    error=self.primary.error,
                )

        result = self._retry(
            lambda: self._send_secondary(queue_name, body),
            attempts,
            queue_name,
            Backend.SECONDARY,
        )
        if result:
            return result
        return self.fail(SendError("send_message", "both backends exhausted", Backend.SECONDARY.value))

    def receive_message(
        self,
        queue_name: str,
        max_messages: Optional[int] = None,
        visibility_timeout: Optional[int] = None,
    ) -> OperationResult:
        """
        Receive from MongoDB in steady state. While degraded, or while SQS is
        preferred, poll SQS first; an empty SQS answer sends a non-degraded
        controller back to MongoDB within the same call.
        """
        if not self.state.degraded and self.state.preferred_source != Backend.SECONDARY:
            return self._from_primary(self.primary.receive_message(queue_name, max_messages, visibility_timeout))

        try:
            raw_messages = self._secondary("receive_message").receive_message(
                queue_name, max_messages or 1, visibility_timeout
            )
        except Exception as e:
            return self.fail(ReceiveError("receive_message", e, Backend.SECONDARY.value))

        if not raw_messages and not self.state.degraded:
            self.state.prefer(Backend.PRIMARY)
            self.logger.info("SQS drained, polling MongoDB first", queue=queue_name)
            return self._from_primary(self.primary.receive_message(queue_name, max_messages, visibility_timeout))

        messages = [
            ReceivedMessage(
                message_id=raw["message_id"],
                body=raw["body"],
                receipt_handle=SecondaryHandle(token=raw["receipt_handle"]),
            )
            for raw in raw_messages
        ]
        return OperationResult.success(messages)

    def delete_message(self, queue_name: str, receipt_handle, max_attempts: int = 1) -> OperationResult:
        """
        Acknowledge a message on whichever backend handed it out.

        Accepts a tagged handle, a received message, an SQS-style mapping with
        ``ReceiptHandle`` or ``_id``, an ObjectId, or a bare token; bare tokens
        no longer than a MongoDB id go to MongoDB, longer ones to SQS.
        """
        if isinstance(receipt_handle, ReceivedMessage):
            receipt_handle = receipt_handle.receipt_handle

        if isinstance(receipt_handle, dict):
            if receipt_handle.get("ReceiptHandle"):
                return self.delete_message(queue_name, SecondaryHandle(token=receipt_handle["ReceiptHandle"]), max_attempts)
            if receipt_handle.get("_id"):
                return self.delete_message(queue_name, PrimaryHandle(message_id=str(receipt_handle["_id"])), max_attempts)
            return self.fail(DeleteError("delete_message", f"don't know how to delete {receipt_handle!r}"))

        if isinstance(receipt_handle, ObjectId):
            receipt_handle = PrimaryHandle(message_id=str(receipt_handle))
        elif isinstance(receipt_handle, str):
            if len(receipt_handle) <= settings.PRIMARY_ID_MAX_LENGTH:
                receipt_handle = PrimaryHandle(message_id=receipt_handle)
            else:
                receipt_handle = SecondaryHandle(token=receipt_handle)

        attempts = max(1, max_attempts)
        if isinstance(receipt_handle, PrimaryHandle):
            backend = Backend.PRIMARY
            result = self._retry(
                lambda: self.primary.delete_message(queue_name, receipt_handle.message_id),
                attempts,
                queue_name,
                backend,
            )
        elif isinstance(receipt_handle, SecondaryHandle):
            backend = Backend.SECONDARY
            result = self._retry(
                lambda: self._delete_secondary(queue_name, receipt_handle.token),
                attempts,
                queue_name,
                backend,
            )
        else:
            return self.fail(DeleteError("delete_message", f"don't know how to delete {receipt_handle!r}"))

        if result:
            return result
        cause = result.error.cause if result.error else "unknown error"
        return self.fail(DeleteError("delete_message", f"can't delete message: {cause}", backend.value))

    # Helpers

    def _retry(
        self,
        operation: Callable[[], OperationResult],
        attempts: int,
        queue_name: str,
        backend: Backend,
    ) -> OperationResult:
        """Run operation up to attempts times, sleeping 2^attempt units between tries."""
        policy = get_queue_policy(queue_name)
        for attempt in range(1, attempts + 1):
            result = operation()
            if result:
                return result
            if attempt < attempts:
                delay = policy.backoff_delay(attempt)
                self.logger.warning(
                    "Attempt failed, backing off",
                    queue=queue_name,
                    backend=backend.value,
                    attempt=attempt,
                    max_attempts=attempts,
                    delay=delay,
                )
                self.sleep(delay)
        return result

    def _send_secondary(self, queue_name: str, body: str) -> OperationResult:
        try:
            message_id = self._secondary("send_message").send_message(queue_name, body)
        except Exception as e:
            return self.fail(SendError("send_message", e, Backend.SECONDARY.value))
        self.logger.debug("Message queued to SQS", queue=queue_name, message_id=message_id)
        return OperationResult.success(message_id)

    def _delete_secondary(self, queue_name: str, token: str) -> OperationResult:
        try:
            self._secondary("delete_message").delete_message(queue_name, token)
        except Exception as e:
            return self.fail(DeleteError("delete_message", e, Backend.SECONDARY.value))
        return OperationResult.success(True)

    def _secondary(self, operation: str) -> SQSClient:
        if self.secondary is None:
            raise ConnectionError(f"secondary backend unavailable for {operation}")
        return self.secondary

    def _from_primary(self, result: OperationResult) -> OperationResult:
        """Pass a primary result through, surfacing its error text here too."""
        if not result:
            self.error = self.primary.error
        return result
