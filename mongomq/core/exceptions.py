"""
Error kinds raised inside the queue services.

They never leave a public operation: each service converts them into a failed
``OperationResult`` and keeps the rendered text in its ``error`` attribute.
"""
from typing import Optional


class QueueError(Exception):
    """Base class for queue failures, naming the operation and the cause."""

    kind = "queue"

    def __init__(self, operation: str, cause, backend: Optional[str] = None):
        self.operation = operation
        self.cause = cause
        self.backend = backend
        super().__init__(str(self))

    def __str__(self) -> str:
        backend = f" [{self.backend}]" if self.backend else ""
        return f"{self.operation}(){backend}: error {self.cause}"


class StoreError(QueueError):
    """Queue management failed (create, delete, list, attributes)."""

    kind = "store"


class SendError(QueueError):
    """A message could not be enqueued."""

    kind = "send"


class ReceiveError(QueueError):
    """A receive call failed; messages already claimed by it stay leased."""

    kind = "receive"


class DeleteError(QueueError):
    """A message could not be acknowledged."""

    kind = "delete"
