from .message import (
    Backend,
    PrimaryHandle,
    SecondaryHandle,
    ReceiptHandle,
    ReceivedMessage,
)
from .queue import QueueAttributes, FailoverState
from .results import OperationResult

__all__ = [
    "Backend",
    "PrimaryHandle",
    "SecondaryHandle",
    "ReceiptHandle",
    "ReceivedMessage",
    "QueueAttributes",
    "FailoverState",
    "OperationResult",
]
