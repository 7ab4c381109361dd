from abc import ABC
from typing import Any

from mongomq.core.exceptions import QueueError
from mongomq.core.logging import get_logger
from mongomq.schemas.results import OperationResult


class BaseService(ABC):
    """Base service class with common functionality."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)
        # Text of the last failure, kept for callers that only check truthiness
        self.error = ""

    def fail(self, error: QueueError, value: Any = None) -> OperationResult:
        """Record a failure and convert it into a result."""
        self.error = f"{self.__class__.__name__}::{error}"
        self.logger.error(
            "Queue operation failed",
            operation=error.operation,
            kind=error.kind,
            backend=error.backend,
            error=str(error.cause),
        )
        return OperationResult.failure(error, value=value)
