from dataclasses import dataclass
from typing import Any, Optional

from mongomq.core.exceptions import QueueError


@dataclass
class OperationResult:
    """Outcome of a public queue operation. Truthy on success."""
    ok: bool
    value: Any = None
    error: Optional[QueueError] = None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def error_message(self) -> str:
        return str(self.error) if self.error else ""

    @classmethod
    def success(cls, value: Any = True) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: QueueError, value: Any = None) -> "OperationResult":
        return cls(ok=False, value=value, error=error)
