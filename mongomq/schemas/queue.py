import threading
from dataclasses import dataclass, field
from typing import Any, Dict
from pydantic import BaseModel, Field

from .message import Backend


class QueueAttributes(BaseModel):
    """Point-in-time counts; the counts come from separate queries and are approximate."""
    size: int = 0
    visible_count: int = 0
    leased_count: int = 0
    extra: Dict[str, Any] = Field(default_factory=dict)

    def as_sqs_dict(self) -> Dict[str, Any]:
        return {
            **self.extra,
            "size": self.size,
            "ApproximateNumberOfMessages": self.visible_count,
            "ApproximateNumberOfMessagesNotVisible": self.leased_count,
        }


@dataclass
class FailoverState:
    """
    Process-lifetime routing state of the failover controller.

    ``degraded`` only ever goes from False to True. ``preferred_source`` is a
    hint for receive; concurrent receives may race on it, which costs at most
    one redundant poll.
    """
    degraded: bool = False
    preferred_source: Backend = Backend.SECONDARY
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def mark_degraded(self) -> bool:
        """Set the sticky degraded flag; True only for the call that flipped it."""
        with self._lock:
            if self.degraded:
                return False
            self.degraded = True
            return True

    def prefer(self, source: Backend):
        with self._lock:
            self.preferred_source = source
