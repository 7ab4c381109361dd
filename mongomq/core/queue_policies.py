from dataclasses import dataclass
from typing import Dict, Optional

from mongomq.core.config import settings


@dataclass
class QueuePolicy:
    max_attempts: int
    visibility_timeout_seconds: int
    backoff_base: float = 2.0
    backoff_unit_seconds: float = 1.0
    max_delay_seconds: float = 3600.0

    def backoff_delay(self, attempt: int) -> float:
        """Delay slept after the given failed attempt (attempts count from 1)."""
        delay = self.backoff_unit_seconds * (self.backoff_base ** max(0, attempt))
        return min(delay, self.max_delay_seconds)


def default_policy() -> QueuePolicy:
    return QueuePolicy(
        max_attempts=settings.DEFAULT_MAX_ATTEMPTS,
        visibility_timeout_seconds=settings.VISIBILITY_TIMEOUT_SECONDS,
        backoff_base=settings.RETRY_BACKOFF_BASE,
        backoff_unit_seconds=settings.RETRY_BACKOFF_UNIT_SECONDS,
        max_delay_seconds=settings.RETRY_MAX_DELAY_SECONDS,
    )


QUEUE_POLICIES: Dict[str, QueuePolicy] = {}


def register_queue_policy(queue_name: str, policy: QueuePolicy):
    """Override the policy used for one queue."""
    QUEUE_POLICIES[queue_name] = policy


def get_queue_policy(queue_name: Optional[str] = None) -> QueuePolicy:
    if queue_name and queue_name in QUEUE_POLICIES:
        return QUEUE_POLICIES[queue_name]
    return default_policy()
