from .queue_store import QueueStore
from .lease_queue import LeaseQueue
from .failover_queue import FailoverQueue

__all__ = [
    "QueueStore",
    "LeaseQueue",
    "FailoverQueue",
]
