"""
MongoMQ: an SQS-style message queue on MongoDB with Amazon SQS failover.

Usage:
    from mongomq import FailoverQueue

    mmq = FailoverQueue()
    if not mmq.send_message("orders", "payload-1"):
        print(mmq.error)
"""
from mongomq.services.failover_queue import FailoverQueue
from mongomq.services.lease_queue import LeaseQueue
from mongomq.services.queue_store import QueueStore

__version__ = "0.2.0"

__all__ = ["FailoverQueue", "LeaseQueue", "QueueStore", "__version__"]
