import time
from typing import Callable, Optional

from mongomq.core.config import settings
from mongomq.core.logging import get_logger
from mongomq.schemas.message import ReceivedMessage


class BaseConsumer:
    """
    Base class for queue consumers.

    Messages are deleted only after ``process_message`` succeeds. A failed or
    raising handler leaves the message leased, so it is delivered again once
    its visibility timeout expires.
    """

    def __init__(
        self,
        queue_name: str,
        queue,
        batch_size: Optional[int] = None,
        visibility_timeout: Optional[int] = None,
        poll_interval: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.queue_name = queue_name
        self.queue = queue
        self.batch_size = batch_size or settings.CONSUMER_BATCH_SIZE
        self.visibility_timeout = visibility_timeout
        self.poll_interval = settings.CONSUMER_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        self.sleep = sleep
        self.logger = get_logger(self.__class__.__name__)
        self._running = False

    def process_message(self, message: ReceivedMessage) -> bool:
        """
        Process a single message. Override in subclasses.

        Returns:
            bool: True if successful, False to leave it for redelivery
        """
        raise NotImplementedError("Subclasses must implement process_message")

    def poll_once(self) -> int:
        """Receive one batch and process it; returns the number acknowledged."""
        result = self.queue.receive_message(self.queue_name, self.batch_size, self.visibility_timeout)
        if not result:
            self.logger.error("Receive failed", queue=self.queue_name, error=self.queue.error)
            return 0

        acknowledged = 0
        for message in result.value:
            try:
                success = self.process_message(message)
            except Exception as e:
                self.logger.error(
                    f"Error processing message: {e}",
                    queue=self.queue_name,
                    message_id=message.message_id,
                )
                continue

            if not success:
                self.logger.warning(
                    "Message left for redelivery",
                    queue=self.queue_name,
                    message_id=message.message_id,
                )
                continue

            if self.queue.delete_message(self.queue_name, message.receipt_handle):
                acknowledged += 1
            else:
                self.logger.error(
                    "Could not acknowledge message",
                    queue=self.queue_name,
                    message_id=message.message_id,
                    error=self.queue.error,
                )
        return acknowledged

    def run(self, max_polls: Optional[int] = None):
        """Main consumer loop."""
        self.logger.info(f"Starting consumer for queue: {self.queue_name}")
        self._running = True
        polls = 0
        while self._running and (max_polls is None or polls < max_polls):
            polls += 1
            if self.poll_once() == 0:
                self.sleep(self.poll_interval)
        self._running = False

    def stop(self):
        self._running = False
