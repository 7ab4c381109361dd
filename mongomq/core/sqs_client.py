from typing import Any, Dict, List, Optional
import logging

import boto3
from botocore.config import Config

from mongomq.core.config import settings

logger = logging.getLogger(__name__)

SQS_MAX_BATCH = 10


class SQSClient:
    """
    Amazon SQS client addressing queues by name, used as the failover backend.
    """

    def __init__(self, sqs=None):
        self.sqs = sqs
        self._queue_urls: Dict[str, str] = {}

    def connect(self):
        """Create the boto3 client and check credentials with a cheap call."""
        try:
            if self.sqs is None:
                self.sqs = boto3.client(
                    "sqs",
                    region_name=settings.AWS_REGION,
                    endpoint_url=settings.SQS_ENDPOINT_URL,
                    aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                    config=Config(retries={"max_attempts": 3}, connect_timeout=3),
                )
            self.sqs.list_queues(MaxResults=1)
            logger.info("SQS connection established")
        except Exception as e:
            logger.error(f"Failed to connect to SQS: {e}")
            raise

    def queue_url(self, queue_name: str) -> str:
        if queue_name not in self._queue_urls:
            response = self.sqs.get_queue_url(QueueName=queue_name)
            self._queue_urls[queue_name] = response["QueueUrl"]
        return self._queue_urls[queue_name]

    def create_queue(self, queue_name: str, visibility_timeout: Optional[int] = None) -> str:
        attributes = {}
        if visibility_timeout is not None:
            attributes["VisibilityTimeout"] = str(int(visibility_timeout))
        response = self.sqs.create_queue(QueueName=queue_name, Attributes=attributes)
        self._queue_urls[queue_name] = response["QueueUrl"]
        return response["QueueUrl"]

    def delete_queue(self, queue_name: str) -> bool:
        self.sqs.delete_queue(QueueUrl=self.queue_url(queue_name))
        self._queue_urls.pop(queue_name, None)
        return True

    def get_queue_attributes(self, queue_name: str, attribute: str = "All") -> Dict[str, Any]:
        """Fetch queue attributes, with numeric values converted to int."""
        response = self.sqs.get_queue_attributes(
            QueueUrl=self.queue_url(queue_name),
            AttributeNames=[attribute],
        )
        attributes = {}
        for name, value in response.get("Attributes", {}).items():
            attributes[name] = int(value) if str(value).isdigit() else value
        return attributes

    def set_queue_attributes(self, queue_name: str, attribute: str, value) -> bool:
        self.sqs.set_queue_attributes(
            QueueUrl=self.queue_url(queue_name),
            Attributes={attribute: str(value)},
        )
        return True

    def send_message(self, queue_name: str, body: str) -> str:
        response = self.sqs.send_message(QueueUrl=self.queue_url(queue_name), MessageBody=body)
        return response["MessageId"]

    def receive_message(
        self,
        queue_name: str,
        max_messages: int = 1,
        visibility_timeout: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Receive up to max_messages (SQS caps a batch at 10)."""
        params = {
            "QueueUrl": self.queue_url(queue_name),
            "MaxNumberOfMessages": max(1, min(int(max_messages), SQS_MAX_BATCH)),
            "WaitTimeSeconds": settings.SQS_WAIT_TIME_SECONDS,
        }
        if visibility_timeout is not None:
            params["VisibilityTimeout"] = int(visibility_timeout)

        response = self.sqs.receive_message(**params)
        return [
            {
                "message_id": raw.get("MessageId", ""),
                "body": raw.get("Body", ""),
                "receipt_handle": raw["ReceiptHandle"],
            }
            for raw in response.get("Messages", [])
        ]

    def delete_message(self, queue_name: str, receipt_handle: str) -> bool:
        self.sqs.delete_message(QueueUrl=self.queue_url(queue_name), ReceiptHandle=receipt_handle)
        return True
