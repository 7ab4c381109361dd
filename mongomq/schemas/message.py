from enum import Enum
from typing import Annotated, Any, Dict, Literal, Optional, Union
from pydantic import BaseModel, Field


class Backend(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class PrimaryHandle(BaseModel):
    """Acknowledgment token of a MongoDB message: its ObjectId, as hex."""
    source: Literal["primary"] = "primary"
    message_id: str


class SecondaryHandle(BaseModel):
    """Acknowledgment token of an SQS message: its receipt handle."""
    source: Literal["secondary"] = "secondary"
    token: str


ReceiptHandle = Annotated[Union[PrimaryHandle, SecondaryHandle], Field(discriminator="source")]


class ReceivedMessage(BaseModel):
    message_id: str
    body: str
    receipt_handle: ReceiptHandle
    attributes: Dict[str, Any] = Field(default_factory=dict)
    enqueued_at: Optional[float] = None
    claimed_at: Optional[float] = None

    @property
    def source(self) -> Backend:
        return Backend(self.receipt_handle.source)

    @property
    def Body(self) -> str:
        return self.body

    def to_dict(self) -> Dict[str, Any]:
        """Render the message the way SQS-style callers read it."""
        data: Dict[str, Any] = {**self.attributes, "body": self.body, "Body": self.body}
        if isinstance(self.receipt_handle, SecondaryHandle):
            data["MessageId"] = self.message_id
            data["ReceiptHandle"] = self.receipt_handle.token
        else:
            data["_id"] = self.message_id
            data["enqueued_at"] = self.enqueued_at
            data["claimed_at"] = self.claimed_at
        return data
