"""
Payment notification schemas
"""
import enum

from pydantic import BaseModel, Field
from typing import Optional


class VerifiedEvent(BaseModel):
    """A gateway notification whose signature has been checked"""
    id: str
    type: str
    session_id: Optional[str] = None
    payment_status: Optional[str] = None
    metadata: dict[str, str] = Field(default_factory=dict)
    
    @property
    def order_id(self) -> Optional[str]:
        return self.metadata.get("orderId") or None


class NotificationOutcome(str, enum.Enum):
    IGNORED = "ignored"
    ALREADY_PROCESSED = "already_processed"
    RECONCILED = "reconciled"


class NotificationResult(BaseModel):
    outcome: NotificationOutcome
    order_id: Optional[str] = None


class NotificationResponse(BaseModel):
    """Acknowledgement returned to the gateway"""
    received: bool = True
    outcome: NotificationOutcome
