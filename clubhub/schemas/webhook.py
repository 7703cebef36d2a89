"""Webhook schemas."""
from typing import Optional
from uuid import UUID
from pydantic import BaseModel
from datetime import datetime
from clubhub.models.webhook import TaskEvent


class WebhookSubscriptionBase(BaseModel):
    """Base webhook subscription schema."""

    event: TaskEvent
    url: str
    secret: Optional[str] = None
    active: bool = True


class WebhookSubscriptionCreate(WebhookSubscriptionBase):
    """Webhook subscription creation schema."""

    pass


class WebhookSubscriptionResponse(WebhookSubscriptionBase):
    """Webhook subscription response schema."""

    id: UUID
    last_status: Optional[str] = None
    last_called_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
