"""Webhook subscription API endpoints."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.core.exceptions import NotFoundError
from clubhub.crud.webhook import webhook
from clubhub.database import get_db
from clubhub.schemas.webhook import WebhookSubscriptionCreate, WebhookSubscriptionResponse

router = APIRouter()


@router.get("", response_model=List[WebhookSubscriptionResponse])
async def list_webhooks(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
):
    """List all webhook subscriptions."""
    return await webhook.get_multi(db, skip=skip, limit=limit)


@router.post("", response_model=WebhookSubscriptionResponse, status_code=201)
async def create_webhook(
    webhook_data: WebhookSubscriptionCreate,
    db: AsyncSession = Depends(get_db),
):
    """Subscribe a URL to a task event."""
    return await webhook.create(db, obj_in=webhook_data.model_dump(mode="json"))


@router.get("/{webhook_id}", response_model=WebhookSubscriptionResponse)
async def get_webhook(webhook_id: UUID, db: AsyncSession = Depends(get_db)):
    """Get a webhook subscription by ID."""
    webhook_obj = await webhook.get(db, id=webhook_id)
    if not webhook_obj:
        raise NotFoundError("Webhook not found")
    return webhook_obj


@router.delete("/{webhook_id}", status_code=204)
async def delete_webhook(webhook_id: UUID, db: AsyncSession = Depends(get_db)):
    """Delete a webhook subscription."""
    webhook_obj = await webhook.get(db, id=webhook_id)
    if not webhook_obj:
        raise NotFoundError("Webhook not found")
    await webhook.remove(db, id=webhook_id)
