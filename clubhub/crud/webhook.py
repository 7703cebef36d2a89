"""Webhook CRUD operations."""
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clubhub.crud.base import CRUDBase
from clubhub.models.webhook import TaskEvent, WebhookSubscription


class CRUDWebhook(CRUDBase[WebhookSubscription, dict, dict]):
    """CRUD operations for WebhookSubscription."""

    async def get_by_event(
        self,
        db: AsyncSession,
        *,
        event: TaskEvent,
        active_only: bool = True,
    ) -> List[WebhookSubscription]:
        """Get webhooks by event."""
        query = select(WebhookSubscription).where(WebhookSubscription.event == event.value)
        if active_only:
            query = query.where(WebhookSubscription.active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())


webhook = CRUDWebhook(WebhookSubscription)
