"""Event dispatcher: in-process listeners and webhook subscribers."""
import hashlib
import hmac
import json
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from clubhub.config import settings
from clubhub.crud.webhook import webhook
from clubhub.models.webhook import TaskEvent, WebhookSubscription

logger = logging.getLogger(__name__)

Listener = Callable[[TaskEvent, Dict[str, Any]], Optional[Awaitable[None]]]


class EventDispatcher:
    """Hands task events to subscribers; delivery failures never reach the caller."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._listeners: Dict[TaskEvent, List[Listener]] = {}
        self._transport = transport

    def subscribe(self, event: TaskEvent, listener: Listener) -> None:
        self._listeners.setdefault(TaskEvent(event), []).append(listener)

    def unsubscribe(self, event: TaskEvent, listener: Listener) -> None:
        listeners = self._listeners.get(TaskEvent(event), [])
        if listener in listeners:
            listeners.remove(listener)

    @staticmethod
    def _generate_signature(payload: str, secret: str) -> str:
        """Generate HMAC signature for webhook payload."""
        return hmac.new(
            secret.encode("utf-8"),
            payload.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.HTTPError),
        reraise=True,
    )
    async def _send_webhook(self, url: str, payload: Dict[str, Any], secret: Optional[str] = None) -> int:
        """POST the payload, retrying transport and HTTP errors."""
        body = json.dumps(payload, default=str)
        headers = {
            "Content-Type": "application/json",
            "User-Agent": "ClubHub-Webhook/1.0",
        }
        if secret:
            headers["X-Webhook-Signature"] = f"sha256={self._generate_signature(body, secret)}"

        async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT_SECONDS, transport=self._transport) as client:
            response = await client.post(url, content=body, headers=headers)
            response.raise_for_status()
            return response.status_code

    async def _deliver(self, subscription: WebhookSubscription, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            status_code = await self._send_webhook(subscription.url, payload, subscription.secret)
            result = {"status": "success", "status_code": status_code}
        except httpx.HTTPError as exc:
            logger.warning("Webhook %s delivery to %s failed: %s", subscription.id, subscription.url, exc)
            result = {"status": "error", "error": str(exc)}

        subscription.last_status = result["status"]
        subscription.last_called_at = datetime.utcnow()
        return result

    async def _notify_listeners(self, event: TaskEvent, payload: Dict[str, Any]) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                outcome = listener(event, payload)
                if outcome is not None:
                    await outcome
            except Exception:
                logger.exception("Listener %r failed for %s", listener, event.value)

    async def publish(
        self,
        event: TaskEvent,
        payload: Dict[str, Any],
        db: Optional[AsyncSession] = None,
    ) -> List[Dict[str, Any]]:
        """Deliver one event to listeners and, with a session, to active webhooks."""
        event = TaskEvent(event)
        await self._notify_listeners(event, payload)
        if db is None:
            return []

        try:
            subscriptions = await webhook.get_by_event(db, event=event, active_only=True)
        except Exception:
            logger.exception("Could not load webhook subscriptions for %s", event.value)
            return []

        envelope = {
            "event": event.value,
            "timestamp": datetime.utcnow().isoformat(),
            "data": payload,
        }
        results = []
        for subscription in subscriptions:
            result = await self._deliver(subscription, envelope)
            results.append({"webhook_id": str(subscription.id), "url": subscription.url, "result": result})

        if subscriptions:
            try:
                await db.commit()
            except Exception:
                logger.exception("Could not record webhook delivery status for %s", event.value)
                await db.rollback()
        return results

    async def publish_many(
        self,
        events: List[TaskEvent],
        payload: Dict[str, Any],
        db: Optional[AsyncSession] = None,
    ) -> None:
        for event in events:
            await self.publish(event, payload, db)


event_dispatcher = EventDispatcher()
