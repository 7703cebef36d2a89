"""Celery application and beat schedule."""
from celery import Celery

from clubhub.config import settings

celery_app = Celery(
    "clubhub",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["clubhub.tasks.analytics"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone=settings.TIMEZONE,
    enable_utc=True,
    beat_schedule={
        "refresh-platform-analytics": {
            "task": "clubhub.tasks.analytics.refresh_platform_analytics",
            "schedule": settings.ANALYTICS_REFRESH_MINUTES * 60.0,
        },
    },
)
