"""Celery tasks for periodic analytics."""
import asyncio
import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from clubhub.config import settings
from clubhub.schemas.analytics import AnalyticsReportResponse
from clubhub.schemas.task import TaskFilter
from clubhub.services.analytics_service import analytics_service
from clubhub.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def compute_platform_report(club_id: Optional[str] = None) -> Dict[str, Any]:
    """Aggregate the report on a dedicated engine; Celery workers run outside the app loop."""
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_factory() as db:
            report = await analytics_service.aggregate(db, TaskFilter(club_id=club_id))
    finally:
        await engine.dispose()
    return AnalyticsReportResponse.model_validate(report).model_dump(mode="json")


@celery_app.task(name="clubhub.tasks.analytics.refresh_platform_analytics")
def refresh_platform_analytics(club_id: Optional[str] = None) -> Dict[str, Any]:
    """Recompute the analytics report (called by Celery Beat)."""
    report = asyncio.run(compute_platform_report(club_id))
    logger.info(
        "Analytics refreshed: %s tasks, completion rate %s%%, partial=%s",
        report["total_tasks"],
        report["task_completion_rate"],
        report["partial"],
    )
    return report
