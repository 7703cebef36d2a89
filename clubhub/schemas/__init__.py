"""Schema modules."""
from clubhub.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskFilter,
    TaskResponse,
    TaskMutationResponse,
    RecurrenceRule,
)
from clubhub.schemas.analytics import AnalyticsReportResponse, TaskInsightsResponse
from clubhub.schemas.webhook import WebhookSubscriptionCreate, WebhookSubscriptionResponse
