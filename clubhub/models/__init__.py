"""Model modules."""
from clubhub.models.club import Club, ClubStatus, club_member_association
from clubhub.models.user import User
from clubhub.models.goal import Goal, Objective
from clubhub.models.task import (
    AssigneeRole,
    DependencyRelation,
    RecurrenceFrequency,
    SubtaskStatus,
    Task,
    TaskPriority,
    TaskStatus,
)
from clubhub.models.activity import ActivityLog
from clubhub.models.webhook import TaskEvent, WebhookSubscription

__all__ = [
    "Club",
    "ClubStatus",
    "club_member_association",
    "User",
    "Goal",
    "Objective",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "AssigneeRole",
    "SubtaskStatus",
    "DependencyRelation",
    "RecurrenceFrequency",
    "ActivityLog",
    "TaskEvent",
    "WebhookSubscription",
]
