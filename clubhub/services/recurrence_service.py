"""Recurring task expansion."""
from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from dateutil.rrule import DAILY, MONTHLY, SU, WEEKLY, YEARLY, rrule

from clubhub.models.task import RecurrenceFrequency, Task, TaskStatus
from clubhub.services.checklist_service import checklist_service
from clubhub.utils.dates import as_naive_utc, parse_datetime

logger = logging.getLogger(__name__)

FREQUENCIES = {
    RecurrenceFrequency.DAILY: DAILY,
    RecurrenceFrequency.WEEKLY: WEEKLY,
    RecurrenceFrequency.MONTHLY: MONTHLY,
    RecurrenceFrequency.YEARLY: YEARLY,
}


def _clamped_monthday(day: int):
    """Month days that resolve to `day`, or the month's last day when it is shorter."""
    return tuple(range(min(day, 28), day + 1))


class RecurrenceService:
    """Computes the next occurrence of a recurring task and builds it."""

    @staticmethod
    def series_start(rule: Dict[str, Any], due_date: datetime) -> datetime:
        """Anchor of the series; the first occurrence's due date."""
        return parse_datetime(rule.get("series_start")) or as_naive_utc(due_date)

    @staticmethod
    def build_rrule(rule: Dict[str, Any], due_date: datetime) -> rrule:
        """dateutil rule for the series, anchored at its first due date.

        Month days beyond the end of a short month fall back to its last day
        without moving later occurrences off the anchor day.
        """
        frequency = RecurrenceFrequency(rule["frequency"])
        anchor = RecurrenceService.series_start(rule, due_date)
        due_date = as_naive_utc(due_date)
        options: Dict[str, Any] = dict(
            dtstart=anchor,
            interval=max(1, int(rule.get("interval") or 1)),
            until=parse_datetime(rule.get("end_date")),
            byhour=due_date.hour,
            byminute=due_date.minute,
            bysecond=due_date.second,
        )

        if frequency == RecurrenceFrequency.WEEKLY:
            # days_of_week uses 0 = Sunday; dateutil uses 0 = Monday
            days = sorted({int(day) for day in (rule.get("days_of_week") or [])})
            if days:
                options["byweekday"] = [(day - 1) % 7 for day in days]
            options["wkst"] = SU
        elif frequency == RecurrenceFrequency.MONTHLY:
            options["bymonthday"] = _clamped_monthday(int(rule.get("day_of_month") or anchor.day))
            options["bysetpos"] = -1
        elif frequency == RecurrenceFrequency.YEARLY:
            options["bymonth"] = anchor.month
            options["bymonthday"] = _clamped_monthday(anchor.day)
            options["bysetpos"] = -1

        return rrule(FREQUENCIES[frequency], **options)

    @staticmethod
    def next_due_date(rule: Dict[str, Any], due_date: datetime) -> Optional[datetime]:
        """Next occurrence after `due_date`, or None past the rule's end date.

        Time of day is preserved.
        """
        due_date = as_naive_utc(due_date)
        next_date = RecurrenceService.build_rrule(rule, due_date).after(due_date)
        if next_date is None:
            return None
        return next_date.replace(microsecond=due_date.microsecond)

    @staticmethod
    def series_ended(rule: Dict[str, Any], task: Task, next_date: Optional[datetime]) -> bool:
        if next_date is None:
            return True
        end_date = parse_datetime(rule.get("end_date"))
        if end_date is not None and next_date > end_date:
            return True
        occurrences = rule.get("occurrences")
        if occurrences is not None and (task.occurrence_number or 1) >= int(occurrences):
            return True
        return False

    @staticmethod
    def expand(task: Task, now: Optional[datetime] = None) -> Optional[Task]:
        """Build the successor of a completed recurring task, or None when the series ends.

        The successor is transient; the caller adds and commits it.
        """
        rule = task.recurrence_rule
        if not rule or task.status != TaskStatus.COMPLETED.value:
            return None

        now = now or datetime.utcnow()
        next_date = RecurrenceService.next_due_date(rule, task.due_date)
        if RecurrenceService.series_ended(rule, task, next_date):
            logger.info("Recurrence series of task %s ended after occurrence %s", task.id, task.occurrence_number)
            return None

        successor_rule = copy.deepcopy(rule)
        successor_rule["series_start"] = RecurrenceService.series_start(rule, task.due_date).isoformat()

        return Task(
            title=task.title,
            description=task.description,
            club_id=task.club_id,
            objective_id=task.objective_id,
            goal_id=task.goal_id,
            priority=task.priority,
            status=TaskStatus.NOT_STARTED.value,
            progress=0,
            start_date=now,
            due_date=next_date,
            assignees=copy.deepcopy(task.assignees or []),
            checklist=checklist_service.reset_checklist(task.checklist),
            subtasks=[],
            dependencies=[],
            comments=[],
            tags=list(task.tags or []),
            recurrence_rule=successor_rule,
            occurrence_number=(task.occurrence_number or 1) + 1,
            parent_task_id=task.id,
            created_by=task.created_by,
            created_at=now,
            updated_at=now,
        )


recurrence_service = RecurrenceService()
