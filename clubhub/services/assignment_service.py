"""Assignment ledger for tasks."""
import copy
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from clubhub.core.exceptions import NotFoundError
from clubhub.localization.helpers import get_translation
from clubhub.models.task import AssigneeRole, Task


class AssignmentService:
    """Keeps at most one assignee entry per user on a task."""

    @staticmethod
    def assign(
        task: Task,
        user_id: UUID,
        role: AssigneeRole = AssigneeRole.CONTRIBUTOR,
        *,
        assigned_by: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> Task:
        """Upsert a user's assignment; an existing entry is updated in place."""
        now = now or datetime.utcnow()
        role = AssigneeRole(role)
        entry = {
            "user_id": str(user_id),
            "role": role.value,
            "assigned_at": now.isoformat(),
            "assigned_by": str(assigned_by) if assigned_by else None,
        }

        assignees: List[Dict[str, Any]] = [copy.deepcopy(item) for item in (task.assignees or [])]
        for index, existing in enumerate(assignees):
            if existing.get("user_id") == entry["user_id"]:
                assignees[index] = entry
                break
        else:
            assignees.append(entry)

        task.assignees = assignees
        return task

    @staticmethod
    def unassign(task: Task, user_id: UUID) -> Task:
        assignees = [copy.deepcopy(item) for item in (task.assignees or [])]
        remaining = [item for item in assignees if item.get("user_id") != str(user_id)]
        if len(remaining) == len(assignees):
            raise NotFoundError(get_translation("errors.assignee_not_found", user_id=user_id))
        task.assignees = remaining
        return task

    @staticmethod
    def primary_assignee(task: Task) -> Optional[UUID]:
        """The owner if there is one, else the first assignee."""
        assignees = task.assignees or []
        if not assignees:
            return None
        for entry in assignees:
            if entry.get("role") == AssigneeRole.OWNER.value:
                return UUID(entry["user_id"])
        return UUID(assignees[0]["user_id"])


assignment_service = AssignmentService()
