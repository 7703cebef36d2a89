"""Checklist, subtask and comment mutations.

All functions are pure: they take the current JSON collection and return a new
list, so the column is always reassigned and SQLAlchemy sees the change.
"""
import copy
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from clubhub.core.exceptions import NotFoundError, ValidationError
from clubhub.localization.helpers import get_translation
from clubhub.models.task import SubtaskStatus


def _copy(items: Optional[Iterable[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    return [copy.deepcopy(item) for item in (items or [])]


def _next_id(items: List[Dict[str, Any]]) -> int:
    return max((int(item.get("id", 0)) for item in items), default=0) + 1


def _find(items: List[Dict[str, Any]], item_id: int) -> Optional[Dict[str, Any]]:
    for item in items:
        if int(item.get("id", 0)) == int(item_id):
            return item
    return None


def _str_or_none(value) -> Optional[str]:
    return str(value) if value is not None else None


class ChecklistService:
    """Service for checklist, subtask and comment operations."""

    # Checklist

    @staticmethod
    def add_checklist_item(items, text: str) -> List[Dict[str, Any]]:
        text = (text or "").strip()
        if not text:
            raise ValidationError(field="text")
        result = _copy(items)
        result.append(
            {
                "id": _next_id(result),
                "text": text,
                "completed": False,
                "completed_by": None,
                "completed_at": None,
            }
        )
        return result

    @staticmethod
    def set_checklist_item(
        items,
        item_id: int,
        *,
        completed: Optional[bool],
        user_id: Optional[UUID],
        now: datetime,
    ) -> List[Dict[str, Any]]:
        """Set (or toggle when `completed` is None) a checklist item."""
        result = _copy(items)
        item = _find(result, item_id)
        if item is None:
            raise NotFoundError(get_translation("errors.checklist_item_not_found", item_id=item_id))

        target = (not item.get("completed")) if completed is None else bool(completed)
        item["completed"] = target
        if target:
            item["completed_by"] = _str_or_none(user_id)
            item["completed_at"] = now.isoformat()
        else:
            item["completed_by"] = None
            item["completed_at"] = None
        return result

    @staticmethod
    def remove_checklist_item(items, item_id: int) -> List[Dict[str, Any]]:
        result = _copy(items)
        if _find(result, item_id) is None:
            raise NotFoundError(get_translation("errors.checklist_item_not_found", item_id=item_id))
        return [item for item in result if int(item.get("id", 0)) != int(item_id)]

    @staticmethod
    def reset_checklist(items) -> List[Dict[str, Any]]:
        """Copy of the checklist with every item incomplete."""
        result = _copy(items)
        for item in result:
            item["completed"] = False
            item["completed_by"] = None
            item["completed_at"] = None
        return result

    # Subtasks

    @staticmethod
    def add_subtask(items, title: str, assignee_id: Optional[UUID] = None) -> List[Dict[str, Any]]:
        title = (title or "").strip()
        if not title:
            raise ValidationError(field="title")
        result = _copy(items)
        result.append(
            {
                "id": _next_id(result),
                "title": title,
                "status": SubtaskStatus.NOT_STARTED.value,
                "assignee_id": _str_or_none(assignee_id),
                "completed_at": None,
            }
        )
        return result

    @staticmethod
    def set_subtask_status(
        items,
        subtask_id: int,
        status: SubtaskStatus,
        *,
        now: datetime,
    ) -> List[Dict[str, Any]]:
        result = _copy(items)
        subtask = _find(result, subtask_id)
        if subtask is None:
            raise NotFoundError(get_translation("errors.subtask_not_found", subtask_id=subtask_id))

        status = SubtaskStatus(status)
        subtask["status"] = status.value
        subtask["completed_at"] = now.isoformat() if status == SubtaskStatus.DONE else None
        return result

    @staticmethod
    def remove_subtask(items, subtask_id: int) -> List[Dict[str, Any]]:
        result = _copy(items)
        if _find(result, subtask_id) is None:
            raise NotFoundError(get_translation("errors.subtask_not_found", subtask_id=subtask_id))
        return [item for item in result if int(item.get("id", 0)) != int(subtask_id)]

    # Comments

    @staticmethod
    def add_comment(
        comments,
        *,
        author_id: UUID,
        content: str,
        mentions: Iterable[UUID] = (),
        attachments: Iterable[Dict[str, Any]] = (),
        now: datetime,
    ) -> List[Dict[str, Any]]:
        """Append a comment; comments are never edited in place."""
        content = (content or "").strip()
        if not content:
            raise ValidationError(get_translation("errors.comment_empty"), field="content")
        result = _copy(comments)
        result.append(
            {
                "id": _next_id(result),
                "author_id": str(author_id),
                "content": content,
                "mentions": [str(user_id) for user_id in mentions],
                "attachments": [dict(attachment) for attachment in attachments],
                "created_at": now.isoformat(),
            }
        )
        return result


checklist_service = ChecklistService()
