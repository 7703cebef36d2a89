"""Tests for checklist, subtask and comment mutations."""
from datetime import datetime
from uuid import uuid4

import pytest

from clubhub.core.exceptions import NotFoundError, ValidationError
from clubhub.models.task import SubtaskStatus
from clubhub.services.checklist_service import checklist_service

NOW = datetime(2024, 5, 1, 12, 0)


def test_add_checklist_item_assigns_local_ids():
    items = checklist_service.add_checklist_item([], "Book the hall")
    items = checklist_service.add_checklist_item(items, "Print flyers")
    assert [item["id"] for item in items] == [1, 2]
    assert all(item["completed"] is False for item in items)


def test_ids_are_not_reused_after_removal():
    items = checklist_service.add_checklist_item([], "One")
    items = checklist_service.add_checklist_item(items, "Two")
    items = checklist_service.remove_checklist_item(items, 1)
    items = checklist_service.add_checklist_item(items, "Three")
    assert [item["id"] for item in items] == [2, 3]


def test_mutations_do_not_touch_input():
    original = checklist_service.add_checklist_item([], "Book the hall")
    updated = checklist_service.set_checklist_item(original, 1, completed=True, user_id=None, now=NOW)
    assert original[0]["completed"] is False
    assert updated[0]["completed"] is True


def test_completing_item_records_who_and_when():
    user_id = uuid4()
    items = checklist_service.add_checklist_item([], "Book the hall")
    items = checklist_service.set_checklist_item(items, 1, completed=True, user_id=user_id, now=NOW)
    assert items[0]["completed_by"] == str(user_id)
    assert items[0]["completed_at"] == NOW.isoformat()


def test_uncompleting_item_clears_completion_fields():
    items = checklist_service.add_checklist_item([], "Book the hall")
    items = checklist_service.set_checklist_item(items, 1, completed=True, user_id=uuid4(), now=NOW)
    items = checklist_service.set_checklist_item(items, 1, completed=False, user_id=uuid4(), now=NOW)
    assert items[0]["completed"] is False
    assert items[0]["completed_by"] is None
    assert items[0]["completed_at"] is None


def test_toggle_without_explicit_value():
    items = checklist_service.add_checklist_item([], "Book the hall")
    items = checklist_service.set_checklist_item(items, 1, completed=None, user_id=None, now=NOW)
    assert items[0]["completed"] is True
    items = checklist_service.set_checklist_item(items, 1, completed=None, user_id=None, now=NOW)
    assert items[0]["completed"] is False


def test_unknown_checklist_item_is_not_found():
    with pytest.raises(NotFoundError) as exc_info:
        checklist_service.set_checklist_item([], 7, completed=True, user_id=None, now=NOW)
    assert "7" in exc_info.value.detail


def test_subtask_done_stamps_completion():
    subtasks = checklist_service.add_subtask([], "Order trophies", uuid4())
    subtasks = checklist_service.set_subtask_status(subtasks, 1, SubtaskStatus.DONE, now=NOW)
    assert subtasks[0]["status"] == "done"
    assert subtasks[0]["completed_at"] == NOW.isoformat()

    subtasks = checklist_service.set_subtask_status(subtasks, 1, SubtaskStatus.NOT_STARTED, now=NOW)
    assert subtasks[0]["completed_at"] is None


def test_unknown_subtask_is_not_found():
    with pytest.raises(NotFoundError):
        checklist_service.remove_subtask([], 3)


def test_comments_are_appended():
    author = uuid4()
    mention = uuid4()
    comments = checklist_service.add_comment([], author_id=author, content="Hall booked", now=NOW)
    comments = checklist_service.add_comment(
        comments,
        author_id=author,
        content="Please confirm",
        mentions=[mention],
        attachments=[{"filename": "invoice.pdf", "url": "https://files.example.com/invoice.pdf"}],
        now=NOW,
    )
    assert [comment["id"] for comment in comments] == [1, 2]
    assert comments[1]["mentions"] == [str(mention)]
    assert comments[1]["attachments"][0]["filename"] == "invoice.pdf"


def test_blank_comment_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        checklist_service.add_comment([], author_id=uuid4(), content="   ", now=NOW)
    assert exc_info.value.detail["field"] == "content"
