"""Tests for the assignment ledger."""
from datetime import datetime
from uuid import uuid4

import pytest

from clubhub.core.exceptions import NotFoundError
from clubhub.models.task import AssigneeRole
from clubhub.services.assignment_service import assignment_service


def test_reassigning_updates_entry_in_place(make_task):
    """Assigning the same user twice leaves one entry with the latest role."""
    task = make_task()
    user_id = uuid4()
    lead = uuid4()

    assignment_service.assign(task, user_id, AssigneeRole.CONTRIBUTOR, now=datetime(2024, 1, 1))
    assignment_service.assign(task, user_id, AssigneeRole.REVIEWER, assigned_by=lead, now=datetime(2024, 1, 2))

    assert len(task.assignees) == 1
    entry = task.assignees[0]
    assert entry["role"] == "reviewer"
    assert entry["assigned_by"] == str(lead)
    assert entry["assigned_at"] == datetime(2024, 1, 2).isoformat()


def test_new_users_are_appended_in_order(make_task):
    task = make_task()
    first, second = uuid4(), uuid4()
    assignment_service.assign(task, first)
    assignment_service.assign(task, second)
    assert [entry["user_id"] for entry in task.assignees] == [str(first), str(second)]


def test_primary_assignee_prefers_owner(make_task):
    task = make_task()
    contributor, owner = uuid4(), uuid4()
    assignment_service.assign(task, contributor)
    assignment_service.assign(task, owner, AssigneeRole.OWNER)
    assert assignment_service.primary_assignee(task) == owner


def test_primary_assignee_falls_back_to_first(make_task):
    task = make_task()
    first = uuid4()
    assignment_service.assign(task, first, AssigneeRole.REVIEWER)
    assignment_service.assign(task, uuid4())
    assert assignment_service.primary_assignee(task) == first


def test_primary_assignee_none_without_assignees(make_task):
    assert assignment_service.primary_assignee(make_task()) is None


def test_unassign_removes_single_entry(make_task):
    task = make_task()
    user_id = uuid4()
    assignment_service.assign(task, user_id)
    assignment_service.unassign(task, user_id)
    assert task.assignees == []

    with pytest.raises(NotFoundError):
        assignment_service.unassign(task, user_id)
