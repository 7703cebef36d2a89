"""Tests for analytics aggregation."""
import uuid
from datetime import date, datetime, timedelta

import pytest

from clubhub.config import settings
from clubhub.core.exceptions import NotFoundError
from clubhub.models.activity import ActivityLog
from clubhub.models.club import Club, ClubStatus
from clubhub.models.goal import Goal, Objective
from clubhub.models.task import Task, TaskStatus
from clubhub.models.user import User
from clubhub.schemas.task import TaskFilter
from clubhub.services.analytics_service import ProgressRollup, TaskReducer, analytics_service

WINDOW_END = date(2024, 3, 31)


def _task(
    club_id,
    objective_id,
    *,
    completed=False,
    created_at=None,
    completed_at=None,
    assignees=(),
    goal_id=None,
    status=None,
):
    created_at = created_at or datetime(2024, 3, 10, 10, 0)
    if status is None:
        status = TaskStatus.COMPLETED.value if completed else TaskStatus.IN_PROGRESS.value
    return Task(
        id=uuid.uuid4(),
        title="Task",
        club_id=club_id,
        objective_id=objective_id,
        goal_id=goal_id,
        status=status,
        priority="medium",
        progress=100 if completed else 10,
        start_date=created_at,
        due_date=created_at + timedelta(days=5),
        assignees=[
            {"user_id": str(user_id), "role": "contributor", "assigned_at": created_at.isoformat(), "assigned_by": None}
            for user_id in assignees
        ],
        checklist=[],
        subtasks=[],
        dependencies=[],
        comments=[],
        tags=[],
        completed_at=(completed_at or created_at + timedelta(days=1)) if completed else None,
        created_at=created_at,
        updated_at=created_at,
    )


@pytest.mark.asyncio
async def test_empty_population_reports_zeroes(db_session):
    """No data never faults: rates are 0 and every series point is 0."""
    report = await analytics_service.aggregate(db_session, window_days=7, window_end=WINDOW_END)

    assert report.total_tasks == 0
    assert report.task_completion_rate == 0
    assert report.average_tasks_per_user == 0
    assert report.top_performing_clubs == []
    assert len(report.user_growth) == 7
    assert all(point.count == 0 for point in report.user_growth + report.club_growth)
    assert all(point.active_users == 0 for point in report.user_engagement_metrics)
    assert report.partial is False


@pytest.mark.asyncio
async def test_completion_rate_for_club(db_session, test_club, test_objective):
    """10 tasks with 6 completed give a 60% completion rate."""
    tasks = [_task(test_club.id, test_objective.id, completed=index < 6) for index in range(10)]
    other_club = Club(id=uuid.uuid4(), name="Drama Club", status=ClubStatus.APPROVED.value, members=[])
    tasks.append(_task(other_club.id, test_objective.id))
    db_session.add(other_club)
    db_session.add_all(tasks)
    await db_session.commit()

    report = await analytics_service.aggregate(
        db_session, TaskFilter(club_id=test_club.id), window_days=30, window_end=WINDOW_END
    )

    assert report.total_tasks == 10
    assert report.completed_tasks == 6
    assert report.task_completion_rate == 60.0


@pytest.mark.asyncio
async def test_average_tasks_per_user(db_session, test_club, test_objective):
    first, second = uuid.uuid4(), uuid.uuid4()
    db_session.add_all(
        [
            _task(test_club.id, test_objective.id, assignees=[first, second]),
            _task(test_club.id, test_objective.id, assignees=[first]),
            _task(test_club.id, test_objective.id),
        ]
    )
    await db_session.commit()

    report = await analytics_service.aggregate(db_session, window_days=30, window_end=WINDOW_END)
    assert report.average_tasks_per_user == 1.5


@pytest.mark.asyncio
async def test_top_clubs_ranking(db_session, test_club, test_objective):
    """Approved clubs only, by completions in the window, ties broken by name."""
    alpha = Club(id=uuid.uuid4(), name="Alpha Club", status=ClubStatus.APPROVED.value, members=[])
    zulu = Club(id=uuid.uuid4(), name="Zulu Club", status=ClubStatus.APPROVED.value, members=[])
    pending = Club(id=uuid.uuid4(), name="Pending Club", status=ClubStatus.PENDING.value, members=[])
    db_session.add_all([alpha, zulu, pending])

    tasks = []
    for club, count in ((test_club, 2), (alpha, 1), (zulu, 1), (pending, 5)):
        tasks += [_task(club.id, test_objective.id, completed=True) for _ in range(count)]
    tasks.append(
        _task(alpha.id, test_objective.id, completed=True, completed_at=datetime(2023, 12, 1))
    )
    db_session.add_all(tasks)
    await db_session.commit()

    report = await analytics_service.aggregate(db_session, window_days=30, window_end=WINDOW_END)

    assert [(entry.name, entry.tasks_completed) for entry in report.top_performing_clubs] == [
        ("Chess Club", 2),
        ("Alpha Club", 1),
        ("Zulu Club", 1),
    ]
    assert report.top_performing_clubs[0].member_count == 1


@pytest.mark.asyncio
async def test_growth_and_engagement_series(db_session, test_club, test_objective):
    day = datetime(2024, 3, 30, 15, 0)
    newcomer = User(id=uuid.uuid4(), email="new@example.com", full_name="Newcomer", created_at=day)
    db_session.add(newcomer)
    db_session.add(Club(id=uuid.uuid4(), name="Go Club", status=ClubStatus.PENDING.value, created_at=day))
    db_session.add(_task(test_club.id, test_objective.id, created_at=day))
    db_session.add_all(
        [
            ActivityLog(actor_id=newcomer.id, entity="task", action="task.created", timestamp=day),
            ActivityLog(actor_id=newcomer.id, entity="task", action="checklist.toggled", timestamp=day),
        ]
    )
    await db_session.commit()

    report = await analytics_service.aggregate(db_session, window_days=3, window_end=WINDOW_END)

    assert [point.date for point in report.user_growth] == [date(2024, 3, 29), date(2024, 3, 30), date(2024, 3, 31)]
    assert [point.count for point in report.user_growth] == [0, 1, 0]
    assert [point.count for point in report.club_growth] == [0, 1, 0]
    engagement = report.user_engagement_metrics[1]
    assert engagement.active_users == 1
    assert engagement.new_registrations == 1
    assert engagement.task_creations == 1


@pytest.mark.asyncio
async def test_exhausted_budget_returns_partial_report(db_session, test_club, test_objective):
    db_session.add_all([_task(test_club.id, test_objective.id) for _ in range(3)])
    await db_session.commit()

    report = await analytics_service.aggregate(db_session, window_days=7, window_end=WINDOW_END, timeout=0)

    assert report.partial is True


def test_reducers_merge_across_partitions():
    club_a, club_b, objective = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    user = uuid.uuid4()
    left = TaskReducer(window_start=date(2024, 3, 1), window_end=WINDOW_END)
    right = TaskReducer(window_start=date(2024, 3, 1), window_end=WINDOW_END)
    left.add(_task(club_a, objective, completed=True, assignees=[user]))
    right.add(_task(club_b, objective, assignees=[user]))
    right.add(_task(club_b, objective, completed=True))

    merged = left.merge(right)

    assert merged.total == 3
    assert merged.completed == 2
    assert merged.completion_rate == 66.7
    assert merged.average_tasks_per_user == 2.0
    assert merged.completions_by_club == {club_a: 1, club_b: 1}


def test_task_insights(make_task):
    task = make_task(
        checklist=[
            {"id": 1, "text": "One", "completed": True, "completed_at": "2024-03-01T10:00:00"},
            {"id": 2, "text": "Two", "completed": False},
        ],
        comments=[{"id": 1, "author_id": str(uuid.uuid4()), "content": "Hi", "created_at": "2024-03-02T09:00:00"}],
        updated_at=datetime(2024, 2, 1),
        due_date=datetime(2024, 2, 15),
    )

    insights = analytics_service.task_insights(task, now=datetime(2024, 3, 5))

    assert insights["overview"]["is_overdue"] is True
    assert insights["completion"]["checklist_percentage"] == 50.0
    assert insights["completion"]["subtasks_total"] == 0
    assert insights["engagement"]["comment_count"] == 1
    assert insights["engagement"]["last_activity"] == datetime(2024, 3, 2, 9, 0)


@pytest.mark.asyncio
async def test_overdue_tasks(db_session, test_club, test_objective):
    late = _task(test_club.id, test_objective.id, created_at=datetime(2024, 1, 1))
    done = _task(test_club.id, test_objective.id, completed=True, created_at=datetime(2024, 1, 1))
    db_session.add_all([late, done])
    await db_session.commit()

    overdue = await analytics_service.overdue_tasks(db_session, club_id=test_club.id, now=datetime(2024, 2, 1))
    assert [task.id for task in overdue] == [late.id]


@pytest.mark.asyncio
async def test_goal_rollup_counts_tasks_per_objective(db_session, test_club, test_objective):
    """Goal progress is the rounded completed share of its tasks; empty objectives report 0."""
    goal_id = test_objective.goal_id
    recruiting = Objective(id=uuid.uuid4(), goal_id=goal_id, club_id=test_club.id, title="Recruit members")
    roster = Objective(id=uuid.uuid4(), goal_id=goal_id, club_id=test_club.id, title="Build a roster")
    other_goal = Goal(id=uuid.uuid4(), club_id=test_club.id, title="Host a tournament")
    other_objective = Objective(
        id=uuid.uuid4(), goal_id=other_goal.id, club_id=test_club.id, title="Book a venue"
    )
    db_session.add_all([recruiting, roster, other_goal, other_objective])
    db_session.add_all(
        [
            _task(test_club.id, test_objective.id, goal_id=goal_id, completed=True),
            _task(test_club.id, test_objective.id, goal_id=goal_id, completed=True),
            _task(test_club.id, test_objective.id, goal_id=goal_id),
            _task(test_club.id, recruiting.id, goal_id=goal_id, status=TaskStatus.BLOCKED.value),
            _task(test_club.id, other_objective.id, goal_id=other_goal.id, completed=True),
        ]
    )
    await db_session.commit()

    rollup = await analytics_service.goal_rollup(db_session, goal_id)

    assert rollup.goal.title == "Win the regional league"
    assert (rollup.goal.task_count, rollup.goal.completed_tasks, rollup.goal.blocked_tasks) == (4, 2, 1)
    assert rollup.goal.calculated_progress == 50
    assert [item.title for item in rollup.objectives] == [
        "Build a roster",
        "Recruit members",
        "Train twice a week",
    ]
    assert [item.task_count for item in rollup.objectives] == [0, 1, 3]
    assert [item.calculated_progress for item in rollup.objectives] == [0, 0, 67]


@pytest.mark.asyncio
async def test_objective_rollup(db_session, test_club, test_objective):
    db_session.add_all(
        [
            _task(test_club.id, test_objective.id, goal_id=test_objective.goal_id, completed=True),
            _task(test_club.id, test_objective.id, goal_id=test_objective.goal_id),
        ]
    )
    await db_session.commit()

    rollup = await analytics_service.objective_rollup(db_session, test_objective.id)

    assert rollup.entity_id == test_objective.id
    assert (rollup.task_count, rollup.completed_tasks) == (2, 1)
    assert rollup.calculated_progress == 50


@pytest.mark.asyncio
async def test_rollup_of_unknown_goal_raises(db_session):
    with pytest.raises(NotFoundError):
        await analytics_service.goal_rollup(db_session, uuid.uuid4())
    with pytest.raises(NotFoundError):
        await analytics_service.objective_rollup(db_session, uuid.uuid4())


def test_progress_rollup_merge():
    entity_id = uuid.uuid4()
    first = ProgressRollup(entity_id=entity_id, title="Goal", task_count=2, completed_tasks=1)
    second = ProgressRollup(entity_id=entity_id, title="Goal", task_count=1, completed_tasks=1, blocked_tasks=0)

    merged = first.merge(second)

    assert (merged.task_count, merged.completed_tasks) == (3, 2)
    assert merged.calculated_progress == 67
    assert ProgressRollup(entity_id=entity_id, title="Empty").calculated_progress == 0


@pytest.mark.asyncio
async def test_growth_pages_through_rows_sharing_a_timestamp(db_session, monkeypatch):
    """Rows created in the same instant are each counted once across page boundaries."""
    monkeypatch.setattr(settings, "ANALYTICS_PAGE_SIZE", 2)
    created_at = datetime(2024, 3, 30, 12, 0)
    db_session.add_all(
        [
            User(id=uuid.uuid4(), email=f"batch{index}@example.com", full_name="Batch", created_at=created_at)
            for index in range(5)
        ]
    )
    await db_session.commit()

    report = await analytics_service.aggregate(db_session, window_days=7, window_end=WINDOW_END)

    counts = {point.date: point.count for point in report.user_growth}
    assert counts[date(2024, 3, 30)] == 5
    assert sum(counts.values()) == 5
