"""Tests for progress calculation."""
from clubhub.services.progress_service import progress_service


def _items(done: int, total: int):
    return [{"id": index + 1, "text": f"Item {index}", "completed": index < done} for index in range(total)]


def _subtasks(done: int, total: int):
    return [
        {"id": index + 1, "title": f"Step {index}", "status": "done" if index < done else "not_started"}
        for index in range(total)
    ]


def test_checklist_drives_progress(make_task):
    """Progress is the rounded share of completed checklist items."""
    task = make_task(checklist=_items(1, 3), progress=80)
    assert progress_service.compute_progress(task) == 33


def test_rounding_is_half_up(make_task):
    """1 of 8 is 12.5% and rounds up to 13."""
    task = make_task(checklist=_items(1, 8))
    assert progress_service.compute_progress(task) == 13


def test_subtasks_drive_progress_when_checklist_empty(make_task):
    task = make_task(subtasks=_subtasks(1, 2))
    assert progress_service.compute_progress(task) == 50


def test_checklist_wins_over_subtasks(make_task):
    task = make_task(checklist=_items(0, 2), subtasks=_subtasks(2, 2))
    assert progress_service.source(task) == "checklist"
    assert progress_service.compute_progress(task) == 0


def test_manual_progress_kept_without_collections(make_task):
    task = make_task(progress=42)
    assert progress_service.source(task) == "manual"
    assert progress_service.compute_progress(task) == 42


def test_empty_collections_report_zero():
    assert progress_service.checklist_progress([]) == 0
    assert progress_service.subtask_progress(None) == 0
