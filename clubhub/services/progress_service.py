"""Progress calculation for tasks."""
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, Optional

from clubhub.models.task import SubtaskStatus, Task


def _percentage(done: int, total: int) -> int:
    """Half-up rounded integer percentage; 0 for an empty collection."""
    if total <= 0:
        return 0
    value = Decimal(100 * done) / Decimal(total)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ProgressService:
    """Derives task progress from its checklist, subtasks, or manual value."""

    @staticmethod
    def percentage(done: int, total: int) -> int:
        return _percentage(done, total)

    @staticmethod
    def checklist_progress(items: Optional[Iterable[Dict[str, Any]]]) -> int:
        items = list(items or [])
        done = sum(1 for item in items if item.get("completed"))
        return _percentage(done, len(items))

    @staticmethod
    def subtask_progress(items: Optional[Iterable[Dict[str, Any]]]) -> int:
        items = list(items or [])
        done = sum(1 for item in items if item.get("status") == SubtaskStatus.DONE.value)
        return _percentage(done, len(items))

    @staticmethod
    def source(task: Task) -> str:
        """Which collection drives progress: checklist, subtasks or manual."""
        if task.checklist:
            return "checklist"
        if task.subtasks:
            return "subtasks"
        return "manual"

    @staticmethod
    def compute_progress(task: Task) -> int:
        """Compute progress in [0, 100].

        A non-empty checklist wins over subtasks; with neither, the current
        manually set progress is kept.
        """
        source = ProgressService.source(task)
        if source == "checklist":
            return ProgressService.checklist_progress(task.checklist)
        if source == "subtasks":
            return ProgressService.subtask_progress(task.subtasks)
        return max(0, min(100, int(task.progress or 0)))


progress_service = ProgressService()
