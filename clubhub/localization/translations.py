"""Translation catalogues for user-visible messages."""

TRANSLATIONS = {
    "en": {
        "errors.resource_not_found": "Resource not found",
        "errors.validation_error": "Validation error",
        "errors.resource_conflict": "Resource conflict",
        "errors.task_not_found": "Task {task_id} not found",
        "errors.club_not_found": "Club {club_id} not found",
        "errors.objective_not_found": "Objective {objective_id} not found",
        "errors.goal_not_found": "Goal {goal_id} not found",
        "errors.checklist_item_not_found": "Checklist item {item_id} not found",
        "errors.subtask_not_found": "Subtask {subtask_id} not found",
        "errors.assignee_not_found": "User {user_id} is not assigned to this task",
        "errors.dependency_not_found": "Task has no {relation} dependency on {task_id}",
        "errors.dependency_unresolved": "Task cannot be completed until blocking tasks are completed: {task_ids}",
        "errors.concurrent_modification": "Task {task_id} was modified concurrently; reload it and retry",
        "errors.completed_is_terminal": "Task {task_id} is completed and cannot move to {status}",
        "errors.blocked_reason_required": "blocked_reason is required to block a task",
        "errors.self_dependency": "A task cannot depend on itself",
        "errors.comment_empty": "Comment content is required",
        "errors.goal_mismatch": "goal_id {goal_id} does not match the goal of objective {objective_id}",
        "errors.recurrence_spawn_failed": "Task {task_id} completed but the next occurrence could not be created",
    },
    "ru": {
        "errors.resource_not_found": "Ресурс не найден",
        "errors.validation_error": "Ошибка валидации",
        "errors.resource_conflict": "Конфликт ресурса",
        "errors.task_not_found": "Задача {task_id} не найдена",
        "errors.club_not_found": "Клуб {club_id} не найден",
        "errors.objective_not_found": "Цель {objective_id} не найдена",
        "errors.goal_not_found": "Цель верхнего уровня {goal_id} не найдена",
        "errors.checklist_item_not_found": "Пункт чек-листа {item_id} не найден",
        "errors.subtask_not_found": "Подзадача {subtask_id} не найдена",
        "errors.assignee_not_found": "Пользователь {user_id} не назначен на задачу",
        "errors.dependency_not_found": "У задачи нет зависимости {relation} от {task_id}",
        "errors.dependency_unresolved": "Задачу нельзя завершить, пока не завершены блокирующие задачи: {task_ids}",
        "errors.concurrent_modification": "Задача {task_id} была изменена параллельно; обновите её и повторите",
        "errors.completed_is_terminal": "Задача {task_id} завершена и не может перейти в {status}",
        "errors.blocked_reason_required": "Для блокировки задачи нужна причина blocked_reason",
        "errors.self_dependency": "Задача не может зависеть от самой себя",
        "errors.comment_empty": "Текст комментария обязателен",
        "errors.goal_mismatch": "goal_id {goal_id} не совпадает с целью объектива {objective_id}",
        "errors.recurrence_spawn_failed": "Задача {task_id} завершена, но следующий экземпляр не создан",
    },
}
