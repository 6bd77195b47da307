"""
In-memory task list.

Every mutation is a pure function (current tasks, arguments) -> new tasks.
Unknown ids and blank text are silent no-ops; nothing here raises for them.
TaskStore owns the current tuple and applies the functions to it.
"""
import logging
from typing import Iterable, Optional, Sequence, Tuple

from models import GeneratedTask, Subtask, Task

logger = logging.getLogger(__name__)

Tasks = Tuple[Task, ...]


def find_task(tasks: Sequence[Task], task_id: str) -> Optional[Task]:
    for task in tasks:
        if task.id == task_id:
            return task
    return None


def add_task(tasks: Sequence[Task], text: str) -> Tasks:
    """Insert a new task at the head, unless text is blank"""
    text = text.strip()
    if not text:
        return tuple(tasks)
    return (Task(text=text),) + tuple(tasks)


def delete_task(tasks: Sequence[Task], task_id: str) -> Tasks:
    return tuple(task for task in tasks if task.id != task_id)


def toggle_task(tasks: Sequence[Task], task_id: str) -> Tasks:
    return tuple(
        task.model_copy(update={"completed": not task.completed})
        if task.id == task_id else task
        for task in tasks
    )


def add_subtask(tasks: Sequence[Task], task_id: str, text: str) -> Tasks:
    """Append a subtask to the end of the matching task's subtasks"""
    text = text.strip()
    if not text:
        return tuple(tasks)

    def _append(task: Task) -> Task:
        return task.model_copy(update={"subtasks": task.subtasks + (Subtask(text=text),)})

    return tuple(_append(task) if task.id == task_id else task for task in tasks)


def toggle_subtask(tasks: Sequence[Task], task_id: str, subtask_id: str) -> Tasks:
    def _toggle(task: Task) -> Task:
        subtasks = tuple(
            sub.model_copy(update={"completed": not sub.completed})
            if sub.id == subtask_id else sub
            for sub in task.subtasks
        )
        return task.model_copy(update={"subtasks": subtasks})

    return tuple(_toggle(task) if task.id == task_id else task for task in tasks)


def bulk_prepend(tasks: Sequence[Task], new_tasks: Iterable[Task]) -> Tasks:
    """First element of new_tasks ends up topmost"""
    return tuple(new_tasks) + tuple(tasks)


def tasks_from_generated(candidates: Iterable[GeneratedTask]) -> Tasks:
    """Build fresh Task entities from validated gateway output"""
    return tuple(
        Task(text=candidate.task, subtasks=tuple(Subtask(text=sub) for sub in candidate.subtasks))
        for candidate in candidates
    )


class TaskStore:
    """Single owner of the session task list"""

    def __init__(self, tasks: Iterable[Task] = ()):
        self._tasks: Tasks = tuple(tasks)

    @property
    def tasks(self) -> Tasks:
        return self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, task_id: str) -> Optional[Task]:
        return find_task(self._tasks, task_id)

    def _apply(self, name: str, new_tasks: Tasks) -> Tasks:
        logger.debug("%s: %d -> %d tasks", name, len(self._tasks), len(new_tasks))
        self._tasks = new_tasks
        return new_tasks

    def add_task(self, text: str) -> Tasks:
        return self._apply("add_task", add_task(self._tasks, text))

    def delete_task(self, task_id: str) -> Tasks:
        return self._apply("delete_task", delete_task(self._tasks, task_id))

    def toggle_task(self, task_id: str) -> Tasks:
        return self._apply("toggle_task", toggle_task(self._tasks, task_id))

    def add_subtask(self, task_id: str, text: str) -> Tasks:
        return self._apply("add_subtask", add_subtask(self._tasks, task_id, text))

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Tasks:
        return self._apply("toggle_subtask", toggle_subtask(self._tasks, task_id, subtask_id))

    def bulk_prepend(self, new_tasks: Iterable[Task]) -> Tasks:
        return self._apply("bulk_prepend", bulk_prepend(self._tasks, new_tasks))

