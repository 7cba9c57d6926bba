from .task import Task, TaskStatus, check_task_constraints

__all__ = [
    "Task",
    "TaskStatus",
    "check_task_constraints",
]
