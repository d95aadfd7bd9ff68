"""Reminder tasks created from application events."""

import logging
from datetime import date, timedelta
from typing import Iterable, Optional

from .dates import parse_ymd
from .models import UNRESOLVED, Application, PersonalTask
from .storage import Repository

logger = logging.getLogger(__name__)

DEADLINE_LEAD_DAYS = 2
FOLLOW_UP_DAYS = 7


class TaskNotFoundError(KeyError):
    """No task with the given id or id prefix."""


def _company(app: Application) -> str:
    if not app.company or app.company == UNRESOLVED:
        return "Entreprise"
    return app.company


def deadline_task(app: Application) -> Optional[PersonalTask]:
    """``Postuler <company>`` due two days before the deadline; None without one."""
    if not app.deadline or app.deadline_missing:
        return None
    deadline = parse_ymd(app.deadline)
    if deadline is None:
        return None
    return PersonalTask(
        title=f"Postuler {_company(app)}",
        description=f"Deadline: {deadline:%d/%m/%Y} - Poste: {app.title}",
        deadline=(deadline - timedelta(days=DEADLINE_LEAD_DAYS)).isoformat(),
        url=app.url,
    )


def follow_up_task(app: Application, today: Optional[date] = None) -> PersonalTask:
    """``Relance <company>`` due a week after the application was sent."""
    today = today or date.today()
    return PersonalTask(
        title=f"Relance {_company(app)}",
        description=f"Candidature envoyée le {today:%d/%m/%Y} - Poste: {app.title}",
        deadline=(today + timedelta(days=FOLLOW_UP_DAYS)).isoformat(),
        url=app.url,
    )


def task_exists(tasks: Iterable[PersonalTask], title: str) -> bool:
    lowered = title.lower()
    return any(task.title.lower() == lowered for task in tasks)


def add_task(repo: Repository, task: Optional[PersonalTask]) -> bool:
    """Store ``task`` unless a task with the same title exists."""
    if task is None:
        return False
    if task_exists(repo.list_tasks(), task.title):
        logger.debug(f"Task already exists: {task.title}")
        return False
    repo.save_task(task)
    logger.info(f"Created task: {task.title} (due {task.deadline})")
    return True


def open_tasks(repo: Repository) -> list[PersonalTask]:
    """Tasks not done yet, earliest due first; undated tasks last."""
    pending = [task for task in repo.list_tasks() if not task.done]
    return sorted(pending, key=lambda task: (task.deadline is None, task.deadline or ""))


def complete_task(repo: Repository, task_id: str) -> PersonalTask:
    """Mark the task whose id starts with ``task_id`` as done."""
    matches = [task for task in repo.list_tasks() if task.id.startswith(task_id)]
    if len(matches) != 1:
        raise TaskNotFoundError(task_id)
    task = matches[0].model_copy(update={"done": True})
    repo.save_task(task)
    return task
