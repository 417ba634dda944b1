"""Owner-scoped task repository using SQLAlchemy.

Every function takes the owner id from the verified token and uses it as an
equality filter in the statement itself. A task that exists but belongs to
someone else is indistinguishable from a missing one (NotFoundError).

Tasks are returned in their wire form (see ``Task.to_dict``).
"""
from __future__ import annotations

import contextlib
import logging
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy import delete, not_, select, update
from sqlalchemy.exc import SQLAlchemyError

from .db import get_session
from .errors import InternalError, NotFoundError, ValidationError
from .models import DEFAULT_PRIORITY, PRIORITIES, Task

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found"


@contextlib.contextmanager
def _store_errors(message: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("%s", message)
        raise InternalError(message) from exc


def parse_due_date(value: Any) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` due date; empty input means no date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip().split("T", 1)[0]
        if len(text) == 10:
            try:
                return date.fromisoformat(text)
            except ValueError:
                pass
    raise ValidationError("Due date must be a YYYY-MM-DD date")


def _clean_priority(value: Any) -> str:
    if value is None or value == "":
        return DEFAULT_PRIORITY
    priority = str(value).strip().lower()
    if priority not in PRIORITIES:
        raise ValidationError("Priority must be one of: " + ", ".join(PRIORITIES))
    return priority


def _clean_title(value: Any) -> str:
    title = value.strip() if isinstance(value, str) else ""
    if not title:
        raise ValidationError("Title is required")
    return title


def _clean_description(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def list_tasks(database_url: str, owner_id: str) -> List[Dict[str, Any]]:
    """All tasks owned by ``owner_id``, newest first."""
    with _store_errors("Failed to load tasks"), get_session(database_url) as s:
        rows = s.execute(
            select(Task)
            .where(Task.user_id == owner_id)
            .order_by(Task.created_at.desc())
        ).scalars().all()
        return [t.to_dict() for t in rows]


def get_task(database_url: str, owner_id: str, task_id: str) -> Dict[str, Any]:
    with _store_errors("Failed to load task"), get_session(database_url) as s:
        t = s.execute(
            select(Task).where(Task.id == task_id, Task.user_id == owner_id)
        ).scalar_one_or_none()
        if t is None:
            raise NotFoundError(TASK_NOT_FOUND)
        return t.to_dict()


def create_task(
    database_url: str,
    owner_id: str,
    *,
    title: Any,
    description: Any = None,
    due_date: Any = None,
    priority: Any = None,
    created_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    t = Task(
        user_id=owner_id,
        title=_clean_title(title),
        description=_clean_description(description),
        due_date=parse_due_date(due_date),
        priority=_clean_priority(priority),
        completed=False,
    )
    if created_at is not None:
        t.created_at = created_at

    with _store_errors("Failed to create task"), get_session(database_url) as s:
        s.add(t)
        s.commit()
        logger.debug("created task %s for %s", t.id, owner_id)
        return t.to_dict()


def _changes_to_values(changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate a partial wire-form update into column values.

    Only keys present in ``changes`` are touched. A present-but-empty
    ``dueDate`` clears the date; an absent one keeps it.
    """
    values: Dict[str, Any] = {}
    if "title" in changes:
        values["title"] = _clean_title(changes["title"])
    if "description" in changes:
        values["description"] = _clean_description(changes["description"])
    if "dueDate" in changes:
        values["due_date"] = parse_due_date(changes["dueDate"])
    if "priority" in changes:
        if changes["priority"] is None:
            raise ValidationError("Priority must be one of: " + ", ".join(PRIORITIES))
        values["priority"] = _clean_priority(changes["priority"])
    if "completed" in changes:
        if not isinstance(changes["completed"], bool):
            raise ValidationError("Completed must be true or false")
        values["completed"] = changes["completed"]
    return values


def update_task(
    database_url: str,
    owner_id: str,
    task_id: str,
    changes: Mapping[str, Any],
) -> Dict[str, Any]:
    values = _changes_to_values(changes)

    if values:
        with _store_errors("Failed to update task"), get_session(database_url) as s:
            res = s.execute(
                update(Task)
                .where(Task.id == task_id, Task.user_id == owner_id)
                .values(**values)
            )
            if res.rowcount == 0:
                s.rollback()
                raise NotFoundError(TASK_NOT_FOUND)
            s.commit()
    return get_task(database_url, owner_id, task_id)


def toggle_task(database_url: str, owner_id: str, task_id: str) -> Dict[str, Any]:
    """Flip ``completed`` in place; the store does the negation, not the caller."""
    with _store_errors("Failed to toggle task"), get_session(database_url) as s:
        res = s.execute(
            update(Task)
            .where(Task.id == task_id, Task.user_id == owner_id)
            .values(completed=not_(Task.completed))
        )
        if res.rowcount == 0:
            s.rollback()
            raise NotFoundError(TASK_NOT_FOUND)
        s.commit()
    return get_task(database_url, owner_id, task_id)


def delete_task(database_url: str, owner_id: str, task_id: str) -> None:
    with _store_errors("Failed to delete task"), get_session(database_url) as s:
        res = s.execute(
            delete(Task).where(Task.id == task_id, Task.user_id == owner_id)
        )
        if res.rowcount == 0:
            s.rollback()
            raise NotFoundError(TASK_NOT_FOUND)
        s.commit()
        logger.debug("deleted task %s for %s", task_id, owner_id)
