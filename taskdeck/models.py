"""Relational models for users and their tasks."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import declarative_base


Base = declarative_base()

PRIORITIES = ("low", "medium", "high")
DEFAULT_PRIORITY = "medium"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _generate_id() -> str:
    return str(uuid.uuid4())


def format_due_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_generate_id)
    name = Column(Text, nullable=False)
    email = Column(String(320), unique=True, nullable=False)  # normalized: trimmed + lowercase
    password = Column(String(255), nullable=False)  # one-way hash, never serialized
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def to_public(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email}


class Task(Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=_generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=True)
    priority = Column(String(16), default=DEFAULT_PRIORITY, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_tasks_user_created", "user_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Wire form used by the REST API and the client views."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "dueDate": format_due_date(self.due_date),
            "priority": self.priority,
            "completed": bool(self.completed),
            "createdAt": self.created_at.isoformat() + "Z" if self.created_at else None,
        }
