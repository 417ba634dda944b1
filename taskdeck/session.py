"""Client session controller and the client-held task list.

The controller owns the token, the cached user profile and the theme, and
decides which view may render. It persists through a ``KeyValueStore`` so
the same logic runs against a plain dict in tests and against Streamlit's
``session_state`` in the UI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, MutableMapping, Optional, Protocol, Tuple

from .client import ApiError

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "auth_user"
THEME_KEY = "theme"

LIGHT = "light"
DARK = "dark"

LOGIN_VIEW = "login"
VIEWS = ("tasks", "calendar", "dashboard")
DEFAULT_VIEW = "tasks"


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MappingStore:
    """KeyValueStore over any mutable mapping (a dict, ``st.session_state``)."""

    def __init__(self, mapping: Optional[MutableMapping[str, Any]] = None) -> None:
        self._data = mapping if mapping is not None else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data[key] if key in self._data else default

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]


@dataclass(frozen=True)
class SessionContext:
    token: Optional[str]
    user: Optional[Dict[str, Any]]
    theme: str = LIGHT

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)


class SessionController:
    def __init__(self, store: KeyValueStore, client_factory: Callable[[Optional[str]], Any]) -> None:
        self.store = store
        self.client_factory = client_factory

    @property
    def context(self) -> SessionContext:
        theme = self.store.get(THEME_KEY)
        return SessionContext(
            token=self.store.get(TOKEN_KEY),
            user=self.store.get(USER_KEY),
            theme=theme if theme in (LIGHT, DARK) else LIGHT,
        )

    def client(self):
        return self.client_factory(self.store.get(TOKEN_KEY))

    def _save_auth(self, user: Mapping[str, Any], token: str) -> SessionContext:
        self.store.set(TOKEN_KEY, token)
        self.store.set(USER_KEY, dict(user))
        return self.context

    def restore(self) -> SessionContext:
        """Re-validate a stored token against ``/auth/me``; drop it if rejected."""
        token = self.store.get(TOKEN_KEY)
        if not token:
            return self.context
        try:
            profile = self.client_factory(token).me()
        except ApiError as exc:
            logger.info("stored session rejected: %s", exc.message)
            self.logout()
            return self.context
        self.store.set(USER_KEY, dict(profile))
        return self.context

    def login(self, email: str, password: str) -> SessionContext:
        user, token = self.client_factory(None).login(email, password)
        return self._save_auth(user, token)

    def register(self, name: str, email: str, password: str) -> SessionContext:
        user, token = self.client_factory(None).register(name, email, password)
        return self._save_auth(user, token)

    def logout(self) -> SessionContext:
        self.store.delete(TOKEN_KEY)
        self.store.delete(USER_KEY)
        return self.context

    def toggle_theme(self) -> str:
        theme = DARK if self.context.theme == LIGHT else LIGHT
        self.store.set(THEME_KEY, theme)
        return theme

    def resolve_view(self, requested: Optional[str]) -> str:
        """Login screen until authenticated; unknown views fall back to the task list."""
        if not self.context.is_authenticated:
            return LOGIN_VIEW
        return requested if requested in VIEWS else DEFAULT_VIEW


class TaskBoard:
    """The one in-memory task list of a session.

    Each mutation goes through the API first and then swaps in a new tuple
    built from the server's answer. Readers get that tuple, so views and
    analytics always work on an immutable snapshot.
    """

    def __init__(self, client: Any) -> None:
        self.client = client
        self._tasks: Tuple[Dict[str, Any], ...] = ()
        self.loaded = False

    @property
    def tasks(self) -> Tuple[Dict[str, Any], ...]:
        return self._tasks

    def refresh(self) -> Tuple[Dict[str, Any], ...]:
        self._tasks = tuple(self.client.list_tasks())
        self.loaded = True
        return self._tasks

    def create(self, title: str, **fields: Any) -> Dict[str, Any]:
        task = self.client.create_task(title, **fields)
        # Newest first, like the store's listing order.
        self._tasks = (task,) + self._tasks
        return task

    def _replace(self, task: Dict[str, Any]) -> Dict[str, Any]:
        self._tasks = tuple(task if t.get("id") == task.get("id") else t for t in self._tasks)
        return task

    def update(self, task_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        return self._replace(self.client.update_task(task_id, dict(changes)))

    def toggle(self, task_id: str) -> Dict[str, Any]:
        return self._replace(self.client.toggle_task(task_id))

    def delete(self, task_id: str) -> None:
        self.client.delete_task(task_id)
        self._tasks = tuple(t for t in self._tasks if t.get("id") != task_id)

    def find(self, task_id: str) -> Optional[Dict[str, Any]]:
        for t in self._tasks:
            if t.get("id") == task_id:
                return t
        return None


def task_form_changes(original: Mapping[str, Any], form: Mapping[str, Any]) -> Dict[str, Any]:
    """Fields of an edit form that differ from the task, in wire form.

    A cleared due date becomes ``dueDate: ""`` so the server clears it.
    """
    changes: Dict[str, Any] = {}
    for key in ("title", "description", "priority"):
        if key in form and (form[key] or None) != (original.get(key) or None):
            changes[key] = form[key]
    if "dueDate" in form:
        new_due = form["dueDate"] or ""
        if new_due != (original.get("dueDate") or ""):
            changes["dueDate"] = new_due
    return changes
