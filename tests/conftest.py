from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from taskdeck.api import create_app
from taskdeck.client import ApiError
from taskdeck.config import TaskDeckConfig
from taskdeck.db import dispose_engines, init_db


@pytest.fixture(autouse=True)
def _fresh_engines():
    yield
    dispose_engines()


@pytest.fixture()
def cfg(tmp_path: Path) -> TaskDeckConfig:
    """Config pointing at a throwaway SQLite file."""
    config = TaskDeckConfig(
        database_url=f"sqlite:///{(tmp_path / 'taskdeck.db').as_posix()}",
        jwt_secret="test-secret",
    )
    init_db(config.database_url)
    return config


@pytest.fixture()
def api(cfg: TaskDeckConfig) -> TestClient:
    return TestClient(create_app(cfg))


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def signup(api: TestClient):
    """Register a user through the API and return their auth headers."""

    def _signup(name: str = "Ada", email: str = "ada@example.com", password: str = "s3cret") -> Dict[str, str]:
        resp = api.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, resp.text
        return bearer(resp.json()["token"])

    return _signup


class FakeApiClient:
    """
    In-memory stand-in for TaskDeckClient.

    Accepts one account and one token; enough for session-controller and
    task-board tests without an HTTP server.
    """

    def __init__(self, token: Optional[str] = None, *, valid_token: str = "good-token") -> None:
        self.token = token
        self.valid_token = valid_token
        self.user = {"id": "u1", "name": "Ada", "email": "ada@example.com"}
        self.tasks: List[Dict[str, Any]] = []
        self.calls: List[str] = []

    def login(self, email: str, password: str):
        self.calls.append("login")
        if email != self.user["email"] or password != "s3cret":
            raise ApiError("Invalid email or password", 401)
        return dict(self.user), self.valid_token

    def register(self, name: str, email: str, password: str):
        self.calls.append("register")
        return {"id": "u2", "name": name, "email": email.strip().lower()}, self.valid_token

    def me(self):
        self.calls.append("me")
        if self.token != self.valid_token:
            raise ApiError("Invalid token", 401)
        return dict(self.user)

    def list_tasks(self):
        return [dict(t) for t in self.tasks]

    def create_task(self, title: str, **fields: Any):
        task = {
            "id": f"t{len(self.tasks) + 1}",
            "title": title,
            "description": fields.get("description"),
            "dueDate": fields.get("due_date"),
            "priority": fields.get("priority", "medium"),
            "completed": False,
            "createdAt": "2026-10-18T09:00:00Z",
        }
        self.tasks.insert(0, task)
        return dict(task)

    def _find(self, task_id: str) -> Dict[str, Any]:
        for t in self.tasks:
            if t["id"] == task_id:
                return t
        raise ApiError("Task not found", 404)

    def update_task(self, task_id: str, changes: Dict[str, Any]):
        t = self._find(task_id)
        for key, value in changes.items():
            t[key] = (value or None) if key == "dueDate" else value
        return dict(t)

    def toggle_task(self, task_id: str):
        t = self._find(task_id)
        t["completed"] = not t["completed"]
        return dict(t)

    def delete_task(self, task_id: str):
        self.tasks.remove(self._find(task_id))


@pytest.fixture()
def fake_api() -> FakeApiClient:
    return FakeApiClient()


@pytest.fixture()
def fake_client_factory():
    """Stand-in for the UI's client factory: one fake client per token."""
    made: List[Optional[str]] = []

    def _factory(token: Optional[str]) -> FakeApiClient:
        made.append(token)
        return FakeApiClient(token)

    _factory.made = made
    return _factory
