from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import requests


class ApiError(Exception):
    """Raised for any non-2xx answer; ``message`` is the server's text."""

    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)


class TaskDeckClient:
    """Thin client for the TaskDeck REST API.

    ``base_url`` includes the ``/api`` prefix. Protected calls send
    ``Authorization: Bearer <token>`` using ``self.token``.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: Optional[str] = None,
        timeout_seconds: int = 15,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.token = token
        self.timeout_seconds = int(timeout_seconds)
        self._session = session or requests.Session()

    def _headers(self, *, auth: bool) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if auth:
            if not self.token:
                raise ApiError("Unauthorized", 401)
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, *, json_body: Any = None, auth: bool = True) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.request(
                method,
                url,
                json=json_body,
                headers=self._headers(auth=auth),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise ApiError(f"Could not reach the server: {exc}") from exc

        if resp.status_code == 204 or not resp.content:
            data: Any = {}
        else:
            try:
                data = resp.json()
            except ValueError:
                data = {}

        if resp.status_code >= 400:
            message = data.get("message") if isinstance(data, dict) else None
            raise ApiError(message or "Request failed", resp.status_code)
        return data

    # Auth

    def register(self, name: str, email: str, password: str) -> Tuple[Dict[str, Any], str]:
        data = self._request(
            "POST", "/auth/register",
            json_body={"name": name, "email": email, "password": password},
            auth=False,
        )
        return data["user"], data["token"]

    def login(self, email: str, password: str) -> Tuple[Dict[str, Any], str]:
        data = self._request(
            "POST", "/auth/login",
            json_body={"email": email, "password": password},
            auth=False,
        )
        return data["user"], data["token"]

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")["user"]

    # Tasks

    def list_tasks(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/tasks")

    def create_task(
        self,
        title: str,
        *,
        description: Optional[str] = None,
        due_date: Optional[str] = None,
        priority: str = "medium",
    ) -> Dict[str, Any]:
        body = {
            "title": title,
            "description": description or None,
            "dueDate": due_date or None,
            "priority": priority,
        }
        return self._request("POST", "/tasks", json_body=body)

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Send only the keys in ``changes``; ``dueDate: ""`` clears the date."""
        return self._request("PUT", f"/tasks/{task_id}", json_body=dict(changes))

    def toggle_task(self, task_id: str) -> Dict[str, Any]:
        return self._request("PATCH", f"/tasks/{task_id}/toggle")

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")
