"""Error taxonomy shared by the auth gate, the task store and the API layer.

Every error carries the user-facing message and the HTTP status the API
boundary answers with. The JSON body is always ``{"message": ...}``.
"""

from __future__ import annotations

from typing import Any, Dict


class TaskDeckError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(TaskDeckError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid request"


class AuthError(TaskDeckError):
    """Bad credentials or an invalid, expired or malformed token."""

    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(TaskDeckError):
    """Resource absent or not owned by the caller."""

    status_code = 404
    default_message = "Not found"


class ConflictError(TaskDeckError):
    status_code = 409
    default_message = "Conflict"


class InternalError(TaskDeckError):
    status_code = 500
    default_message = "Internal server error"
