"""REST API: auth routes plus owner-scoped task CRUD.

Every error leaves the process as ``{"message": ...}`` with the status code
of its class in ``taskdeck.errors``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from . import auth, tasks_repo
from .config import TaskDeckConfig, get_config
from .db import init_db
from .errors import AuthError, TaskDeckError
from .schemas import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    TaskCreateRequest,
    TaskOut,
    TaskUpdateRequest,
)

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> TaskDeckConfig:
    return request.app.state.config


def current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    cfg: TaskDeckConfig = Depends(get_settings),
) -> auth.AuthUser:
    """Identity of the caller, derived from the bearer token only."""
    if credentials is None or not credentials.credentials:
        raise AuthError(auth.UNAUTHORIZED)
    token = auth.token_from_header(f"{credentials.scheme.title()} {credentials.credentials}")
    return auth.verify_token(cfg, token)


# --------------------------------------------------------------------------------------
# Auth routes
# --------------------------------------------------------------------------------------

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


@auth_router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
def register(req: RegisterRequest, cfg: TaskDeckConfig = Depends(get_settings)) -> Dict[str, Any]:
    user, token = auth.register(cfg, req.name, req.email, req.password)
    return {"user": user, "token": token}


@auth_router.post("/login", response_model=AuthResponse)
def login(req: LoginRequest, cfg: TaskDeckConfig = Depends(get_settings)) -> Dict[str, Any]:
    user, token = auth.login(cfg, req.email, req.password)
    return {"user": user, "token": token}


@auth_router.get("/me", response_model=MeResponse)
def me(user: auth.AuthUser = Depends(current_user)) -> Dict[str, Any]:
    return {"user": user.to_dict()}


# --------------------------------------------------------------------------------------
# Task routes
# --------------------------------------------------------------------------------------

task_router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@task_router.get("", response_model=List[TaskOut])
def list_tasks(
    user: auth.AuthUser = Depends(current_user),
    cfg: TaskDeckConfig = Depends(get_settings),
) -> List[Dict[str, Any]]:
    return tasks_repo.list_tasks(cfg.database_url, user.id)


@task_router.post("", status_code=status.HTTP_201_CREATED, response_model=TaskOut)
def create_task(
    req: TaskCreateRequest,
    user: auth.AuthUser = Depends(current_user),
    cfg: TaskDeckConfig = Depends(get_settings),
) -> Dict[str, Any]:
    return tasks_repo.create_task(
        cfg.database_url,
        user.id,
        title=req.title,
        description=req.description,
        due_date=req.due_date,
        priority=req.priority,
    )


@task_router.put("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    req: TaskUpdateRequest,
    user: auth.AuthUser = Depends(current_user),
    cfg: TaskDeckConfig = Depends(get_settings),
) -> Dict[str, Any]:
    return tasks_repo.update_task(cfg.database_url, user.id, task_id, req.to_changes())


@task_router.patch("/{task_id}/toggle", response_model=TaskOut)
def toggle_task(
    task_id: str,
    user: auth.AuthUser = Depends(current_user),
    cfg: TaskDeckConfig = Depends(get_settings),
) -> Dict[str, Any]:
    return tasks_repo.toggle_task(cfg.database_url, user.id, task_id)


@task_router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    user: auth.AuthUser = Depends(current_user),
    cfg: TaskDeckConfig = Depends(get_settings),
) -> Response:
    tasks_repo.delete_task(cfg.database_url, user.id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --------------------------------------------------------------------------------------
# Error boundary
# --------------------------------------------------------------------------------------


async def _handle_taskdeck_error(_request: Request, exc: TaskDeckError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    field = ""
    if errors:
        loc = [str(part) for part in errors[0].get("loc", ()) if part != "body"]
        field = ".".join(loc)
    message = f"Invalid value for {field}" if field else "Invalid request body"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


async def _handle_unexpected(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(cfg: Optional[TaskDeckConfig] = None) -> FastAPI:
    cfg = cfg or get_config()
    init_db(cfg.database_url)

    app = FastAPI(title="taskdeck-api", version="1.0")
    app.state.config = cfg

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TaskDeckError, _handle_taskdeck_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected)

    @app.get("/api/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(task_router)
    return app
