"""Streamlit glue shared by the app entry point and the pages."""

from __future__ import annotations

import html
from typing import Any, Mapping, Optional

import streamlit as st

from taskdeck.client import ApiError, TaskDeckClient
from taskdeck.config import get_config
from taskdeck.session import MappingStore, SessionController, TaskBoard
from taskdeck.theme import set_theme
from taskdeck.views import parse_date_only

_RESTORED_KEY = "td_session_restored"
_BOARD_KEY = "td_board"
SEARCH_KEY = "td_search"


def _client_factory(token: Optional[str]) -> TaskDeckClient:
    cfg = get_config()
    return TaskDeckClient(base_url=cfg.api_base_url, token=token, timeout_seconds=cfg.api_timeout_seconds)


def get_controller() -> SessionController:
    controller = SessionController(MappingStore(st.session_state), _client_factory)
    if not st.session_state.get(_RESTORED_KEY):
        st.session_state[_RESTORED_KEY] = True
        controller.restore()
    return controller


def get_board(controller: SessionController) -> TaskBoard:
    """The session's task list, loaded on first use for the current token."""
    token = controller.context.token
    board = st.session_state.get(_BOARD_KEY)
    if board is None or board.client.token != token:
        board = TaskBoard(controller.client())
        st.session_state[_BOARD_KEY] = board
    if not board.loaded:
        try:
            board.refresh()
        except ApiError as exc:
            st.error(exc.message)
    return board


def drop_board() -> None:
    st.session_state.pop(_BOARD_KEY, None)


def page_setup(page_title: str, page_icon: str) -> SessionController:
    """Theme + auth gate for a protected page; stops the run when logged out."""
    controller = get_controller()
    set_theme(page_title=page_title, page_icon=page_icon, mode=controller.context.theme)
    if not controller.context.is_authenticated:
        st.warning("Please sign in on the main page first.")
        st.stop()
    render_sidebar(controller)
    return controller


def render_sidebar(controller: SessionController) -> None:
    ctx = controller.context
    with st.sidebar:
        user = ctx.user or {}
        st.markdown(f"**{html.escape(str(user.get('name', '')))}**")
        st.caption(str(user.get("email", "")))
        st.text_input("Search tasks", key=SEARCH_KEY, placeholder="Title or description")
        label = "🌙 Dark mode" if ctx.theme == "light" else "☀️ Light mode"
        if st.button(label, key="td_theme_toggle"):
            controller.toggle_theme()
            st.rerun()
        if st.button("Log out", key="td_logout"):
            controller.logout()
            drop_board()
            st.rerun()


def priority_badge(priority: str) -> str:
    p = html.escape(str(priority or "medium"))
    return f'<span class="td-priority-badge td-priority-{p}">{p}</span>'


def task_card_html(task: Mapping[str, Any]) -> str:
    title = html.escape(str(task.get("title") or ""))
    description = html.escape(str(task.get("description") or ""))
    due = parse_date_only(task.get("dueDate"))
    due_label = f"Due {due:%a}, {due:%b} {due.day}" if due else "No due date"
    done = " td-task-done" if task.get("completed") else ""
    parts = [
        f'<div class="td-task-card{done}">',
        f'<div class="td-task-title">{title}{priority_badge(task.get("priority"))}</div>',
    ]
    if description:
        parts.append(f'<div class="td-task-meta">{description}</div>')
    parts.append(f'<div class="td-task-meta">{due_label}</div>')
    parts.append("</div>")
    return "".join(parts)


def kpi_block(label: str, value: Any) -> str:
    return (
        f'<div class="td-kpi-box"><div class="td-kpi-label">{html.escape(label)}</div>'
        f'<div class="td-kpi-value">{html.escape(str(value))}</div></div>'
    )


def welcome_heading(user: Optional[Mapping[str, Any]]) -> str:
    name = str((user or {}).get("name") or "User")
    return f"<h1>Welcome {html.escape(name)}</h1>"
