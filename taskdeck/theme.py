import os

import streamlit as st
from streamlit.errors import StreamlitAPIException

DARK_OVERRIDES = """
.stApp { background-color:#14161c; color:#e6e9ef; }
.td-card, .td-kpi-box, .td-task-card { background:#1b1d24 !important; border-color:#2c3040 !important; color:#e6e9ef; }
.td-task-title, .td-kpi-value { color:#8ab4ff !important; }
.td-task-meta, .td-kpi-label { color:#9aa4b8 !important; }
"""


def _css_path() -> str:
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'assets', 'custom_theme.css')


def theme_css(mode: str = "light") -> str:
    """Global CSS for ``mode`` (light or dark); empty when the file is missing."""
    try:
        with open(_css_path(), 'r', encoding='utf-8') as f:
            css = f.read()
    except FileNotFoundError:
        css = ""
    if mode == "dark":
        css += DARK_OVERRIDES
    return css


def set_theme(
    page_title: str = "TaskDeck",
    page_icon: str = "✅",
    layout: str = "wide",
    initial_sidebar_state: str = "expanded",
    mode: str = "light",
):
    """Page config plus the TaskDeck stylesheet for the session's theme mode.

    Called at the top of every page; only the first page config of a run
    sticks, the CSS is injected each time so a theme toggle applies at once.
    """
    try:
        st.set_page_config(
            page_title=page_title,
            page_icon=page_icon,
            layout=layout,
            initial_sidebar_state=initial_sidebar_state,
        )
    except StreamlitAPIException:
        # set_page_config can only be called once per run.
        pass

    css = theme_css(mode)
    if css:
        st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)
    else:
        st.error(f"Theme file not found at {_css_path()}. Please check the file path.")
