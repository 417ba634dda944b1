import html
from datetime import date

import streamlit as st

from taskdeck.ui import get_board, page_setup, task_card_html
from taskdeck.views import month_grid, shift_month, tasks_for_date, upcoming_tasks

controller = page_setup("Calendar", "📅")
board = get_board(controller)

st.markdown("<h1>Calendar</h1>", unsafe_allow_html=True)

today = date.today()
if "td_cal_month" not in st.session_state:
    st.session_state["td_cal_month"] = (today.year, today.month)
year, month = st.session_state["td_cal_month"]

nav_prev, nav_title, nav_next = st.columns([1, 4, 1])
if nav_prev.button("◀", key="td_cal_prev"):
    st.session_state["td_cal_month"] = shift_month(year, month, -1)
    st.rerun()
nav_title.subheader(date(year, month, 1).strftime("%B %Y"))
if nav_next.button("▶", key="td_cal_next"):
    st.session_state["td_cal_month"] = shift_month(year, month, 1)
    st.rerun()

grid_col, side_col = st.columns([3, 1])

with grid_col:
    header = st.columns(7)
    for col, name in zip(header, ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]):
        col.markdown(f"**{name}**")

    cells = month_grid(year, month, today)
    for week in range(6):
        cols = st.columns(7)
        for col, cell in zip(cols, cells[week * 7:(week + 1) * 7]):
            day_tasks = tasks_for_date(board.tasks, cell.day)
            classes = "td-cal-cell"
            if not cell.is_current_month:
                classes += " td-cal-outside"
            if cell.is_today:
                classes += " td-cal-today"
            dots = "".join(
                f'<span class="td-cal-dot">• {html.escape(str(t.get("title") or ""))}</span>'
                for t in day_tasks[:3]
            )
            col.markdown(f'<div class="{classes}"><b>{cell.day.day}</b>{dots}</div>', unsafe_allow_html=True)
            if day_tasks and col.button(f"{len(day_tasks)} task(s)", key=f"td_cal_{cell.day.isoformat()}"):
                st.session_state["td_cal_selected"] = cell.day
                st.rerun()

    selected = st.session_state.get("td_cal_selected")
    if selected:
        st.subheader(f"Tasks on {selected:%A, %B} {selected.day}")
        selected_tasks = tasks_for_date(board.tasks, selected)
        if not selected_tasks:
            st.caption("Nothing due on this day.")
        for task in selected_tasks:
            st.markdown(task_card_html(task), unsafe_allow_html=True)

with side_col:
    st.subheader("Upcoming")
    upcoming = upcoming_tasks(board.tasks, today)
    if not upcoming:
        st.caption("No upcoming deadlines")
    for task in upcoming:
        st.markdown(task_card_html(task), unsafe_allow_html=True)
