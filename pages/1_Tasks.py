import streamlit as st

from taskdeck.analytics import task_stats
from taskdeck.client import ApiError
from taskdeck.models import PRIORITIES
from taskdeck.session import task_form_changes
from taskdeck.ui import SEARCH_KEY, get_board, page_setup, task_card_html
from taskdeck.views import (
    DEFAULT_OPEN_GROUPS,
    PRIORITY_FILTERS,
    STATUS_FILTERS,
    filter_tasks,
    group_tasks,
    non_empty_groups,
    parse_date_only,
)

controller = page_setup("Tasks", "📋")
board = get_board(controller)

st.markdown("<h1>Task List</h1>", unsafe_allow_html=True)


def _run(action, *args, **kwargs):
    try:
        action(*args, **kwargs)
    except ApiError as exc:
        st.session_state["td_error"] = exc.message
    else:
        st.session_state.pop("td_error", None)
    st.rerun()


if st.session_state.get("td_error"):
    st.error(st.session_state["td_error"])

# ----- Add task -----
with st.expander("➕ Add Task", expanded=False):
    with st.form("td_add_task", clear_on_submit=True):
        title = st.text_input("Title")
        description = st.text_area("Description")
        c1, c2 = st.columns(2)
        due = c1.date_input("Due date", value=None)
        priority = c2.selectbox("Priority", PRIORITIES, index=PRIORITIES.index("medium"))
        if st.form_submit_button("Add Task"):
            _run(
                board.create,
                title,
                description=description or None,
                due_date=due.isoformat() if due else None,
                priority=priority,
            )

# ----- Filters -----
stats = task_stats(board.tasks)
f1, f2 = st.columns([3, 1])
status_labels = {
    "all": f"All ({stats['total']})",
    "pending": f"Pending ({stats['pending']})",
    "completed": f"Completed ({stats['completed']})",
}
status = f1.radio(
    "Status",
    STATUS_FILTERS,
    format_func=status_labels.get,
    horizontal=True,
    label_visibility="collapsed",
)
priority_filter = f2.selectbox(
    "Priority",
    PRIORITY_FILTERS,
    format_func=lambda p: "All Priorities" if p == "all" else f"{p.title()} Priority",
    label_visibility="collapsed",
)

visible = filter_tasks(
    board.tasks,
    search=st.session_state.get(SEARCH_KEY, ""),
    priority=priority_filter,
    status=status,
)

# ----- Grouped list -----
groups = non_empty_groups(group_tasks(visible))
if not groups:
    st.info("No tasks found.")

editing_id = st.session_state.get("td_editing")
deleting_id = st.session_state.get("td_deleting")

for group_name, tasks in groups:
    with st.expander(f"{group_name} ({len(tasks)})", expanded=group_name in DEFAULT_OPEN_GROUPS):
        for task in tasks:
            task_id = task["id"]
            st.markdown(task_card_html(task), unsafe_allow_html=True)
            b1, b2, b3 = st.columns(3)
            toggle_label = "Completed ✓" if task.get("completed") else "Mark Done"
            if b1.button(toggle_label, key=f"toggle_{task_id}"):
                _run(board.toggle, task_id)
            if b2.button("Edit", key=f"edit_{task_id}"):
                st.session_state["td_editing"] = task_id
                st.rerun()
            if b3.button("Delete", key=f"delete_{task_id}"):
                st.session_state["td_deleting"] = task_id
                st.rerun()

            if deleting_id == task_id:
                st.warning(f"Delete “{task.get('title')}”? This cannot be undone.")
                d1, d2 = st.columns(2)
                if d1.button("Confirm delete", key=f"confirm_delete_{task_id}"):
                    st.session_state.pop("td_deleting", None)
                    _run(board.delete, task_id)
                if d2.button("Cancel", key=f"cancel_delete_{task_id}"):
                    st.session_state.pop("td_deleting", None)
                    st.rerun()

            if editing_id == task_id:
                with st.form(f"td_edit_{task_id}"):
                    new_title = st.text_input("Title", value=task.get("title") or "")
                    new_description = st.text_area("Description", value=task.get("description") or "")
                    e1, e2 = st.columns(2)
                    new_due = e1.date_input("Due date", value=parse_date_only(task.get("dueDate")))
                    new_priority = e2.selectbox(
                        "Priority", PRIORITIES, index=PRIORITIES.index(task.get("priority") or "medium")
                    )
                    save, cancel = st.columns(2)
                    saved = save.form_submit_button("Save")
                    cancelled = cancel.form_submit_button("Cancel")
                if saved:
                    changes = task_form_changes(task, {
                        "title": new_title,
                        "description": new_description,
                        "dueDate": new_due.isoformat() if new_due else "",
                        "priority": new_priority,
                    })
                    st.session_state.pop("td_editing", None)
                    if changes:
                        _run(board.update, task_id, changes)
                    st.rerun()
                if cancelled:
                    st.session_state.pop("td_editing", None)
                    st.rerun()
