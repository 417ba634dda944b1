import streamlit as st

from taskdeck.client import ApiError
from taskdeck.session import LOGIN_VIEW
from taskdeck.theme import set_theme
from taskdeck.ui import drop_board, get_controller, render_sidebar

VIEW_PAGES = {
    "tasks": "pages/1_Tasks.py",
    "calendar": "pages/2_Calendar.py",
    "dashboard": "pages/3_Dashboard.py",
}

controller = get_controller()
set_theme(page_title="TaskDeck", page_icon="✅", mode=controller.context.theme)

view = controller.resolve_view(st.query_params.get("view"))

if view != LOGIN_VIEW:
    render_sidebar(controller)
    st.switch_page(VIEW_PAGES[view])

st.markdown("<h1>TaskDeck</h1>", unsafe_allow_html=True)
st.caption("Plan your day, track your progress.")

if st.button("🌙 Toggle theme", key="td_login_theme"):
    controller.toggle_theme()
    st.rerun()

sign_in, sign_up = st.tabs(["Sign in", "Create account"])

with sign_in:
    with st.form("td_login_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in")
    if submitted:
        try:
            controller.login(email, password)
        except ApiError as exc:
            st.error(exc.message)
        else:
            drop_board()
            st.rerun()

with sign_up:
    with st.form("td_register_form"):
        name = st.text_input("Name")
        reg_email = st.text_input("Email", key="td_reg_email")
        reg_password = st.text_input("Password", type="password", key="td_reg_password")
        created = st.form_submit_button("Create account")
    if created:
        try:
            controller.register(name, reg_email, reg_password)
        except ApiError as exc:
            st.error(exc.message)
        else:
            drop_board()
            st.rerun()
