import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from taskdeck.analytics import dashboard_snapshot, next_due_label, status_frame, trend_frame
from taskdeck.ui import get_board, kpi_block, page_setup, welcome_heading

controller = page_setup("Dashboard", "📊")
board = get_board(controller)

snap = dashboard_snapshot(board.tasks)

if snap.due_soon:
    st.info(f"{snap.due_soon} task{'s' if snap.due_soon != 1 else ''} due soon")

st.markdown(welcome_heading(controller.context.user), unsafe_allow_html=True)
st.caption("Track your productivity and manage tasks efficiently.")

k1, k2, k3, k4 = st.columns(4)
k1.markdown(kpi_block("Total Tasks", snap.stats["total"]), unsafe_allow_html=True)
k2.markdown(kpi_block("Completed", snap.stats["completed"]), unsafe_allow_html=True)
k3.markdown(kpi_block("Pending", snap.stats["pending"]), unsafe_allow_html=True)
k4.markdown(kpi_block("High Priority", snap.stats["highPriority"]), unsafe_allow_html=True)

st.markdown("### Progress")
st.progress(snap.completion_percent / 100, text=f"{snap.completion_percent}% complete · {snap.remaining} remaining")

d1, d2 = st.columns(2)
d1.metric("Due today", snap.due_today)
d2.metric("Next deadline", next_due_label(snap.next_due))

chart_col, status_col = st.columns([2, 1])

with chart_col:
    summary = snap.summary
    st.markdown("### Completion trend")
    if summary is not None:
        st.caption(f"{summary.start} – {summary.end}")
    df = trend_frame(snap.trend)
    fig = px.area(df, x="label", y="completed", markers=True)
    fig.update_layout(height=320, margin=dict(l=10, r=10, t=10, b=10), xaxis_title=None, yaxis_title="Completed")
    st.plotly_chart(fig, use_container_width=True)
    if summary is not None:
        s1, s2, s3 = st.columns(3)
        s1.metric("This week", summary.total, delta=f"{summary.change_percent:.0f}%")
        s2.metric("Avg / day", f"{summary.average_per_day:.1f}")
        s3.metric("Peak day", summary.peak_label or "N/A", delta=summary.peak_completed or None)

with status_col:
    st.markdown("### Status")
    sdf = status_frame(snap.stats)
    fig_status = go.Figure(go.Bar(x=sdf["name"], y=sdf["value"], marker_color=["#00b894", "#0b63d6"]))
    fig_status.update_layout(height=320, margin=dict(l=10, r=10, t=10, b=10))
    st.plotly_chart(fig_status, use_container_width=True)
