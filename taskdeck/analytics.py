"""Dashboard analytics derived from the client-held task list.

All functions are pure: they read wire-form task dicts and return fresh
values. ``trend_frame`` and ``status_frame`` shape results for plotly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .views import parse_date_only

Task = Mapping[str, Any]

TREND_DAYS = 7
DUE_SOON_DAYS = 7


def _created_day(value: Any) -> Optional[date]:
    """Calendar day (UTC) of a ``createdAt`` timestamp."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str) and value:
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.date()


def task_stats(tasks: Sequence[Task]) -> Dict[str, int]:
    completed = sum(1 for t in tasks if t.get("completed"))
    return {
        "total": len(tasks),
        "completed": completed,
        "pending": len(tasks) - completed,
        "highPriority": sum(1 for t in tasks if t.get("priority") == "high" and not t.get("completed")),
    }


def completion_percent(stats: Mapping[str, int]) -> int:
    total = stats.get("total", 0)
    if total <= 0:
        return 0
    # Half-up, matching Math.round for non-negative values.
    return int(stats.get("completed", 0) * 100 / total + 0.5)


def completion_trend(tasks: Iterable[Task], today: Optional[date] = None, days: int = TREND_DAYS) -> List[Dict[str, Any]]:
    """Completed tasks per day for the last ``days`` days, oldest first.

    A completed task counts on the day it was *created*: completion time is
    not stored, so creation date stands in for it.
    """
    today = today or date.today()
    per_day: Dict[date, int] = {}
    for t in tasks:
        if not t.get("completed"):
            continue
        day = _created_day(t.get("createdAt"))
        if day is not None:
            per_day[day] = per_day.get(day, 0) + 1

    trend = []
    for offset in range(days - 1, -1, -1):
        d = today - timedelta(days=offset)
        trend.append({
            "iso": d.isoformat(),
            "label": f"{d:%b} {d.day}",
            "weekday": f"{d:%a}",
            "dateFull": f"{d:%a}, {d:%b} {d.day}, {d.year}",
            "completed": per_day.get(d, 0),
        })
    return trend


@dataclass(frozen=True)
class TrendSummary:
    total: int
    average_per_day: float
    change_percent: float
    peak_label: Optional[str]
    peak_completed: int
    start: str
    end: str


def trend_summary(trend: Sequence[Mapping[str, Any]]) -> TrendSummary:
    if not trend:
        return TrendSummary(0, 0.0, 0.0, None, 0, "N/A", "N/A")

    total = sum(int(day["completed"]) for day in trend)
    peak = trend[0]
    for day in trend[1:]:
        if day["completed"] > peak["completed"]:
            peak = day

    first, last = trend[0]["completed"], trend[-1]["completed"]
    change = 0.0
    if len(trend) > 1 and first != 0:
        change = (last - first) / max(first, 1) * 100

    return TrendSummary(
        total=total,
        average_per_day=round(total / len(trend), 1),
        change_percent=change,
        peak_label=peak["label"],
        peak_completed=int(peak["completed"]),
        start=trend[0]["dateFull"],
        end=trend[-1]["dateFull"],
    )


def due_today_count(tasks: Iterable[Task], today: Optional[date] = None) -> int:
    today = today or date.today()
    return sum(
        1 for t in tasks
        if not t.get("completed") and parse_date_only(t.get("dueDate")) == today
    )


def due_soon_count(tasks: Iterable[Task], today: Optional[date] = None, days: int = DUE_SOON_DAYS) -> int:
    """Pending tasks due between today and ``days`` days out, inclusive."""
    today = today or date.today()
    horizon = today + timedelta(days=days)
    count = 0
    for t in tasks:
        if t.get("completed"):
            continue
        due = parse_date_only(t.get("dueDate"))
        if due is not None and today <= due <= horizon:
            count += 1
    return count


def next_due_task(tasks: Iterable[Task], today: Optional[date] = None) -> Optional[Task]:
    """Earliest pending task due today or later; ties keep list order."""
    today = today or date.today()
    best = None
    best_due = None
    for t in tasks:
        if t.get("completed"):
            continue
        due = parse_date_only(t.get("dueDate"))
        if due is None or due < today:
            continue
        if best_due is None or due < best_due:
            best, best_due = t, due
    return best


def next_due_label(task: Optional[Task]) -> str:
    due = parse_date_only(task.get("dueDate")) if task else None
    if due is None:
        return "No upcoming deadlines"
    return f"{due:%a}, {due:%b} {due.day}"


def status_breakdown(stats: Mapping[str, int]) -> List[Dict[str, Any]]:
    return [
        {"name": "Completed", "value": stats.get("completed", 0)},
        {"name": "Pending", "value": stats.get("pending", 0)},
    ]


@dataclass(frozen=True)
class DashboardSnapshot:
    stats: Dict[str, int]
    completion_percent: int
    remaining: int
    due_today: int
    due_soon: int
    next_due: Optional[Task]
    trend: List[Dict[str, Any]] = field(default_factory=list)
    summary: Optional[TrendSummary] = None


def dashboard_snapshot(tasks: Sequence[Task], today: Optional[date] = None) -> DashboardSnapshot:
    """Everything the dashboard shows, computed in one pass over a snapshot."""
    today = today or date.today()
    snapshot = list(tasks)
    stats = task_stats(snapshot)
    trend = completion_trend(snapshot, today)
    return DashboardSnapshot(
        stats=stats,
        completion_percent=completion_percent(stats),
        remaining=max(stats["total"] - stats["completed"], 0),
        due_today=due_today_count(snapshot, today),
        due_soon=due_soon_count(snapshot, today),
        next_due=next_due_task(snapshot, today),
        trend=trend,
        summary=trend_summary(trend),
    )


def trend_frame(trend: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    if not trend:
        return pd.DataFrame(columns=["iso", "label", "weekday", "completed"])
    df = pd.DataFrame(list(trend))
    df["completed"] = df["completed"].astype(int)
    return df[["iso", "label", "weekday", "completed"]]


def status_frame(stats: Mapping[str, int]) -> pd.DataFrame:
    return pd.DataFrame(status_breakdown(stats))
