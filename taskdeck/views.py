"""Task view engine: search, filters, date groups and calendar helpers.

Everything here is a pure function over a list of wire-form task dicts
(``dueDate`` as ``YYYY-MM-DD``). Inputs are never mutated; results are new
lists that reference the same task dicts in their original order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

Task = Mapping[str, Any]

TODAY = "Today"
THIS_WEEK = "This Week"
THIS_MONTH = "This Month"
LATER = "Later"
NO_DATE = "No Date"

GROUPS = (TODAY, THIS_WEEK, THIS_MONTH, LATER, NO_DATE)
DEFAULT_OPEN_GROUPS = (TODAY, THIS_WEEK)

STATUS_FILTERS = ("all", "pending", "completed")
PRIORITY_FILTERS = ("all", "high", "medium", "low")


def parse_date_only(value: Any) -> Optional[date]:
    """Parse a ``YYYY-MM-DD`` calendar date; anything else is no date."""
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    parts = value.split("-")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(p) for p in parts)
    except ValueError:
        return None
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def add_months(day: date, months: int) -> date:
    """Same day-of-month ``months`` later; a day past the month's end rolls over.

    Jan 31 + 1 month is Mar 3 (Mar 2 in a leap year).
    """
    index = day.month - 1 + months
    first = date(day.year + index // 12, index % 12 + 1, 1)
    return first + timedelta(days=day.day - 1)


# --------------------------------------------------------------------------------------
# Filters
# --------------------------------------------------------------------------------------


def matches_search(task: Task, query: str) -> bool:
    q = (query or "").strip().lower()
    if not q:
        return True
    title = str(task.get("title") or "").lower()
    description = str(task.get("description") or "").lower()
    return q in title or q in description


def matches_priority(task: Task, priority: str) -> bool:
    return not priority or priority == "all" or task.get("priority") == priority


def matches_status(task: Task, status: str) -> bool:
    if status == "completed":
        return bool(task.get("completed"))
    if status == "pending":
        return not task.get("completed")
    return True


def filter_tasks(
    tasks: Iterable[Task],
    search: str = "",
    priority: str = "all",
    status: str = "all",
) -> List[Task]:
    """Apply search, then priority, then status."""
    return [
        t for t in tasks
        if matches_search(t, search) and matches_priority(t, priority) and matches_status(t, status)
    ]


# --------------------------------------------------------------------------------------
# Date groups
# --------------------------------------------------------------------------------------


def bucket_for(task: Task, today: Optional[date] = None) -> str:
    today = today or date.today()
    due = parse_date_only(task.get("dueDate"))
    if due is None:
        return NO_DATE
    week_end = today + timedelta(days=7)
    month_end = add_months(today, 1)
    if due == today:
        return TODAY
    if today < due <= week_end:
        return THIS_WEEK
    if week_end < due <= month_end:
        return THIS_MONTH
    # Past-due dates land here too.
    return LATER


def group_tasks(tasks: Iterable[Task], today: Optional[date] = None) -> Dict[str, List[Task]]:
    """Bucket every task into exactly one of GROUPS, keeping input order."""
    today = today or date.today()
    groups: Dict[str, List[Task]] = {name: [] for name in GROUPS}
    for t in tasks:
        groups[bucket_for(t, today)].append(t)
    return groups


def non_empty_groups(groups: Mapping[str, Sequence[Task]]) -> List[Tuple[str, List[Task]]]:
    return [(name, list(groups[name])) for name in GROUPS if groups.get(name)]


# --------------------------------------------------------------------------------------
# Calendar
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class CalendarDay:
    day: date
    is_current_month: bool
    is_today: bool


def tasks_for_date(tasks: Iterable[Task], day: date) -> List[Task]:
    key = day.isoformat()
    return [t for t in tasks if t.get("dueDate") and t.get("dueDate") == key]


def month_grid(year: int, month: int, today: Optional[date] = None) -> List[CalendarDay]:
    """Six Sunday-first weeks covering ``year``/``month`` (42 cells)."""
    today = today or date.today()
    first = date(year, month, 1)
    offset = (first.weekday() + 1) % 7  # Sunday == 0
    start = first - timedelta(days=offset)
    cells = []
    for i in range(42):
        d = start + timedelta(days=i)
        in_month = d.month == month and d.year == year
        cells.append(CalendarDay(day=d, is_current_month=in_month, is_today=in_month and d == today))
    return cells


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    shifted = add_months(date(year, month, 1), delta)
    return shifted.year, shifted.month


def upcoming_tasks(tasks: Iterable[Task], today: Optional[date] = None, limit: int = 10) -> List[Task]:
    """Pending tasks due today or later, soonest first."""
    today = today or date.today()
    dated = []
    for t in tasks:
        if t.get("completed"):
            continue
        due = parse_date_only(t.get("dueDate"))
        if due is not None and due >= today:
            dated.append((due, t))
    dated.sort(key=lambda pair: pair[0])
    return [t for _, t in dated[:limit]]
