from datetime import datetime, time, timedelta
from typing import Iterable, List, Optional

from plantia.schemas import Task


def tasks_due(tasks: Iterable[Task], end: datetime, start: Optional[datetime] = None) -> List[Task]:
    """Pending tasks due no later than `end` (and no earlier than `start`, if given), soonest first."""
    due = [
        t for t in tasks
        if t.pending and t.next_run_at <= end and (start is None or t.next_run_at >= start)
    ]
    return sorted(due, key=lambda t: t.next_run_at)


def tasks_due_today(tasks: Iterable[Task], now: datetime) -> List[Task]:
    """Pending tasks due on the calendar day containing `now` (in now's timezone)."""
    day_start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    day_end = day_start + timedelta(days=1) - timedelta(microseconds=1)
    return tasks_due(tasks, day_end, start=day_start)
