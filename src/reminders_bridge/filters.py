"""Read-side filtering of reminders returned by the helper."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from .models import Reminder

logger = logging.getLogger(__name__)

DUE_WINDOWS = ("today", "tomorrow", "this-week", "overdue", "no-date")

# Shapes printed by the helper, e.g. "Dec 25, 2024" and "Dec 25, 2024 at 2:30 PM".
_HELPER_DATE_FORMATS = ("%b %d, %Y at %I:%M %p", "%b %d, %Y")
_UNICODE_SPACES = re.compile(r"[\u00A0\u202F\u2009]")


@dataclass(frozen=True)
class ReminderFilters:
    """
    Criteria applied to a reminder read.

    - show_completed: include completed reminders
    - search: case-insensitive substring of title or notes
    - due_within: one of DUE_WINDOWS
    - list: exact list name
    """

    show_completed: bool = False
    search: Optional[str] = None
    due_within: Optional[str] = None
    list: Optional[str] = None


def parse_helper_due_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a due date as printed by the helper; None when absent or unrecognized."""
    if not value:
        return None
    # Newer macOS releases put a narrow no-break space before AM/PM
    text = _UNICODE_SPACES.sub(" ", value).strip()
    for fmt in _HELPER_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    logger.debug("Unrecognized helper due date: %r", value)
    return None


def _in_window(reminder: Reminder, window: str, today: date) -> bool:
    if window == "no-date":
        return not reminder.due_date
    due = parse_helper_due_date(reminder.due_date)
    if due is None:
        return False
    day = due.date()
    if window == "today":
        return day == today
    if window == "tomorrow":
        return day == today + timedelta(days=1)
    if window == "this-week":
        return today <= day <= today + timedelta(days=7)
    if window == "overdue":
        return day < today
    raise ValueError(f"Unknown due window: {window}")


# PUBLIC_INTERFACE
def apply_reminder_filters(
    reminders: Iterable[Reminder],
    filters: ReminderFilters,
    today: Optional[date] = None,
) -> List[Reminder]:
    """
    Return the reminders that satisfy every criterion in `filters`, in input order.

    `today` defaults to the host's current date.
    """
    if filters.due_within is not None and filters.due_within not in DUE_WINDOWS:
        raise ValueError(f"Unknown due window: {filters.due_within}")
    today = today or date.today()
    needle = filters.search.lower() if filters.search else None

    selected: List[Reminder] = []
    for reminder in reminders:
        if not filters.show_completed and reminder.is_completed:
            continue
        if filters.list and reminder.list != filters.list:
            continue
        if needle and needle not in reminder.title.lower() and needle not in (reminder.notes or "").lower():
            continue
        if filters.due_within and not _in_window(reminder, filters.due_within, today):
            continue
        selected.append(reminder)
    return selected
