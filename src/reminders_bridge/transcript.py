"""
Parser for the text transcript printed by the GetReminders helper.

Expected shape::

    === REMINDER LISTS ===
    1. Errands
    2. Home

    === ALL REMINDERS ===
    Title: Buy milk
    Due Date: Jan 1, 2025
    List: Errands
    Status: Not Completed
    -------------------

Malformed lines and incomplete blocks are skipped with a warning; a bad block
never fails the whole read.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .models import Reminder, ReminderList

logger = logging.getLogger(__name__)

LISTS_HEADER = "=== REMINDER LISTS ==="
REMINDERS_HEADER = "=== ALL REMINDERS ==="
BLOCK_SEPARATOR = "-------------------"

_LIST_LINE = re.compile(r"^(\d+)\.\s(.+)$")

Partial = Dict[str, Any]


def _setter(key: str, transform: Callable[[str], Any] = str.strip) -> Callable[[Partial, str], None]:
    def apply(record: Partial, value: str) -> None:
        record[key] = transform(value)
    return apply


# Prefix -> setter on the partial record. Prefixes are matched in this order.
FIELD_SETTERS: Tuple[Tuple[str, Callable[[Partial, str], None]], ...] = (
    ("Title:", _setter("title")),
    ("Due Date:", _setter("due_date")),
    ("Notes:", _setter("notes")),
    ("URL:", _setter("url")),
    ("List:", _setter("list")),
    ("Status:", _setter("is_completed", lambda v: v.strip() == "Completed")),
    # Kept as text; normalize_completed turns it into a bool afterwards
    ("Raw isCompleted value:", _setter("is_completed")),
)


@dataclass
class Transcript:
    lists: List[ReminderList] = field(default_factory=list)
    reminders: List[Reminder] = field(default_factory=list)


# PUBLIC_INTERFACE
def normalize_completed(value: Any, title: Optional[str] = None) -> bool:
    """
    Coerce a raw completion value to a strict bool.

    bool passes through; str is compared case-insensitively to 'true'; any
    other value is judged by truthiness. Non-bool input is logged.
    """
    if isinstance(value, bool):
        return value
    logger.warning(
        "Reminder %r has non-boolean completion value %r (%s)", title, value, type(value).__name__
    )
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def split_sections(output: str) -> Tuple[List[str], List[str]]:
    """Route non-blank lines to the list or reminder section; lines before any header are dropped."""
    sections: Dict[str, List[str]] = {"lists": [], "reminders": []}
    current: Optional[str] = None
    for line in output.splitlines():
        stripped = line.strip()
        if stripped == LISTS_HEADER:
            current = "lists"
        elif stripped == REMINDERS_HEADER:
            current = "reminders"
        elif current and stripped:
            sections[current].append(line)
    return sections["lists"], sections["reminders"]


def parse_lists(lines: List[str]) -> List[ReminderList]:
    lists: List[ReminderList] = []
    for line in lines:
        match = _LIST_LINE.match(line.strip())
        if match is None:
            logger.debug("Skipping unrecognized list line: %r", line)
            continue
        lists.append(ReminderList(id=int(match.group(1)), title=match.group(2)))
    return lists


def group_blocks(lines: List[str]) -> List[List[str]]:
    blocks: List[List[str]] = []
    current: List[str] = []
    for line in lines:
        if line.strip() == BLOCK_SEPARATOR:
            if current:
                blocks.append(current)
                current = []
        else:
            current.append(line)
    # The helper may end without a trailing separator
    if current:
        blocks.append(current)
    return blocks


def parse_block(lines: List[str]) -> Optional[Reminder]:
    record: Partial = {"is_completed": False}
    for line in lines:
        for prefix, apply in FIELD_SETTERS:
            if line.startswith(prefix):
                apply(record, line[len(prefix):])
                break

    title = record.get("title")
    list_name = record.get("list")
    if not title or not list_name:
        logger.warning("Skipping reminder with missing required fields: %r", record)
        return None

    return Reminder(
        title=title,
        list=list_name,
        is_completed=normalize_completed(record.get("is_completed"), title),
        due_date=record.get("due_date") or None,
        notes=record.get("notes") or None,
        url=record.get("url") or None,
    )


# PUBLIC_INTERFACE
def parse_transcript(output: str) -> Transcript:
    """
    Parse the helper's stdout into lists and reminders.

    Args:
        output: Complete stdout of a successful helper run.

    Returns:
        Transcript with lists and reminders in the order they were printed.
    """
    logger.debug("Parsing helper output, %d lines", output.count("\n") + 1)
    list_lines, reminder_lines = split_sections(output)
    lists = parse_lists(list_lines)
    reminders = [r for r in (parse_block(b) for b in group_blocks(reminder_lines)) if r is not None]
    logger.debug("Finished parsing: %d lists, %d reminders", len(lists), len(reminders))
    return Transcript(lists=lists, reminders=reminders)
