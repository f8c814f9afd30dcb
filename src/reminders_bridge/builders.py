"""
AppleScript builders for reminder and list mutations.

Each request type is a frozen dataclass; `build_script` dispatches it to the
one function that renders it. Every caller-supplied value passes through
`quote_applescript_string` before it touches the script text.

Reminders are addressed by exact title. When several reminders share a title
the first match is the one changed; callers that need something else must
disambiguate before calling.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import singledispatch
from typing import List, Optional, Tuple

from .applescript import create_reminders_script, quote_applescript_string as q
from .dates import ClockPreference, parse_date_with_type
from .notes import combine_note_with_url, format_note_with_urls


@dataclass(frozen=True)
class CreateReminder:
    title: str
    due_date: Optional[str] = None
    note: Optional[str] = None
    url: Optional[str] = None
    list: Optional[str] = None


@dataclass(frozen=True)
class UpdateReminder:
    title: str
    new_title: Optional[str] = None
    due_date: Optional[str] = None
    note: Optional[str] = None
    url: Optional[str] = None
    completed: Optional[bool] = None
    list: Optional[str] = None


@dataclass(frozen=True)
class DeleteReminder:
    title: str
    list: Optional[str] = None


@dataclass(frozen=True)
class MoveReminder:
    title: str
    from_list: str
    to_list: str


@dataclass(frozen=True)
class CreateList:
    name: str


@dataclass(frozen=True)
class RenameList:
    name: str
    new_name: str


@dataclass(frozen=True)
class DeleteList:
    name: str


def _due_date(value: str, clock: Optional[ClockPreference]) -> Tuple[str, str]:
    """AppleScript property name and quoted date literal for a due date."""
    parsed = parse_date_with_type(value, clock)
    kind = "allday due date" if parsed.is_date_only else "due date"
    return kind, f"date {q(parsed.formatted)}"


def _guard_list(name: str) -> List[str]:
    return [
        f"if not (exists list {q(name)}) then",
        f"  error {q(f'List not found: {name}')}",
        "end if",
    ]


def _target_reminder(title: str, list_name: Optional[str]) -> List[str]:
    if list_name:
        return [
            *_guard_list(list_name),
            f"set targetList to list {q(list_name)}",
            f"set targetReminders to reminders of targetList whose name is {q(title)}",
        ]
    return [f"set targetReminders to every reminder whose name is {q(title)}"]


def _guard_reminder(message: str) -> List[str]:
    return [
        "if (count of targetReminders) is 0 then",
        f"  error {q(message)}",
        "else",
        "  set targetReminder to first item of targetReminders",
    ]


# PUBLIC_INTERFACE
@singledispatch
def build_script(request: object, clock: Optional[ClockPreference] = None) -> str:
    """
    Render a mutation request as a complete AppleScript.

    Args:
        request: One of CreateReminder, UpdateReminder, DeleteReminder,
            MoveReminder, CreateList, RenameList or DeleteList.
        clock: Host clock preference used for due dates with a time of day.

    Returns:
        Script text wrapped in a `tell application "Reminders"` block.

    Raises:
        InvalidDateError: a due date does not match an accepted shape.
        TypeError: the request type is not one of the above.
    """
    raise TypeError(f"Unsupported request type: {type(request).__name__}")


@build_script.register
def _(request: CreateReminder, clock: Optional[ClockPreference] = None) -> str:
    if request.list:
        list_selector = [*_guard_list(request.list), f"set targetList to list {q(request.list)}"]
    else:
        list_selector = ["set targetList to default list"]

    props = [f"name:{q(request.title)}"]
    if request.due_date:
        kind, literal = _due_date(request.due_date, clock)
        props.append(f"{kind}:{literal}")
    body = combine_note_with_url(request.note, request.url)
    if body:
        props.append(f"body:{q(body)}")

    return create_reminders_script("\n".join([
        *list_selector,
        f"set reminderProps to {{{', '.join(props)}}}",
        "set newReminder to make new reminder at end of targetList with properties reminderProps",
    ]))


def _notes_update(request: UpdateReminder) -> List[str]:
    if request.note is not None:
        return [f"  set body of targetReminder to {q(combine_note_with_url(request.note, request.url))}"]
    if request.url:
        # Keep the existing body and append a URL block to it
        block = "\n\n" + format_note_with_urls("", [request.url])
        return [
            "  set currentBody to body of targetReminder",
            '  if currentBody is missing value then set currentBody to ""',
            f"  set body of targetReminder to currentBody & {q(block)}",
        ]
    return []


@build_script.register
def _(request: UpdateReminder, clock: Optional[ClockPreference] = None) -> str:
    updates: List[str] = []
    if request.new_title is not None:
        updates.append(f"  set name of targetReminder to {q(request.new_title)}")
    if request.due_date is not None:
        kind, literal = _due_date(request.due_date, clock)
        updates.append(f"  set {kind} of targetReminder to {literal}")
    updates.extend(_notes_update(request))
    if request.completed is not None:
        updates.append(f"  set completed of targetReminder to {'true' if request.completed else 'false'}")

    return create_reminders_script("\n".join([
        *_target_reminder(request.title, request.list),
        *_guard_reminder(f"Reminder not found: {request.title}"),
        *updates,
        "end if",
    ]))


@build_script.register
def _(request: DeleteReminder, clock: Optional[ClockPreference] = None) -> str:
    return create_reminders_script("\n".join([
        *_target_reminder(request.title, request.list),
        *_guard_reminder(f"Reminder not found: {request.title}"),
        "  delete first item of targetReminders",
        "end if",
    ]))


@build_script.register
def _(request: MoveReminder, clock: Optional[ClockPreference] = None) -> str:
    return create_reminders_script("\n".join([
        *_guard_list(request.from_list),
        *_guard_list(request.to_list),
        f"set sourceList to list {q(request.from_list)}",
        f"set destList to list {q(request.to_list)}",
        f"set targetReminders to reminders of sourceList whose name is {q(request.title)}",
        *_guard_reminder(f"Reminder not found in list {request.from_list}: {request.title}"),
        "  move targetReminder to destList",
        "end if",
    ]))


@build_script.register
def _(request: CreateList, clock: Optional[ClockPreference] = None) -> str:
    return create_reminders_script(f"set newList to make new list with properties {{name:{q(request.name)}}}")


@build_script.register
def _(request: RenameList, clock: Optional[ClockPreference] = None) -> str:
    return create_reminders_script("\n".join([
        *_guard_list(request.name),
        f"set name of list {q(request.name)} to {q(request.new_name)}",
    ]))


@build_script.register
def _(request: DeleteList, clock: Optional[ClockPreference] = None) -> str:
    return create_reminders_script("\n".join([
        *_guard_list(request.name),
        f"delete list {q(request.name)}",
    ]))
