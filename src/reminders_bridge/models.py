from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Reminder:
    """
    A reminder item as reported by the native helper.

    Fields:
    - title: Reminder name, never empty
    - list: Name of the list that holds the reminder, never empty
    - is_completed: Completion flag, always a real bool
    - due_date: Due date text exactly as the helper printed it
    - notes: Body text of the reminder
    - url: URL attached to the reminder
    """

    title: str
    list: str
    is_completed: bool = False
    due_date: Optional[str] = None
    notes: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ReminderList:
    """A reminder list: 1-based position reported by the helper and its title."""

    id: int
    title: str


@dataclass(frozen=True)
class ParsedDate:
    """A normalized due date and whether it carries a time of day."""

    formatted: str
    is_date_only: bool


@dataclass(frozen=True)
class PermissionStatus:
    granted: bool
    error: Optional[str] = None
    requires_user_action: bool = False


@dataclass(frozen=True)
class SystemPermissions:
    """Results of the data-access (EventKit) and automation (AppleScript) probes."""

    event_kit: PermissionStatus
    apple_script: PermissionStatus

    @property
    def all_granted(self) -> bool:
        return self.event_kit.granted and self.apple_script.granted
