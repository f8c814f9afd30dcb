from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .dates import validate_date
from .filters import DUE_WINDOWS

MAX_TITLE_LENGTH = 200
MAX_NOTE_LENGTH = 2000
MAX_LIST_NAME_LENGTH = 100
MAX_SEARCH_LENGTH = 100
MAX_URL_LENGTH = 500

# Printable text, including non-Latin scripts; control characters other than
# newline, carriage return and tab are rejected.
_SAFE_TEXT = re.compile(r"^[\u0020-\u007E\u00A0-\uFFFF\n\r\t]*$")

# http(s) only, and never loopback or private network hosts.
_SAFE_URL = re.compile(
    r"^https?://(?!(?:127\.|192\.168\.|10\.|localhost|0\.0\.0\.0))"
    r"[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?(\.[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?)*"
    r"(?::\d{1,5})?(?:/[^\s<>\"{}|\\^`\[\]]*)?$",
    re.IGNORECASE,
)


def _safe_text(value: Optional[str], field: str, max_length: int, required: bool = False) -> Optional[str]:
    """
    Enforce the caller-input bounds shared by every text field.
    Required fields are stripped and must not be empty.
    """
    if value is None:
        if required:
            raise ValueError(f"{field} is required")
        return None
    if required:
        value = value.strip()
        if not value:
            raise ValueError(f"{field} cannot be empty")
    if len(value) > max_length:
        raise ValueError(f"{field} cannot exceed {max_length} characters")
    if not _SAFE_TEXT.match(value):
        raise ValueError(f"{field} contains invalid characters")
    return value


def _safe_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if len(value) > MAX_URL_LENGTH:
        raise ValueError(f"URL cannot exceed {MAX_URL_LENGTH} characters")
    if not _SAFE_URL.match(value):
        raise ValueError("URL must be a valid HTTP or HTTPS URL")
    return value


def _due_date(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return validate_date(value.strip())


# PUBLIC_INTERFACE
class ReminderCreate(BaseModel):
    """Schema for creating a reminder."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "due_date": "2024-12-25 14:30:00",
                "note": "Two litres",
                "url": "https://example.com/shopping",
                "list": "Errands",
            }
        }
    )

    title: str = Field(..., description="Reminder title")
    due_date: Optional[str] = Field(
        default=None,
        description="YYYY-MM-DD, YYYY-MM-DD HH:mm:ss or ISO 8601; a bare date creates an all-day reminder",
    )
    note: Optional[str] = Field(default=None, description="Body text")
    url: Optional[str] = Field(default=None, description="http(s) URL stored in the note's URL block")
    list: Optional[str] = Field(default=None, description="Target list; the default list when omitted")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _safe_text(v, "Title", MAX_TITLE_LENGTH, required=True)

    @field_validator("note")
    @classmethod
    def validate_note(cls, v: Optional[str]) -> Optional[str]:
        return _safe_text(v, "Note", MAX_NOTE_LENGTH)

    @field_validator("list")
    @classmethod
    def validate_list(cls, v: Optional[str]) -> Optional[str]:
        return _safe_text(v, "List name", MAX_LIST_NAME_LENGTH)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        return _safe_url(v)

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: Optional[str]) -> Optional[str]:
        return _due_date(v)


# PUBLIC_INTERFACE
class ReminderUpdate(BaseModel):
    """
    Schema for updating a reminder addressed by its current title.
    Only provided fields are changed.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"title": "Buy milk", "new_title": "Buy oat milk", "completed": True, "list": "Errands"}
        }
    )

    title: str = Field(..., description="Current title of the reminder to update")
    new_title: Optional[str] = Field(default=None, description="Replacement title")
    due_date: Optional[str] = Field(default=None, description="New due date")
    note: Optional[str] = Field(default=None, description="Replacement body text")
    url: Optional[str] = Field(default=None, description="URL to add to the note's URL block")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")
    list: Optional[str] = Field(default=None, description="Restrict the lookup to this list")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _safe_text(v, "Title", MAX_TITLE_LENGTH, required=True)

    @field_validator("new_title")
    @classmethod
    def validate_new_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _safe_text(v, "New title", MAX_TITLE_LENGTH, required=True)

    @field_validator("note")
    @classmethod
    def validate_note(cls, v: Optional[str]) -> Optional[str]:
        return _safe_text(v, "Note", MAX_NOTE_LENGTH)

    @field_validator("list")
    @classmethod
    def validate_list(cls, v: Optional[str]) -> Optional[str]:
        return _safe_text(v, "List name", MAX_LIST_NAME_LENGTH)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        return _safe_url(v)

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: Optional[str]) -> Optional[str]:
        return _due_date(v)


class ReminderDelete(BaseModel):
    title: str
    list: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _safe_text(v, "Title", MAX_TITLE_LENGTH, required=True)

    @field_validator("list")
    @classmethod
    def validate_list(cls, v: Optional[str]) -> Optional[str]:
        return _safe_text(v, "List name", MAX_LIST_NAME_LENGTH)


# PUBLIC_INTERFACE
class ReminderMove(BaseModel):
    """Schema for moving a reminder from one list to another."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"title": "Buy milk", "from_list": "Errands", "to_list": "Home"}}
    )

    title: str = Field(..., description="Title of the reminder to move")
    from_list: str = Field(..., description="List that currently holds the reminder")
    to_list: str = Field(..., description="Destination list")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _safe_text(v, "Title", MAX_TITLE_LENGTH, required=True)

    @field_validator("from_list", "to_list")
    @classmethod
    def validate_lists(cls, v: str) -> str:
        return _safe_text(v, "List name", MAX_LIST_NAME_LENGTH, required=True)


class ReminderQuery(BaseModel):
    """Read filters taken from the query string."""

    list: Optional[str] = None
    show_completed: bool = False
    search: Optional[str] = None
    due_within: Optional[str] = None

    @field_validator("list")
    @classmethod
    def validate_list(cls, v: Optional[str]) -> Optional[str]:
        return _safe_text(v, "List name", MAX_LIST_NAME_LENGTH)

    @field_validator("search")
    @classmethod
    def validate_search(cls, v: Optional[str]) -> Optional[str]:
        return _safe_text(v, "Search term", MAX_SEARCH_LENGTH)

    @field_validator("due_within")
    @classmethod
    def validate_due_within(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in DUE_WINDOWS:
            raise ValueError(f"due_within must be one of: {', '.join(DUE_WINDOWS)}")
        return v


# PUBLIC_INTERFACE
class ListCreate(BaseModel):
    """Schema for creating a reminder list."""

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Groceries"}})

    name: str = Field(..., description="List name")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _safe_text(v, "List name", MAX_LIST_NAME_LENGTH, required=True)


# PUBLIC_INTERFACE
class ListRename(BaseModel):
    """Schema for renaming a reminder list."""

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Groceries", "new_name": "Shopping"}})

    name: str = Field(..., description="Current list name")
    new_name: str = Field(..., description="Replacement list name")

    @field_validator("name", "new_name")
    @classmethod
    def validate_names(cls, v: str) -> str:
        return _safe_text(v, "List name", MAX_LIST_NAME_LENGTH, required=True)


class ListDelete(ListCreate):
    pass


# PUBLIC_INTERFACE
class ReminderOut(BaseModel):
    """Schema returned by the API for a reminder."""

    title: str = Field(..., description="Reminder title")
    list: str = Field(..., description="Name of the list holding the reminder")
    is_completed: bool = Field(..., description="Completion status flag")
    due_date: Optional[str] = Field(default=None, description="Due date as printed by the helper")
    notes: Optional[str] = Field(default=None, description="Body text without its URL block")
    url: Optional[str] = Field(default=None, description="URL reported by the helper")
    urls: List[str] = Field(default=[], description="URLs found in the body")


class ReminderListOut(BaseModel):
    id: int = Field(..., description="1-based position reported by the helper")
    title: str = Field(..., description="List name")


class MessageOut(BaseModel):
    message: str = Field(..., description="Outcome of the operation")


class PermissionStatusOut(BaseModel):
    granted: bool
    error: Optional[str] = None
    requires_user_action: bool = False


# PUBLIC_INTERFACE
class PermissionsOut(BaseModel):
    """Outcome of both permission probes plus remediation guidance."""

    event_kit: PermissionStatusOut
    apple_script: PermissionStatusOut
    all_granted: bool
    guidance: str
