from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from ..builders import CreateReminder, DeleteReminder, MoveReminder, UpdateReminder
from ..filters import ReminderFilters
from ..repositories import ReminderRepository, get_repository
from ..schemas import (
    MessageOut,
    ReminderCreate,
    ReminderDelete,
    ReminderMove,
    ReminderOut,
    ReminderQuery,
    ReminderUpdate,
)
from ..utils import collection_envelope, reminder_payload

router = APIRouter(
    prefix="/api/v1/reminders",
    tags=["reminders"],
)


class RemindersEnvelope(BaseModel):
    """
    Envelope for reminder reads.
    """
    items: List[ReminderOut] = Field(..., description="Reminders matching the filters, in helper order")
    total: int = Field(..., description="Number of reminders returned")


def _get_repo(repo: ReminderRepository = Depends(get_repository)) -> ReminderRepository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=RemindersEnvelope,
    summary="Read Reminders",
    description=(
        "Read reminders from the native helper.\n\n"
        "Query parameters:\n"
        "- list: only reminders in this list\n"
        "- show_completed: include completed reminders\n"
        "- search: case-insensitive match on title or notes\n"
        "- due_within: today, tomorrow, this-week, overdue or no-date"
    ),
    responses={
        200: {"description": "Reminders retrieved successfully"},
        422: {"description": "Invalid query parameters"},
        502: {"description": "Helper failed"},
    },
)
async def read_reminders(
    list: Optional[str] = Query(None, description="Filter by list name"),
    show_completed: bool = Query(False, description="Include completed reminders"),
    search: Optional[str] = Query(None, description="Search text for title/notes"),
    due_within: Optional[str] = Query(None, description="Due date window"),
    repo: ReminderRepository = Depends(_get_repo),
) -> RemindersEnvelope:
    """
    Read reminders with filters.
    """
    query = ReminderQuery(list=list, show_completed=show_completed, search=search, due_within=due_within)
    reminders = await repo.find_reminders(
        ReminderFilters(
            show_completed=query.show_completed,
            search=query.search.strip() if query.search else None,
            due_within=query.due_within,
            list=query.list,
        )
    )
    envelope = collection_envelope(ReminderOut(**reminder_payload(r)) for r in reminders)
    return RemindersEnvelope(**envelope)


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Reminder",
    description="Create a reminder in the given list, or in the default list when none is given.",
    responses={
        201: {"description": "Reminder created successfully"},
        404: {"description": "List not found"},
        422: {"description": "Validation error"},
    },
)
async def create_reminder(payload: ReminderCreate, repo: ReminderRepository = Depends(_get_repo)) -> MessageOut:
    """
    Create a new reminder.
    """
    await repo.create_reminder(
        CreateReminder(
            title=payload.title,
            due_date=payload.due_date,
            note=payload.note,
            url=payload.url,
            list=payload.list,
        )
    )
    suffix = " with notes" if payload.note else ""
    return MessageOut(message=f"Successfully created reminder: {payload.title}{suffix}")


# PUBLIC_INTERFACE
@router.patch(
    "/",
    response_model=MessageOut,
    summary="Update Reminder",
    description=(
        "Partially update a reminder addressed by its exact title. "
        "When several reminders share the title, the first match is updated."
    ),
    responses={
        200: {"description": "Reminder updated"},
        404: {"description": "List or reminder not found"},
    },
)
async def update_reminder(payload: ReminderUpdate, repo: ReminderRepository = Depends(_get_repo)) -> MessageOut:
    """
    Partial update of a reminder.
    """
    await repo.update_reminder(
        UpdateReminder(
            title=payload.title,
            new_title=payload.new_title,
            due_date=payload.due_date,
            note=payload.note,
            url=payload.url,
            completed=payload.completed,
            list=payload.list,
        )
    )
    return MessageOut(message=f'Successfully updated reminder "{payload.title}"')


# PUBLIC_INTERFACE
@router.delete(
    "/",
    response_model=MessageOut,
    summary="Delete Reminder",
    description="Delete the first reminder with the exact title, optionally within one list.",
    responses={
        200: {"description": "Reminder deleted"},
        404: {"description": "List or reminder not found"},
    },
)
async def delete_reminder(
    title: str = Query(..., description="Exact title of the reminder"),
    list: Optional[str] = Query(None, description="Restrict the lookup to this list"),
    repo: ReminderRepository = Depends(_get_repo),
) -> MessageOut:
    """
    Delete a reminder.
    """
    target = ReminderDelete(title=title, list=list)
    await repo.delete_reminder(DeleteReminder(title=target.title, list=target.list))
    return MessageOut(message=f"Successfully deleted reminder: {target.title}")


# PUBLIC_INTERFACE
@router.post(
    "/move",
    response_model=MessageOut,
    summary="Move Reminder",
    description="Move a reminder from one list to another.",
    responses={
        200: {"description": "Reminder moved"},
        404: {"description": "List or reminder not found"},
    },
)
async def move_reminder(payload: ReminderMove, repo: ReminderRepository = Depends(_get_repo)) -> MessageOut:
    """
    Move a reminder between lists.
    """
    await repo.move_reminder(
        MoveReminder(title=payload.title, from_list=payload.from_list, to_list=payload.to_list)
    )
    return MessageOut(
        message=f'Successfully moved reminder "{payload.title}" from {payload.from_list} to {payload.to_list}'
    )
