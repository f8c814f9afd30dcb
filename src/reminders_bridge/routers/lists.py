from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from ..builders import CreateList, DeleteList, RenameList
from ..repositories import ReminderRepository, get_repository
from ..schemas import ListCreate, ListDelete, ListRename, MessageOut, ReminderListOut
from ..utils import collection_envelope

router = APIRouter(
    prefix="/api/v1/lists",
    tags=["lists"],
)


class ListsEnvelope(BaseModel):
    items: List[ReminderListOut] = Field(..., description="Reminder lists in helper order")
    total: int = Field(..., description="Number of lists returned")


def _get_repo(repo: ReminderRepository = Depends(get_repository)) -> ReminderRepository:
    return repo


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=ListsEnvelope,
    summary="Read Lists",
    description="Return every reminder list reported by the native helper.",
    responses={
        200: {"description": "Lists retrieved successfully"},
        502: {"description": "Helper failed"},
    },
)
async def read_lists(repo: ReminderRepository = Depends(_get_repo)) -> ListsEnvelope:
    """
    Read all reminder lists.
    """
    lists = await repo.find_all_lists()
    return ListsEnvelope(**collection_envelope(ReminderListOut(id=item.id, title=item.title) for item in lists))


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create List",
    description="Create a new reminder list.",
    responses={
        201: {"description": "List created successfully"},
        422: {"description": "Validation error"},
    },
)
async def create_list(payload: ListCreate, repo: ReminderRepository = Depends(_get_repo)) -> MessageOut:
    await repo.create_list(CreateList(name=payload.name))
    return MessageOut(message=f"Successfully created reminder list: {payload.name}")


# PUBLIC_INTERFACE
@router.patch(
    "/",
    response_model=MessageOut,
    summary="Rename List",
    description="Rename an existing reminder list.",
    responses={
        200: {"description": "List renamed"},
        404: {"description": "List not found"},
    },
)
async def rename_list(payload: ListRename, repo: ReminderRepository = Depends(_get_repo)) -> MessageOut:
    await repo.rename_list(RenameList(name=payload.name, new_name=payload.new_name))
    return MessageOut(message=f'Successfully updated reminder list "{payload.name}" to "{payload.new_name}"')


# PUBLIC_INTERFACE
@router.delete(
    "/",
    response_model=MessageOut,
    summary="Delete List",
    description="Delete a reminder list and the reminders it holds.",
    responses={
        200: {"description": "List deleted"},
        404: {"description": "List not found"},
    },
)
async def delete_list(
    name: str = Query(..., description="Name of the list to delete"),
    repo: ReminderRepository = Depends(_get_repo),
) -> MessageOut:
    """
    Delete a reminder list.
    """
    target = ListDelete(name=name)
    await repo.delete_list(DeleteList(name=target.name))
    return MessageOut(message=f"Successfully deleted reminder list: {target.name}")
