from __future__ import annotations

import logging
from typing import List

from fastapi import Depends

from .applescript import run_applescript
from .binary import ensure_binary_usable
from .builders import (
    CreateList,
    CreateReminder,
    DeleteList,
    DeleteReminder,
    MoveReminder,
    RenameList,
    UpdateReminder,
    build_script,
)
from .filters import ReminderFilters, apply_reminder_filters
from .models import Reminder, ReminderList
from .runtime import RuntimeContext, get_runtime
from .transcript import Transcript, parse_transcript

logger = logging.getLogger(__name__)

SHOW_COMPLETED_ARG = "--show-completed"


# PUBLIC_INTERFACE
class ReminderRepository:
    """
    Reads go through the native helper and its text transcript; writes go
    through AppleScript built from a request dataclass. Nothing is cached
    between calls, so every read reflects the store at call time.
    """

    def __init__(self, runtime: RuntimeContext) -> None:
        self._runtime = runtime

    async def _read_transcript(self, show_completed: bool) -> Transcript:
        binary_path = await self._runtime.helper_path()
        ensure_binary_usable(binary_path)

        argv = [binary_path]
        if show_completed:
            argv.append(SHOW_COMPLETED_ARG)
        logger.debug("Running helper with show_completed=%s", show_completed)
        result = await self._runtime.runner(
            argv, timeout=self._runtime.settings.helper_timeout, check=True
        )
        return parse_transcript(result.stdout)

    async def _run(self, request: object) -> str:
        script = build_script(request, self._runtime.clock)
        return await run_applescript(script, self._runtime.settings, self._runtime.runner)

    async def find_reminders(self, filters: ReminderFilters) -> List[Reminder]:
        transcript = await self._read_transcript(filters.show_completed)
        return apply_reminder_filters(transcript.reminders, filters)

    async def find_all_lists(self) -> List[ReminderList]:
        transcript = await self._read_transcript(show_completed=False)
        return transcript.lists

    async def create_reminder(self, request: CreateReminder) -> None:
        await self._run(request)
        logger.info("Created reminder %r", request.title)

    async def update_reminder(self, request: UpdateReminder) -> None:
        await self._run(request)
        logger.info("Updated reminder %r", request.title)

    async def delete_reminder(self, request: DeleteReminder) -> None:
        await self._run(request)
        logger.info("Deleted reminder %r", request.title)

    async def move_reminder(self, request: MoveReminder) -> None:
        await self._run(request)
        logger.info("Moved reminder %r from %r to %r", request.title, request.from_list, request.to_list)

    async def create_list(self, request: CreateList) -> None:
        await self._run(request)
        logger.info("Created list %r", request.name)

    async def rename_list(self, request: RenameList) -> None:
        await self._run(request)
        logger.info("Renamed list %r to %r", request.name, request.new_name)

    async def delete_list(self, request: DeleteList) -> None:
        await self._run(request)
        logger.info("Deleted list %r", request.name)


# PUBLIC_INTERFACE
def get_repository(runtime: RuntimeContext = Depends(get_runtime)) -> ReminderRepository:
    """FastAPI dependency building a repository over the shared runtime."""
    return ReminderRepository(runtime)
