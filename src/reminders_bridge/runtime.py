from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import Optional

from fastapi import Request

from .binary import resolve_binary_path
from .dates import ClockPreference
from .process import ProcessRunner, run_process
from .settings import Settings

logger = logging.getLogger(__name__)


class RuntimeContext:
    """
    Process-wide values shared by every request.

    Only two things are memoized: the resolved helper path and the host clock
    preference. Both are computed at most once; `reset()` clears them and is
    only allowed in the test posture.
    """

    def __init__(
        self,
        settings: Settings,
        runner: Optional[ProcessRunner] = None,
        search_start: Optional[Path] = None,
    ) -> None:
        self.settings = settings
        self.runner: ProcessRunner = runner or run_process
        self.clock = ClockPreference(
            timeout=settings.clock_preference_timeout,
            allow_reset=settings.is_test,
        )
        self._search_start = search_start
        self._lock = threading.Lock()
        self._binary_path: Optional[str] = None

    @property
    def binary_path(self) -> str:
        with self._lock:
            if self._binary_path is None:
                self._binary_path = resolve_binary_path(self.settings, self._search_start)
                logger.debug("Helper binary path memoized: %s", self._binary_path)
            return self._binary_path

    async def helper_path(self) -> str:
        """Memoized helper path, resolved off the event loop on first use."""
        if self._binary_path is not None:
            return self._binary_path
        return await asyncio.to_thread(lambda: self.binary_path)

    def reset(self) -> None:
        if not self.settings.is_test:
            raise RuntimeError("Runtime reset is only available in the test posture")
        with self._lock:
            self._binary_path = None
        self.clock.reset()


# PUBLIC_INTERFACE
def get_runtime(request: Request) -> RuntimeContext:
    """FastAPI dependency returning the RuntimeContext stored on app.state."""
    return request.app.state.runtime
