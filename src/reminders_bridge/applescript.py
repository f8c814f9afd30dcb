"""
AppleScript text helpers and the interpreter runner.

Values are made safe for AppleScript string literals by `quote_applescript_string`;
whole scripts are handed to `osascript -` on stdin so nothing in them is ever
interpreted by a shell or placed on a command line.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from .errors import NotFoundError, ProcessExecutionError
from .process import ProcessRunner, run_process
from .settings import Settings

logger = logging.getLogger(__name__)

# Messages emitted by the `error "..."` guards in builders.py.
NOT_FOUND_PREFIXES = ("Reminder not found", "List not found")

_EXECUTION_ERROR = re.compile(r"execution error:\s*(?P<message>.*?)\s*(?:\(-?\d+\))?\s*$", re.DOTALL)

_ESCAPES = (
    ("\\", "\\\\"),
    ('"', '\\"'),
    ("'", "\\'"),
    ("\r", "\\r"),
    ("\n", "\\n"),
    ("\t", "\\t"),
)


def escape_applescript_string(value: str) -> str:
    """Escape backslash, quotes, CR, LF and tab, in that order."""
    for raw, escaped in _ESCAPES:
        value = value.replace(raw, escaped)
    return value


# PUBLIC_INTERFACE
def quote_applescript_string(value: str) -> str:
    """Return `value` as a double-quoted AppleScript string literal."""
    return f'"{escape_applescript_string(value)}"'


# PUBLIC_INTERFACE
def create_reminders_script(body: str) -> str:
    """Wrap statements in a single `tell application "Reminders"` block."""
    return f'tell application "Reminders"\n{body}\nend tell'


def _automation_message(stderr: str) -> str:
    text = stderr.strip()
    match = _EXECUTION_ERROR.search(text)
    if match and match.group("message"):
        return match.group("message")
    return text


# PUBLIC_INTERFACE
async def run_applescript(
    script: str,
    settings: Settings,
    runner: Optional[ProcessRunner] = None,
) -> str:
    """
    Execute an AppleScript through `osascript -` and return its trimmed stdout.

    Raises:
        NotFoundError: the script stopped on one of the builders' not-found guards.
        ProcessExecutionError: any other non-zero exit.
        ProcessSpawnError / ProcessTimeoutError: propagated from the runner.
    """
    run = runner or run_process
    logger.debug("Executing AppleScript:\n%s", script)
    result = await run([settings.osascript, "-"], timeout=settings.script_timeout, input_text=script)
    if result.returncode != 0:
        message = _automation_message(result.stderr)
        if message.startswith(NOT_FOUND_PREFIXES):
            raise NotFoundError(message)
        logger.error("AppleScript execution error: %s", message)
        raise ProcessExecutionError(
            f"AppleScript failed with code {result.returncode}: {message}",
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return result.stdout.strip()
