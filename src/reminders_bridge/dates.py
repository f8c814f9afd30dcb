"""
Due-date parsing and formatting for AppleScript.

Three input shapes are accepted, strictly:

    YYYY-MM-DD HH:mm:ss      2024-12-25 14:30:00
    ISO 8601                 2024-12-25T14:30:00, 2024-12-25T14:30:00Z, 2024-12-25T14:30+08:00
    YYYY-MM-DD               2024-12-25

Output always uses English month names so AppleScript's `date "..."` coercion
does not depend on the host locale:

    date-only    December 25, 2024
    12-hour      December 25, 2024 2:30:00 PM
    24-hour      December 25, 2024 14:30:00
"""
from __future__ import annotations

import logging
import re
import subprocess
import threading
from datetime import date, datetime
from typing import Optional

from .errors import InvalidDateError
from .models import ParsedDate

logger = logging.getLogger(__name__)

MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_TIME = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")
_ISO_8601 = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d{1,6})?)?(?:Z|[+-]\d{2}:?\d{2})?$"
)

_CLOCK_COMMAND = ("defaults", "read", "-g", "AppleICUForce24HourTime")


class ClockPreference:
    """
    Host 12/24-hour clock preference, resolved once in the background.

    The first call to `use_24_hour()` starts a single refresh thread and
    returns the 12-hour default immediately; callers never wait on the
    refresh. Later calls see the refreshed value once it lands. A failed
    refresh leaves the 12-hour default in place.
    """

    def __init__(self, timeout: float = 5.0, allow_reset: bool = False) -> None:
        self._timeout = timeout
        self._allow_reset = allow_reset
        self._lock = threading.Lock()
        self._started = False
        self._value = False
        self._generation = 0

    def use_24_hour(self) -> bool:
        with self._lock:
            if not self._started:
                self._started = True
                threading.Thread(
                    target=self._refresh,
                    args=(self._generation,),
                    name="clock-preference",
                    daemon=True,
                ).start()
            return self._value

    def reset(self) -> None:
        if not self._allow_reset:
            raise RuntimeError("Clock preference reset is only available in the test posture")
        with self._lock:
            self._started = False
            self._value = False
            self._generation += 1

    def _read_preference(self) -> bool:
        result = subprocess.run(
            list(_CLOCK_COMMAND),
            capture_output=True,
            text=True,
            timeout=self._timeout,
        )
        return result.returncode == 0 and result.stdout.strip() == "1"

    def _refresh(self, generation: int) -> None:
        try:
            value = self._read_preference()
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("Failed to determine time preference, using 12-hour: %s", exc)
            return
        with self._lock:
            if generation != self._generation:
                # Superseded by reset()
                return
            self._value = value
        logger.debug("System time preference initialized: %s", "24-hour" if value else "12-hour")


def _invalid(value: str) -> InvalidDateError:
    return InvalidDateError(
        f'Invalid or unsupported date format: "{value}". '
        "Supported formats: YYYY-MM-DD HH:mm:ss, YYYY-MM-DD, ISO 8601. "
        'Example: "2024-12-25 14:30:00"'
    )


# PUBLIC_INTERFACE
def is_date_only_format(value: str) -> bool:
    """True for a bare YYYY-MM-DD string."""
    return bool(_DATE_ONLY.match(value))


def _parse(value: str) -> datetime:
    try:
        if _DATE_TIME.match(value):
            return datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
        if _ISO_8601.match(value):
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is not None:
                # Offsets are honoured by converting to host-local wall time
                parsed = parsed.astimezone().replace(tzinfo=None)
            return parsed
        if _DATE_ONLY.match(value):
            d = date.fromisoformat(value)
            return datetime(d.year, d.month, d.day)
    except ValueError:
        raise _invalid(value) from None
    raise _invalid(value)


def format_date_only(moment: datetime) -> str:
    return f"{MONTHS[moment.month - 1]} {moment.day}, {moment.year}"


def format_date_time(moment: datetime, use_24_hour: bool) -> str:
    day = format_date_only(moment)
    if use_24_hour:
        return f"{day} {moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{day} {hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"


# PUBLIC_INTERFACE
def parse_date_with_type(value: str, clock: Optional[ClockPreference] = None) -> ParsedDate:
    """
    Validate a due date and format it for AppleScript.

    Args:
        value: Date string in one of the accepted shapes.
        clock: Host clock preference; 12-hour output when omitted.

    Returns:
        ParsedDate with the formatted text and whether it is date-only.

    Raises:
        InvalidDateError: for any other input, with the same message shape every time.
    """
    if not isinstance(value, str):
        raise _invalid(str(value))
    moment = _parse(value)
    if is_date_only_format(value):
        formatted = format_date_only(moment)
        logger.debug("Parsed date (date-only): %s", formatted)
        return ParsedDate(formatted=formatted, is_date_only=True)
    use_24_hour = clock.use_24_hour() if clock is not None else False
    formatted = format_date_time(moment, use_24_hour)
    logger.debug("Parsed date (%s-hour): %s", "24" if use_24_hour else "12", formatted)
    return ParsedDate(formatted=formatted, is_date_only=False)


# PUBLIC_INTERFACE
def parse_date(value: str, clock: Optional[ClockPreference] = None) -> str:
    """Formatted AppleScript date text for `value`; see parse_date_with_type."""
    return parse_date_with_type(value, clock).formatted


def validate_date(value: str) -> str:
    """Return `value` unchanged if it is an accepted due date, else raise InvalidDateError."""
    _parse(value)
    return value
