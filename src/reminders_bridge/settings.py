from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

ENVIRONMENTS = ("production", "development", "test")


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - REMINDERS_ENV: deployment posture, 'production' (default), 'development' or 'test'
    - REMINDERS_DEBUG: 'true' to expose internal error detail and log at DEBUG
    - REMINDERS_HELPER_PATH: explicit path to the GetReminders helper, tried before the conventional locations
    - REMINDERS_HELPER_SHA256: expected sha256 of the helper binary (enforced in production)
    - REMINDERS_OSASCRIPT: AppleScript interpreter executable. Default 'osascript'
    - REMINDERS_HELPER_TIMEOUT: seconds allowed for a helper read. Default 30
    - REMINDERS_SCRIPT_TIMEOUT: seconds allowed for an AppleScript run. Default 30
    - REMINDERS_CHECK_PERMISSIONS_ON_START: 'true' to probe permissions at startup (default: true outside test)
    - LOG_LEVEL: root log level. Default 'INFO'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    """

    environment: str
    debug: bool
    helper_path: Optional[str]
    helper_sha256: Optional[str]
    osascript: str
    helper_timeout: float
    script_timeout: float
    check_permissions_on_start: bool
    log_level: str
    cors_allow_origins: List[str]
    data_access_probe_timeout: float = 10.0
    automation_probe_timeout: float = 5.0
    clock_preference_timeout: float = 5.0

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @property
    def expose_error_details(self) -> bool:
        """Raw exception text is only surfaced under a development/debug posture."""
        return self.debug or self.environment == "development"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_seconds(value: str, default: float) -> float:
    try:
        seconds = float(value)
    except ValueError:
        return default
    return seconds if seconds > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    environment = _get_env("REMINDERS_ENV", "production").strip().lower()
    if environment not in ENVIRONMENTS:
        # Unknown postures get the strictest treatment
        environment = "production"

    debug = _parse_bool(_get_env("REMINDERS_DEBUG", "false"), False)
    helper_path = os.getenv("REMINDERS_HELPER_PATH") or None
    helper_sha256 = (os.getenv("REMINDERS_HELPER_SHA256") or "").strip().lower() or None

    check_default = "false" if environment == "test" else "true"
    check_on_start = _parse_bool(
        _get_env("REMINDERS_CHECK_PERMISSIONS_ON_START", check_default),
        environment != "test",
    )

    log_level = _get_env("LOG_LEVEL", "DEBUG" if debug else "INFO").strip().upper()

    return Settings(
        environment=environment,
        debug=debug,
        helper_path=helper_path,
        helper_sha256=helper_sha256,
        osascript=_get_env("REMINDERS_OSASCRIPT", "osascript").strip(),
        helper_timeout=_parse_seconds(_get_env("REMINDERS_HELPER_TIMEOUT", "30"), 30.0),
        script_timeout=_parse_seconds(_get_env("REMINDERS_SCRIPT_TIMEOUT", "30"), 30.0),
        check_permissions_on_start=check_on_start,
        log_level=log_level,
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
    )
