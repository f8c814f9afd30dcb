"""
Permission probes for the two OS grants the bridge depends on.

- data access (EventKit): the helper run with `--check-permissions`
- automation (AppleScript): a harmless read through osascript

Probes never raise; each returns a PermissionStatus describing what, if
anything, the user has to do.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from .errors import PermissionDeniedError, ProcessSpawnError, ProcessTimeoutError
from .models import PermissionStatus, SystemPermissions
from .process import ProcessRunner, run_process
from .settings import Settings

logger = logging.getLogger(__name__)

CHECK_PERMISSIONS_ARG = "--check-permissions"
AUTOMATION_PROBE_SCRIPT = 'tell application "Reminders" to get the name of every list'
PERMISSION_ERROR_KEYWORDS = ("permission", "denied", "access", "authorization", "not authorized")

DATA_ACCESS = "EventKit"
AUTOMATION = "AppleScript"

_DENIED_GUIDANCE = {
    DATA_ACCESS: "EventKit permission denied. Please grant access in System Settings > Privacy & Security > Reminders",
    AUTOMATION: "AppleScript automation permission denied. Please grant access in System Settings > Privacy & Security > Automation",
}

GRANTED = PermissionStatus(granted=True)


def _failure(error: str, requires_user_action: bool) -> PermissionStatus:
    return PermissionStatus(granted=False, error=error, requires_user_action=requires_user_action)


def analyze_permission_error(stderr: str, permission_type: str) -> PermissionStatus:
    """Classify a failed probe by the wording of its stderr."""
    text = stderr.lower()
    if any(keyword in text for keyword in PERMISSION_ERROR_KEYWORDS):
        return _failure(_DENIED_GUIDANCE[permission_type], True)
    return _failure(f"{permission_type} check failed: {stderr}", False)


async def _probe(
    argv: Sequence[str],
    timeout: float,
    permission_type: str,
    runner: ProcessRunner,
    require_output: bool = False,
) -> PermissionStatus:
    try:
        result = await runner(list(argv), timeout=timeout)
    except ProcessTimeoutError:
        return _failure(f"{permission_type} permission check timed out", True)
    except ProcessSpawnError as exc:
        return _failure(f"Failed to check {permission_type} permissions: {exc}", True)

    if result.ok and (not require_output or result.stdout.strip()):
        return GRANTED
    return analyze_permission_error(result.stderr, permission_type)


# PUBLIC_INTERFACE
async def check_data_access(
    binary_path: Optional[str],
    settings: Settings,
    runner: Optional[ProcessRunner] = None,
) -> PermissionStatus:
    """Probe EventKit access by running the helper with --check-permissions."""
    if not binary_path:
        return _failure("Swift binary not available for permission check", True)
    return await _probe(
        [binary_path, CHECK_PERMISSIONS_ARG],
        settings.data_access_probe_timeout,
        DATA_ACCESS,
        runner or run_process,
    )


# PUBLIC_INTERFACE
async def check_automation(
    settings: Settings,
    runner: Optional[ProcessRunner] = None,
) -> PermissionStatus:
    """Probe AppleScript automation access; success needs exit 0 and some output."""
    return await _probe(
        [settings.osascript, "-e", AUTOMATION_PROBE_SCRIPT],
        settings.automation_probe_timeout,
        AUTOMATION,
        runner or run_process,
        require_output=True,
    )


# PUBLIC_INTERFACE
async def check_all_permissions(
    binary_path: Optional[str],
    settings: Settings,
    runner: Optional[ProcessRunner] = None,
) -> SystemPermissions:
    """Run both probes concurrently."""
    event_kit, apple_script = await asyncio.gather(
        check_data_access(binary_path, settings, runner),
        check_automation(settings, runner),
    )
    permissions = SystemPermissions(event_kit=event_kit, apple_script=apple_script)
    logger.debug(
        "Permission check results: event_kit=%s apple_script=%s all_granted=%s",
        event_kit.granted, apple_script.granted, permissions.all_granted,
    )
    return permissions


# PUBLIC_INTERFACE
async def request_data_access(
    binary_path: Optional[str],
    settings: Settings,
    runner: Optional[ProcessRunner] = None,
) -> PermissionStatus:
    """
    Run the helper without arguments so the OS shows its consent dialog.

    The time limit is three times the probe timeout to leave room for the user
    to answer the dialog.
    """
    if not binary_path:
        return _failure("Swift binary not available for permission check", True)

    run = runner or run_process
    logger.debug("Attempting to request EventKit permissions...")
    try:
        result = await run([binary_path], timeout=settings.data_access_probe_timeout * 3)
    except ProcessTimeoutError:
        return _failure("Permission request timed out - user may have dismissed the dialog", True)
    except ProcessSpawnError as exc:
        logger.error("Failed to execute helper for permission request: %s", exc)
        return _failure(f"Failed to request EventKit permissions: {exc}", True)

    if result.ok:
        logger.debug("EventKit permissions granted via helper")
        return GRANTED
    error = result.stderr.strip() or "EventKit permission request failed"
    logger.debug("EventKit permission request failed: %s", error)
    return _failure(error, True)


def _data_access_section(status: PermissionStatus) -> List[str]:
    if status.granted:
        return ["EventKit (Reminders) Access: Granted", ""]
    return [
        "EventKit (Reminders) Access:",
        "   - Open System Settings > Privacy & Security > Reminders",
        "   - Find your terminal or application in the list",
        "   - Enable access by toggling the switch",
        "",
    ]


def _automation_section(status: PermissionStatus) -> List[str]:
    if status.granted:
        return ["AppleScript Automation: Granted", ""]
    return [
        "AppleScript Automation:",
        "   - Open System Settings > Privacy & Security > Automation",
        "   - Find your terminal or application in the list",
        '   - Expand it and enable "Reminders" access',
        '   - You may also need to allow "System Events" if prompted',
        "",
    ]


# PUBLIC_INTERFACE
def generate_permission_guidance(permissions: SystemPermissions) -> str:
    """
    Human-readable remediation text.

    Only failing probes get remediation steps; granted ones are listed as
    granted. Returns a one-line confirmation when everything is granted.
    """
    if permissions.all_granted:
        return "All permissions granted successfully"

    lines = ["Reminders bridge requires the following permissions:", ""]
    lines.extend(_data_access_section(permissions.event_kit))
    lines.extend(_automation_section(permissions.apple_script))
    lines.extend([
        "After granting permissions:",
        "   1. Restart your terminal or application",
        "   2. Start the reminders bridge again",
        '   3. The system may prompt you to confirm access - click "Allow"',
        "",
        "If you continue having issues, try:",
        "   - Logging out and back in to macOS",
        "   - Restarting your Mac",
        "   - Checking Console.app for permission-related errors",
    ])
    return "\n".join(lines)


def permission_error_details(permissions: SystemPermissions) -> List[str]:
    details: List[str] = []
    if not permissions.event_kit.granted:
        details.append(f"EventKit: {permissions.event_kit.error}")
    if not permissions.apple_script.granted:
        details.append(f"AppleScript: {permissions.apple_script.error}")
    return details


# PUBLIC_INTERFACE
async def ensure_permissions(
    binary_path: Optional[str],
    settings: Settings,
    runner: Optional[ProcessRunner] = None,
) -> SystemPermissions:
    """
    Check both permissions, asking for data access once if it is missing.

    Raises:
        PermissionDeniedError: a permission is still missing afterwards; the
            message lists the failing probes and the remediation guidance.
    """
    permissions = await check_all_permissions(binary_path, settings, runner)

    if not permissions.event_kit.granted:
        logger.debug("Requesting EventKit permissions...")
        requested = await request_data_access(binary_path, settings, runner)
        if requested.granted:
            permissions = await check_all_permissions(binary_path, settings, runner)
        else:
            logger.debug("EventKit permission request failed: %s", requested.error)

    if not permissions.all_granted:
        guidance = generate_permission_guidance(permissions)
        details = "\n".join(permission_error_details(permissions))
        logger.error("Insufficient permissions detected")
        logger.error(guidance)
        raise PermissionDeniedError(f"Permission verification failed:\n{details}\n\n{guidance}")

    logger.debug("All permissions verified successfully")
    return permissions
