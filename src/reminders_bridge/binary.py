"""
Location and security validation of the GetReminders helper binary.

A candidate path is accepted only when every check passes, in this order:
absolute path, no '..' segment, inside an allowed directory, exists, is a
regular file, within the size ceiling, executable, and (when configured)
matching the expected sha256 digest.
"""
from __future__ import annotations

import hashlib
import logging
import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePath
from typing import Iterable, List, Optional, Tuple

from .errors import BinaryValidationError
from .settings import Settings

logger = logging.getLogger(__name__)

HELPER_NAME = "GetReminders"
PROJECT_NAME = "reminders-bridge"
PROJECT_MARKER = "pyproject.toml"
MAX_SEARCH_DEPTH = 10

# Relative to the project root, in order of preference.
HELPER_DIRS = ("dist/swift/bin", "src/swift/bin", "swift/bin")

_MIB = 1024 * 1024


@dataclass(frozen=True)
class BinarySecurityConfig:
    """
    Rules a helper binary must satisfy.

    - max_file_size: size ceiling in bytes
    - allowed_paths: directory fragments; the normalized path must contain one of them
    - require_absolute_path: reject relative candidates
    - expected_hash: sha256 hex digest the file must match, when set
    """

    max_file_size: int = 50 * _MIB
    allowed_paths: Tuple[str, ...] = ("/dist/swift/bin/", "/src/swift/bin/", "/swift/bin/")
    require_absolute_path: bool = True
    expected_hash: Optional[str] = None


@dataclass
class BinaryValidationResult:
    is_valid: bool
    hash: Optional[str] = None
    errors: List[str] = field(default_factory=list)


# PUBLIC_INTERFACE
def get_environment_binary_config(settings: Settings) -> BinarySecurityConfig:
    """Security preset for the deployment posture in `settings`."""
    base = BinarySecurityConfig()
    if settings.environment == "test":
        return replace(base, require_absolute_path=False, max_file_size=100 * _MIB)
    if settings.environment == "development":
        return replace(base, max_file_size=100 * _MIB)
    return replace(base, max_file_size=50 * _MIB, expected_hash=settings.helper_sha256)


def validate_binary_path(binary_path: str, config: BinarySecurityConfig) -> None:
    """Raise BinaryValidationError for the first failing path/file check."""
    if config.require_absolute_path and not os.path.isabs(binary_path):
        raise BinaryValidationError("Binary path must be absolute", "INVALID_PATH")

    if ".." in PurePath(binary_path).parts:
        raise BinaryValidationError("Path traversal detected in binary path", "PATH_TRAVERSAL")

    normalized = os.path.normpath(binary_path)
    if normalized != binary_path:
        logger.debug("Path normalized from %s to %s", binary_path, normalized)

    if not any(allowed in normalized for allowed in config.allowed_paths):
        raise BinaryValidationError("Binary path not in allowed directories", "FORBIDDEN_PATH")

    if not os.path.exists(normalized):
        raise BinaryValidationError(f"Binary file not found: {normalized}", "FILE_NOT_FOUND")

    if not os.path.isfile(normalized):
        raise BinaryValidationError("Binary path does not point to a file", "NOT_A_FILE")

    size = os.stat(normalized).st_size
    if size > config.max_file_size:
        raise BinaryValidationError(f"Binary file too large: {size} bytes", "FILE_TOO_LARGE")

    if not os.access(normalized, os.X_OK):
        raise BinaryValidationError("Binary file is not executable", "NOT_EXECUTABLE")


def calculate_binary_hash(binary_path: str) -> str:
    digest = hashlib.sha256()
    try:
        with open(binary_path, "rb") as f:
            for block in iter(lambda: f.read(65536), b""):
                digest.update(block)
    except OSError as exc:
        raise BinaryValidationError(
            f"Failed to calculate binary hash: {exc}", "HASH_CALCULATION_FAILED"
        ) from exc
    return digest.hexdigest()


# PUBLIC_INTERFACE
def validate_binary_security(binary_path: str, config: BinarySecurityConfig) -> BinaryValidationResult:
    """
    Run every check against `binary_path` and collect the outcome.

    Returns:
        BinaryValidationResult; `errors` holds 'CODE: message' strings and
        `is_valid` is True only when there are none.
    """
    result = BinaryValidationResult(is_valid=False)
    try:
        validate_binary_path(binary_path, config)
        result.hash = calculate_binary_hash(binary_path)
        if config.expected_hash and result.hash != config.expected_hash.lower():
            logger.debug("Binary integrity check failed: expected %s, actual %s", config.expected_hash, result.hash)
            raise BinaryValidationError("Binary integrity check failed - hash mismatch", "HASH_MISMATCH")
    except BinaryValidationError as exc:
        result.errors.append(f"{exc.code}: {exc}")

    result.is_valid = not result.errors
    if result.is_valid:
        logger.debug("Binary security validation passed for %s (sha256 %s)", binary_path, result.hash)
    return result


def find_secure_binary_path(
    candidates: Iterable[str],
    config: BinarySecurityConfig,
) -> Tuple[Optional[str], Optional[BinaryValidationResult]]:
    """First candidate passing validation, with its result; (None, last result) otherwise."""
    last: Optional[BinaryValidationResult] = None
    for candidate in candidates:
        logger.debug("Validating helper candidate: %s", candidate)
        last = validate_binary_security(candidate, config)
        if last.is_valid:
            return candidate, last
        logger.debug("Helper candidate rejected: %s", ", ".join(last.errors))
    return None, last


def _is_project_root(directory: Path) -> bool:
    marker = directory / PROJECT_MARKER
    if not marker.is_file():
        return False
    try:
        with marker.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.debug("Failed to read %s: %s", marker, exc)
        return False
    project = data.get("project")
    return isinstance(project, dict) and project.get("name") == PROJECT_NAME


# PUBLIC_INTERFACE
def find_project_root(start: Optional[Path] = None, max_depth: int = MAX_SEARCH_DEPTH) -> Path:
    """
    Walk upward from `start` (default: this package's directory) to the
    directory whose pyproject.toml declares this project.

    When no such directory is found within `max_depth` levels, the last
    directory visited is returned.
    """
    current = (start or Path(__file__).resolve().parent).resolve()
    for _ in range(max_depth + 1):
        if _is_project_root(current):
            logger.debug("Project root found at: %s", current)
            return current
        if current.parent == current:
            break
        current = current.parent
    logger.debug("Project root not found within %d levels, using %s", max_depth, current)
    return current


def candidate_binary_paths(project_root: Path, explicit: Optional[str] = None) -> List[str]:
    paths = [explicit] if explicit else []
    paths.extend(str(project_root / sub / HELPER_NAME) for sub in HELPER_DIRS)
    return paths


# PUBLIC_INTERFACE
def resolve_binary_path(settings: Settings, start: Optional[Path] = None) -> str:
    """
    Locate the helper binary.

    Returns the first candidate that passes every security check. When none
    does, logs a security warning and returns the conventional dist path; the
    hard failure happens later in `ensure_binary_usable`.
    """
    root = find_project_root(start)
    config = get_environment_binary_config(settings)
    path, result = find_secure_binary_path(candidate_binary_paths(root, settings.helper_path), config)
    if path is not None:
        logger.debug("Secure helper binary found at: %s", path)
        return path

    details = "; ".join(result.errors) if result else "No valid binary found"
    logger.error("Binary security validation failed: %s", details)
    fallback = str(root / HELPER_DIRS[0] / HELPER_NAME)
    logger.warning("Using unvalidated binary path: %s", fallback)
    logger.warning("SECURITY WARNING: Binary integrity could not be verified")
    return fallback


# PUBLIC_INTERFACE
def ensure_binary_usable(binary_path: str) -> None:
    """
    Fail fast before invoking the helper when it is missing or not executable.

    Raises:
        BinaryValidationError with code BINARY_NOT_FOUND or BINARY_NOT_EXECUTABLE.
    """
    if not os.path.isfile(binary_path):
        raise BinaryValidationError(
            f"Swift binary not found at {binary_path}. Build GetReminders into dist/swift/bin "
            "or point REMINDERS_HELPER_PATH at an existing binary.",
            "BINARY_NOT_FOUND",
        )
    if not os.access(binary_path, os.X_OK):
        raise BinaryValidationError(
            f'Swift binary is not executable. Run: chmod +x "{binary_path}"',
            "BINARY_NOT_EXECUTABLE",
        )
