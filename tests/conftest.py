import os
from dataclasses import replace
from pathlib import Path

import pytest

# Test posture before any application module is imported
os.environ.setdefault("REMINDERS_ENV", "test")
os.environ.setdefault("REMINDERS_CHECK_PERMISSIONS_ON_START", "false")

from reminders_bridge.errors import ProcessExecutionError  # noqa: E402
from reminders_bridge.process import ProcessResult  # noqa: E402
from reminders_bridge.settings import Settings  # noqa: E402


def make_settings(**overrides) -> Settings:
    base = Settings(
        environment="test",
        debug=False,
        helper_path=None,
        helper_sha256=None,
        osascript="osascript",
        helper_timeout=30.0,
        script_timeout=30.0,
        check_permissions_on_start=False,
        log_level="INFO",
        cors_allow_origins=["*"],
    )
    return replace(base, **overrides)


def ok(stdout: str = "") -> ProcessResult:
    return ProcessResult(returncode=0, stdout=stdout, stderr="")


def failed(stderr: str, returncode: int = 1) -> ProcessResult:
    return ProcessResult(returncode=returncode, stdout="", stderr=stderr)


class FakeRunner:
    """
    Stand-in for run_process. `handler(argv, input_text)` returns a
    ProcessResult or raises; every call is recorded.
    """

    def __init__(self, handler=None):
        self.handler = handler or (lambda argv, input_text: ok())
        self.calls = []

    async def __call__(self, argv, *, timeout, input_text=None, check=False):
        self.calls.append({"argv": list(argv), "timeout": timeout, "input_text": input_text, "check": check})
        result = self.handler(list(argv), input_text)
        if check and not result.ok:
            raise ProcessExecutionError(
                f"{argv[0]} exited with code {result.returncode}: {result.stderr}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result

    @property
    def scripts(self):
        return [c["input_text"] for c in self.calls if c["input_text"] is not None]


def make_helper(directory: Path, content: bytes = b"#!/bin/sh\nexit 0\n", mode: int = 0o755) -> Path:
    """Create a fake helper binary at <directory>/dist/swift/bin/GetReminders."""
    bin_dir = directory / "dist" / "swift" / "bin"
    bin_dir.mkdir(parents=True, exist_ok=True)
    helper = bin_dir / "GetReminders"
    helper.write_bytes(content)
    helper.chmod(mode)
    return helper


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def helper(tmp_path):
    return make_helper(tmp_path)

