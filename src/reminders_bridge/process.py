from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from .errors import ProcessExecutionError, ProcessSpawnError, ProcessTimeoutError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 4096


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and decoded output of a finished process."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


# Signature shared by run_process and the fakes used in tests.
ProcessRunner = Callable[..., Awaitable[ProcessResult]]


async def _drain(stream: Optional[asyncio.StreamReader], chunks: List[bytes], label: str) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            return
        logger.debug("Received %s chunk (%d bytes)", label, len(chunk))
        chunks.append(chunk)


async def _feed(stdin: Optional[asyncio.StreamWriter], data: Optional[bytes]) -> None:
    if stdin is None:
        return
    try:
        if data:
            stdin.write(data)
            await stdin.drain()
    except (BrokenPipeError, ConnectionResetError):
        # Child exited before reading all of its input; its exit status tells the story.
        logger.debug("stdin closed early by child process")
    finally:
        stdin.close()


# PUBLIC_INTERFACE
async def run_process(
    argv: Sequence[str],
    *,
    timeout: float,
    input_text: Optional[str] = None,
    check: bool = False,
) -> ProcessResult:
    """
    Run a program with a discrete argument vector and a time limit.

    The program is never started through a shell. When `input_text` is given it
    is written to the child's stdin, which is how whole scripts are handed to an
    interpreter without placing them on the command line.

    Args:
        argv: Program followed by its arguments.
        timeout: Seconds allowed before the process is killed.
        input_text: Optional text delivered on stdin (UTF-8).
        check: Raise ProcessExecutionError on a non-zero exit instead of returning it.

    Returns:
        ProcessResult with the exit code and decoded stdout/stderr.

    Raises:
        ProcessSpawnError: the program is missing or cannot be executed.
        ProcessTimeoutError: the time limit expired; partial output is discarded.
        ProcessExecutionError: non-zero exit while `check` is set.
    """
    if not argv:
        raise ProcessSpawnError("No program given")

    program = argv[0]
    logger.debug("Spawning %s with %d argument(s)", program, len(argv) - 1)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE if input_text is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ProcessSpawnError(f"Could not start {program}: {exc}") from exc

    out_chunks: List[bytes] = []
    err_chunks: List[bytes] = []
    payload = input_text.encode("utf-8") if input_text is not None else None

    async def _communicate() -> int:
        await asyncio.gather(
            _feed(proc.stdin, payload),
            _drain(proc.stdout, out_chunks, "stdout"),
            _drain(proc.stderr, err_chunks, "stderr"),
        )
        return await proc.wait()

    try:
        returncode = await asyncio.wait_for(_communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        if proc.returncode is None:
            proc.kill()
        await proc.wait()
        logger.warning("%s timed out after %.1fs and was killed", program, timeout)
        raise ProcessTimeoutError(f"{program} timed out after {timeout:g}s") from None

    result = ProcessResult(
        returncode=returncode,
        stdout=b"".join(out_chunks).decode("utf-8", errors="replace"),
        stderr=b"".join(err_chunks).decode("utf-8", errors="replace"),
    )
    if check and not result.ok:
        logger.error("%s exited with code %d: %s", program, result.returncode, result.stderr.strip())
        raise ProcessExecutionError(
            f"{program} exited with code {result.returncode}: {result.stderr.strip()}",
            returncode=result.returncode,
            stderr=result.stderr,
        )
    return result
