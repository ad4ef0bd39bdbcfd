"""
Bash action execution.

A bash action runs as ``<shell> -c <command>`` in the event's working
directory. The hook context is written to the child's stdin as JSON and two
environment variables identify the project and session:

    SESSIONHOOKS_PROJECT_DIR   absolute project directory
    SESSIONHOOKS_SESSION_ID    session that triggered the hook

Exit code contract: 0 continue, 2 block (before-tool hooks only), anything
else is logged and ignored.
"""

import asyncio
import json
import logging
import os
from pathlib import Path

from sessionhooks.core.hooks.models import BashContext, BashResult

logger = logging.getLogger(__name__)

PROJECT_DIR_ENV = "SESSIONHOOKS_PROJECT_DIR"
SESSION_ID_ENV = "SESSIONHOOKS_SESSION_ID"

BLOCKING_EXIT_CODE = 2

_READ_CHUNK = 4096


async def _collect(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        chunks.append(chunk)


async def _feed_stdin(proc: asyncio.subprocess.Process, payload: bytes) -> None:
    """Write the context and close stdin. The child may never read it."""
    if proc.stdin is None:
        return
    try:
        proc.stdin.write(payload)
        await proc.stdin.drain()
    except (BrokenPipeError, ConnectionResetError):
        pass
    finally:
        proc.stdin.close()


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


async def execute_bash_action(
    command: str,
    timeout_ms: int,
    context: BashContext,
    project_dir: Path | str,
    shell: str = "bash",
) -> BashResult:
    """Run a shell command and return its exit code and output.

    Never raises for process problems: a spawn failure or a timeout comes
    back as ``exit_code == 1`` with an explanatory stderr.
    """
    env = {
        **os.environ,
        PROJECT_DIR_ENV: str(Path(project_dir).resolve()),
        SESSION_ID_ENV: context.session_id,
    }

    try:
        proc = await asyncio.create_subprocess_exec(
            shell, "-c", command,
            cwd=context.cwd,
            env=env,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error(f"Failed to spawn bash action {command!r}: {e}")
        return BashResult(exit_code=1, stdout="", stderr=str(e))

    stdout_chunks: list[bytes] = []
    stderr_chunks: list[bytes] = []
    payload = json.dumps(context.to_dict()).encode("utf-8")

    try:
        await asyncio.wait_for(
            asyncio.gather(
                _feed_stdin(proc, payload),
                _collect(proc.stdout, stdout_chunks),
                _collect(proc.stderr, stderr_chunks),
                proc.wait(),
            ),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Bash action timed out after {timeout_ms}ms: {command!r}")
        try:
            proc.terminate()
        except ProcessLookupError:
            pass
        return BashResult(
            exit_code=1,
            stdout=_decode(stdout_chunks),
            stderr=f"Command timed out after {timeout_ms}ms",
        )

    # A signal death reports a negative returncode; both it and None map to 1
    returncode = proc.returncode
    exit_code = returncode if returncode is not None and returncode >= 0 else 1
    return BashResult(
        exit_code=exit_code,
        stdout=_decode(stdout_chunks),
        stderr=_decode(stderr_chunks),
    )
