"""Asynchronous steamcmd process runner with live line streaming."""

import asyncio
import logging
import os
import re
from collections.abc import Callable
from pathlib import Path

from ..config import settings
from ..models import LaunchFailure, RunResult

logger = logging.getLogger(__name__)

# CSI sequences (ESC [ ... final byte) and two-byte ESC sequences
ANSI_ESCAPE = re.compile(r"\x1b(?:\[[0-?]*[ -/]*[@-~]|[@-Z\\-_])")


def strip_ansi(text: str) -> str:
    """Remove ANSI color and control sequences."""
    return ANSI_ESCAPE.sub("", text)


class ProcessRunner:
    """Run a subprocess, streaming stdout and stderr line by line."""

    def __init__(
        self,
        terminal_type: str | None = None,
        stderr_prefix: str | None = None,
        stream_limit: int | None = None,
    ):
        self.terminal_type = terminal_type or settings.terminal_type
        self.stderr_prefix = stderr_prefix if stderr_prefix is not None else settings.stderr_prefix
        self.stream_limit = stream_limit or settings.stream_limit_bytes

    def _environment(self) -> dict[str, str]:
        env = dict(os.environ)
        env["TERM"] = self.terminal_type
        return env

    async def run(
        self,
        executable: Path,
        args: list[str],
        cwd: Path | None = None,
        on_output_line: Callable[[str], None] | None = None,
    ) -> RunResult:
        """Run executable with args and wait for it to exit.

        Lines are passed to on_output_line as they arrive, after ANSI
        stripping; stderr lines carry the stderr prefix. The process is never
        killed: cancelling the awaiting task leaves it running to completion.

        Raises:
            LaunchFailure: If the process could not be spawned.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                str(executable),
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd is not None else None,
                env=self._environment(),
                limit=self.stream_limit,
            )
        except OSError as e:
            raise LaunchFailure(
                f"Could not start {executable}: {e}",
                os_error=e,
                context={"executable": str(executable)},
            ) from e

        logger.debug(f"Started {executable} (pid {process.pid})")
        lines: list[str] = []

        async def pump(stream: asyncio.StreamReader, prefix: str) -> None:
            split = False
            while True:
                try:
                    raw = await stream.readuntil(b"\n")
                except asyncio.IncompleteReadError as e:
                    raw = e.partial
                    chunk_split = False
                except asyncio.LimitOverrunError as e:
                    # Overlong line: the data stays buffered, pass it on in pieces
                    raw = await stream.read(max(e.consumed, 1))
                    chunk_split = True
                else:
                    chunk_split = False
                if not raw:
                    break

                line = strip_ansi(raw.decode("utf-8", errors="replace").rstrip("\r\n"))
                if split and not chunk_split and not line:
                    # terminator of a line already passed on in pieces
                    split = False
                    continue
                split = chunk_split
                if prefix:
                    line = f"{prefix}{line}"
                lines.append(line)
                if on_output_line is not None:
                    on_output_line(line)

        async def complete() -> int:
            await asyncio.gather(
                pump(process.stdout, ""),
                pump(process.stderr, self.stderr_prefix),
            )
            return await process.wait()

        exit_code = await asyncio.shield(asyncio.ensure_future(complete()))
        logger.debug(f"{executable} exited with code {exit_code}")

        return RunResult(exit_code=exit_code, output="\n".join(lines))
