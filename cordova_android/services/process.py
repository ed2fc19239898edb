"""
Subprocess execution for the external Android toolchain.

Gradle, adb, the emulator and the JDK are all driven through ``run_command``.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path

from ..core.exceptions import BuildToolError
from ..core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Outcome of a finished subprocess."""

    args: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        """Combined stdout and stderr, as shown to users on failure."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


async def run_command(
    args: list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
    check: bool = True,
) -> CommandResult:
    """Run a command asynchronously and capture its output.

    Args:
        args: Program and arguments.
        cwd: Working directory for the child process.
        env: Extra environment variables merged on top of ``os.environ``.
        timeout: Seconds before the process is killed; None waits forever.
        check: Raise on non-zero exit status.

    Returns:
        The captured result.

    Raises:
        BuildToolError: If ``check`` is set and the command exits non-zero,
            or if the command times out.
        FileNotFoundError: If the program does not exist.
    """
    cmd_str = " ".join(args)
    logger.debug("Running command", command=cmd_str, cwd=str(cwd) if cwd else None)

    merged_env = {**os.environ, **env} if env else None
    process = await asyncio.create_subprocess_exec(
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise BuildToolError(
            message=f"Command timed out after {timeout}s",
            tool=Path(args[0]).name,
            returncode=-1,
            context={"command": cmd_str},
            cause=e,
        ) from e

    result = CommandResult(
        args=list(args),
        returncode=process.returncode or 0,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    logger.debug("Command completed", command=cmd_str, returncode=result.returncode)

    if check and result.returncode != 0:
        raise BuildToolError(
            message=f"Command failed: {cmd_str}",
            tool=Path(args[0]).name,
            returncode=result.returncode,
            output=result.output,
        )
    return result
