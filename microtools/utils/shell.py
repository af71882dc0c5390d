"""
Shell utilities for safe subprocess execution.

Commands are always executed from an explicit argument list with no shell
interpretation, so user-controlled filenames and URLs can never be parsed
as shell syntax. Children are killed on timeout and when the awaiting task
is cancelled.
"""

import asyncio
import shutil
import subprocess
from pathlib import Path
from typing import NamedTuple

from loguru import logger


class CommandResult(NamedTuple):
    """Result of a command execution."""
    returncode: int
    stdout: str
    stderr: str


async def run_command(
    cmd: list[str],
    timeout: float = 300,
    cwd: Path | None = None,
) -> CommandResult:
    """
    Run an external executable and capture its output.

    Args:
        cmd: Executable followed by its arguments
        timeout: Timeout in seconds (default: 5 minutes)
        cwd: Working directory for the command

    Returns:
        CommandResult with return code and decoded output

    Raises:
        asyncio.TimeoutError: If the command times out (the child is killed)
        FileNotFoundError: If the executable does not exist
        ValueError: If the command is not a non-empty list of strings
    """
    _validate_argv(cmd)

    logger.debug(f"Running command: {cmd}")

    process = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=cwd,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Command timed out after {timeout}s: {cmd[0]}")
        await _kill(process)
        raise
    except asyncio.CancelledError:
        logger.warning(f"Command cancelled, killing {cmd[0]} (pid {process.pid})")
        await _kill(process)
        raise

    result = CommandResult(
        returncode=process.returncode,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )

    logger.debug(f"Command completed with return code: {result.returncode}")
    if result.stderr:
        logger.debug(f"STDERR: {result.stderr[:200]}...")

    return result


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a child process and reap it."""
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()


def _validate_argv(cmd: list[str]) -> None:
    """
    Validate that a command is an argument vector.

    Args:
        cmd: Command to validate

    Raises:
        ValueError: If the command is not a non-empty list of strings
    """
    if not isinstance(cmd, (list, tuple)) or not cmd:
        raise ValueError("Command must be a non-empty argument list")
    if not all(isinstance(part, str) for part in cmd):
        raise ValueError("Command arguments must be strings")
    if any("\x00" in part for part in cmd):
        raise ValueError("Command arguments must not contain NUL bytes")


def check_command_available(cmd: str) -> bool:
    """
    Check if a command is available in the system.

    Args:
        cmd: Command name or path

    Returns:
        True if command is available, False otherwise
    """
    return shutil.which(cmd) is not None


def get_command_version(cmd: str, version_flag: str = "--version") -> str | None:
    """
    Get version information for a command.

    Args:
        cmd: Command to check
        version_flag: Flag to get version (default: --version)

    Returns:
        First line of the version output, or None if not available
    """
    try:
        result = subprocess.run(
            [cmd, version_flag],
            capture_output=True,
            text=True,
            timeout=10, check=False
        )
    except (subprocess.TimeoutExpired, OSError):
        return None
    if result.returncode != 0:
        return None
    output = result.stdout.strip() or result.stderr.strip()
    return output.splitlines()[0] if output else None
