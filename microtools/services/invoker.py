"""
External tool invoker.

A uniform, awaitable wrapper around the external executables the service
delegates to. Each tool class has its own concurrency gate so a burst of
requests cannot spawn an unbounded number of encoders.
"""

import asyncio
from dataclasses import replace
from enum import Enum
from pathlib import Path

from loguru import logger

from microtools.config import Settings
from microtools.exceptions import ErrorTypes
from microtools.models.artifacts import ToolFailure, ToolInvocationResult, ToolSuccess
from microtools.utils.shell import run_command


class Tool(str, Enum):
    """External executables the service shells out to."""

    GHOSTSCRIPT = "ghostscript"
    FFMPEG = "ffmpeg"
    SOFFICE = "soffice"
    YTDLP = "yt-dlp"


class ToolInvoker:
    """
    Runs external tools with explicit argument lists.

    Every invocation resolves to a ``ToolSuccess`` or a ``ToolFailure``;
    there is no retry policy, the first failure is terminal.
    """

    def __init__(
        self,
        executables: dict[Tool, str],
        max_concurrent: int = 4,
        timeout: float = 300,
    ):
        """
        Initialize the invoker.

        Args:
            executables: Executable path or name per tool
            max_concurrent: Concurrent processes allowed per tool
            timeout: Per-invocation timeout in seconds
        """
        self.executables = dict(executables)
        self.timeout = timeout
        self._gates = {tool: asyncio.Semaphore(max_concurrent) for tool in Tool}

    @classmethod
    def from_settings(cls, settings: Settings) -> "ToolInvoker":
        """Build an invoker from application settings."""
        return cls(
            executables={
                Tool.GHOSTSCRIPT: settings.GHOSTSCRIPT_PATH,
                Tool.FFMPEG: settings.FFMPEG_PATH,
                Tool.SOFFICE: settings.SOFFICE_PATH,
                Tool.YTDLP: settings.YTDLP_PATH,
            },
            max_concurrent=settings.MAX_CONCURRENT_PER_TOOL,
            timeout=settings.TOOL_TIMEOUT,
        )

    async def invoke(self, tool: Tool, args: list[str]) -> ToolInvocationResult:
        """
        Run a tool and wait for it.

        Args:
            tool: Which tool to run
            args: Arguments after the executable

        Returns:
            ToolSuccess with captured output, or ToolFailure with a diagnostic
        """
        cmd = [self.executables[tool], *args]

        async with self._gates[tool]:
            try:
                result = await run_command(cmd, timeout=self.timeout)
            except asyncio.TimeoutError:
                return ToolFailure(
                    diagnostic=f"{tool.value} timed out after {self.timeout} seconds",
                    error_type=ErrorTypes.TIMEOUT_ERROR,
                )
            except FileNotFoundError:
                logger.error(f"Tool not found: {tool.value} at {cmd[0]}")
                return ToolFailure(
                    diagnostic=f"{tool.value} executable not found: {cmd[0]}",
                    error_type=ErrorTypes.TOOL_NOT_FOUND,
                )
            except OSError as exc:
                return ToolFailure(
                    diagnostic=f"{tool.value} could not be started: {exc}",
                    error_type=ErrorTypes.TOOL_FAILED,
                )

        if result.returncode != 0:
            return ToolFailure(
                diagnostic=result.stderr.strip() or result.stdout.strip() or "no output",
                error_type=ErrorTypes.TOOL_FAILED,
                returncode=result.returncode,
            )

        return ToolSuccess(stdout=result.stdout, stderr=result.stderr)


def attach_output(result: ToolInvocationResult, output_path: Path) -> ToolInvocationResult:
    """
    Bind the produced file to a successful result.

    Some tools exit 0 without writing anything (LibreOffice on an
    unreadable document, for one), so a missing product is a failure.
    """
    if isinstance(result, ToolFailure):
        return result
    if not output_path.is_file():
        return ToolFailure(
            diagnostic=f"expected output was not produced: {output_path.name}",
            error_type=ErrorTypes.MISSING_OUTPUT,
        )
    return replace(result, output_path=output_path)
