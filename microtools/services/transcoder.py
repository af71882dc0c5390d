"""
Audio/video transcoding through FFmpeg.
"""

from pathlib import Path

from loguru import logger

from microtools.models.artifacts import ToolFailure, ToolInvocationResult
from microtools.services.invoker import Tool, ToolInvoker, attach_output


def build_transcode_args(input_file: Path, output_file: Path) -> list[str]:
    """FFmpeg arguments; the target format is inferred from the output suffix."""
    return ["-y", "-i", str(input_file), str(output_file)]


async def transcode(invoker: ToolInvoker, input_file: Path, output_file: Path) -> ToolInvocationResult:
    """
    Transcode a media file.

    Args:
        invoker: Tool invoker
        input_file: Source media
        output_file: Allocated output path carrying the target extension

    Returns:
        ToolSuccess bound to ``output_file``, or ToolFailure
    """
    logger.info(f"Transcoding {input_file.suffix} -> {output_file.suffix}")
    result = await invoker.invoke(Tool.FFMPEG, build_transcode_args(input_file, output_file))
    result = attach_output(result, output_file)
    if isinstance(result, ToolFailure):
        logger.error(f"Transcoding failed: {result.diagnostic[-500:]}")
    return result
