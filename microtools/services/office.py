"""
Document conversion through LibreOffice running headless.
"""

from pathlib import Path

from loguru import logger

from microtools.models.artifacts import ToolFailure, ToolInvocationResult
from microtools.services.invoker import Tool, ToolInvoker, attach_output


def build_convert_args(input_file: Path, target: str, output_dir: Path, profile_dir: Path) -> list[str]:
    """
    Build soffice arguments for a headless conversion.

    Each call gets its own user profile; instances sharing one profile hand
    off to each other and exit without converting.

    Args:
        input_file: Document to convert
        target: Target format, e.g. ``pdf``
        output_dir: Directory soffice writes into
        profile_dir: Private LibreOffice user installation directory

    Returns:
        Argument list, without the executable
    """
    return [
        f"-env:UserInstallation={profile_dir.resolve().as_uri()}",
        "--headless",
        "--convert-to", target,
        "--outdir", str(output_dir),
        str(input_file),
    ]


def expected_output(input_file: Path, target: str, output_dir: Path) -> Path:
    """soffice names its product after the input's base name."""
    return output_dir / f"{input_file.stem}.{target}"


async def convert_document(
    invoker: ToolInvoker,
    input_file: Path,
    target: str,
    output_dir: Path,
    profile_dir: Path,
) -> ToolInvocationResult:
    """
    Convert an office document.

    Args:
        invoker: Tool invoker
        input_file: Uploaded document, stored under a generated name
        target: Target format
        output_dir: Directory for the product
        profile_dir: Per-request user profile, released with the request

    Returns:
        ToolSuccess bound to the produced file, or ToolFailure
    """
    logger.info(f"Converting document {input_file.suffix} -> {target}")
    result = await invoker.invoke(Tool.SOFFICE, build_convert_args(input_file, target, output_dir, profile_dir))
    result = attach_output(result, expected_output(input_file, target, output_dir))
    if isinstance(result, ToolFailure):
        logger.error(f"Document conversion failed: {result.diagnostic}")
    return result
