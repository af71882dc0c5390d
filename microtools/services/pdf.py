"""
PDF compression service.

Distills PDFs through Ghostscript's pdfwrite device with one of its
quality presets.
"""

from pathlib import Path

from loguru import logger

from microtools.models.artifacts import ToolFailure, ToolInvocationResult
from microtools.services.invoker import Tool, ToolInvoker, attach_output

PDF_PRESETS = {
    "low": "/screen",
    "medium": "/ebook",
    "high": "/printer",
}
DEFAULT_PDF_PRESET = "/ebook"


def resolve_pdf_preset(level: str | None) -> str:
    """Map a compression level to a Ghostscript preset; unknown levels use /ebook."""
    if not level:
        return DEFAULT_PDF_PRESET
    return PDF_PRESETS.get(level.strip().lower(), DEFAULT_PDF_PRESET)


def build_distill_args(input_file: Path, output_file: Path, preset: str) -> list[str]:
    """
    Build Ghostscript arguments for a pdfwrite distillation.

    Args:
        input_file: PDF to compress
        output_file: Where Ghostscript writes the result
        preset: One of the ``-dPDFSETTINGS`` presets

    Returns:
        Argument list, without the executable
    """
    return [
        "-sDEVICE=pdfwrite",
        "-dCompatibilityLevel=1.4",
        f"-dPDFSETTINGS={preset}",
        "-dNOPAUSE",
        "-dQUIET",
        "-dBATCH",
        f"-sOutputFile={output_file}",
        str(input_file),
    ]


async def compress_pdf(
    invoker: ToolInvoker,
    input_file: Path,
    output_file: Path,
    level: str | None = "medium",
) -> ToolInvocationResult:
    """
    Compress a PDF with Ghostscript.

    Args:
        invoker: Tool invoker
        input_file: Uploaded PDF
        output_file: Allocated output path
        level: low, medium or high

    Returns:
        ToolSuccess bound to ``output_file``, or ToolFailure
    """
    preset = resolve_pdf_preset(level)
    logger.info(f"Compressing PDF with preset {preset}")

    result = await invoker.invoke(Tool.GHOSTSCRIPT, build_distill_args(input_file, output_file, preset))
    result = attach_output(result, output_file)
    if isinstance(result, ToolFailure):
        logger.error(f"PDF compression failed: {result.diagnostic}")
    return result
