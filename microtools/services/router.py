"""
Conversion router.

Classifies a (source, target) extension pair into the engine that handles
it and runs the resulting job. Unsupported pairs are rejected before any
temp file is created for the job.
"""

from fastapi.concurrency import run_in_threadpool
from loguru import logger
from PIL import Image

from microtools.exceptions import ErrorTypes, UnsupportedConversionError
from microtools.models.artifacts import (
    ConversionCategory,
    ConversionJob,
    ToolFailure,
    ToolInvocationResult,
    ToolSuccess,
    UploadedArtifact,
)
from microtools.services.images import convert_image
from microtools.services.invoker import ToolInvoker
from microtools.services.office import convert_document, expected_output
from microtools.services.transcoder import transcode
from microtools.utils.fs import TempScope

IMAGE_SOURCES = frozenset({"jpg", "jpeg", "png", "webp"})
IMAGE_TARGETS = frozenset({"jpg", "png", "webp"})
MEDIA_FORMATS = frozenset({"mp4", "mp3", "wav"})
DOCUMENT_SOURCES = frozenset({
    "doc", "docx", "odt", "rtf", "txt",
    "ppt", "pptx", "odp",
    "xls", "xlsx", "ods", "csv",
    "html", "htm",
})
DOCUMENT_TARGETS = frozenset({"pdf"})


def normalize_extension(value: str | None) -> str:
    """Lower-case an extension and drop a leading dot."""
    return (value or "").strip().lower().lstrip(".")


def classify(source: str | None, target: str | None) -> ConversionCategory:
    """
    Decide which engine converts ``source`` into ``target``.

    Args:
        source: Source extension
        target: Target extension

    Returns:
        The conversion category

    Raises:
        UnsupportedConversionError: If no engine handles the pair
    """
    source = normalize_extension(source)
    target = normalize_extension(target)

    if source in IMAGE_SOURCES and target in IMAGE_TARGETS:
        return ConversionCategory.IMAGE
    if source in MEDIA_FORMATS and target in MEDIA_FORMATS:
        return ConversionCategory.MEDIA
    if source in DOCUMENT_SOURCES and target in DOCUMENT_TARGETS:
        return ConversionCategory.DOCUMENT

    raise UnsupportedConversionError(source, target)


def plan_job(artifact: UploadedArtifact, target: str, scope: TempScope) -> ConversionJob:
    """
    Build a conversion job for an ingested upload.

    Output paths are allocated (or, for soffice, predicted and adopted) in
    the request scope so they are released with it.

    Args:
        artifact: Ingested source file
        target: Target extension
        scope: Request temp scope

    Returns:
        The planned job
    """
    target = normalize_extension(target)
    category = classify(artifact.extension, target)
    job = ConversionJob(
        source_extension=artifact.extension,
        target_extension=target,
        source_path=artifact.temp_path,
        category=category,
    )

    if category is ConversionCategory.MEDIA:
        job.output_path = scope.allocate("converted", f".{target}")
    elif category is ConversionCategory.DOCUMENT:
        output_dir = artifact.temp_path.parent
        job.output_path = scope.adopt(expected_output(artifact.temp_path, target, output_dir))
        job.options["profile_dir"] = scope.allocate("soffice-profile")

    return job


async def run_job(job: ConversionJob, invoker: ToolInvoker) -> ToolInvocationResult:
    """
    Execute a planned job on its engine.

    Image jobs run on Pillow in the threadpool and produce a buffer; media and
    document jobs run an external tool and produce a file.

    Args:
        job: Planned job
        invoker: Tool invoker

    Returns:
        ToolSuccess or ToolFailure; transform exceptions are folded into ToolFailure
    """
    logger.info(f"Running {job.category.value} conversion {job.source_extension} -> {job.target_extension}")

    if job.category is ConversionCategory.IMAGE:
        try:
            data = await run_in_threadpool(convert_image, job.source_path, job.target_extension)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            logger.error(f"Image conversion failed: {exc}")
            return ToolFailure(diagnostic=str(exc), error_type=ErrorTypes.TRANSFORM_FAILED)
        return ToolSuccess(buffer=data)

    if job.category is ConversionCategory.MEDIA:
        return await transcode(invoker, job.source_path, job.output_path)

    return await convert_document(
        invoker,
        job.source_path,
        job.target_extension,
        job.output_path.parent,
        job.options["profile_dir"],
    )
