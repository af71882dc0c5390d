"""
File compression and conversion endpoints.

Every handler works inside a request temp scope: uploads and outputs are
released when the handler fails, or by the streamed response once the body
has been sent.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from loguru import logger

from microtools.api.deps import get_temp_storage, get_tool_invoker
from microtools.api.responses import (
    buffer_response,
    json_error,
    stream_archive,
    stream_file,
    text_error,
)
from microtools.config import Settings, get_settings
from microtools.exceptions import ClientInputError, UnsupportedConversionError
from microtools.models.artifacts import ArchiveEntry, ToolFailure
from microtools.services.archive import compressed_image_entries
from microtools.services.images import clamp_quality
from microtools.services.invoker import ToolInvoker
from microtools.services.pdf import compress_pdf
from microtools.services.router import classify, normalize_extension, plan_job, run_job
from microtools.services.uploads import (
    ingest_upload,
    ingest_uploads,
    require_uploads,
    upload_extension,
)
from microtools.utils.fs import TempStorage

router = APIRouter()


@router.post("/image-compress")
async def image_compress(
    images: list[UploadFile] | None = File(None),
    quality: str | None = Form(None),
    settings: Settings = Depends(get_settings),
    storage: TempStorage = Depends(get_temp_storage),
):
    """
    Recompress a batch of images into a zip archive.

    Images that cannot be processed are bundled unchanged, so the archive
    always holds one entry per upload.
    """
    level = clamp_quality(quality)

    with storage.scope() as scope:
        try:
            uploads = require_uploads(images, "No images uploaded")
            artifacts = await ingest_uploads(uploads, scope, settings.MAX_FILE_SIZE)
        except ClientInputError as exc:
            return text_error(exc.status_code, str(exc))
        except OSError as exc:
            logger.error(f"Image upload could not be stored: {exc}")
            return text_error(500, "Image compression failed")

        logger.info(f"Compressing {len(artifacts)} images at quality {level}")
        entries = compressed_image_entries(artifacts, level)
        return stream_archive(entries, "compressed-images.zip", scope)


@router.post("/file-compress")
async def file_compress(
    file: UploadFile | None = File(None),
    settings: Settings = Depends(get_settings),
    storage: TempStorage = Depends(get_temp_storage),
):
    """Wrap a single file in a zip archive under its original name."""
    with storage.scope() as scope:
        try:
            upload = require_uploads(file)[0]
            artifact = await ingest_upload(upload, scope, settings.MAX_FILE_SIZE)
        except ClientInputError as exc:
            return text_error(exc.status_code, str(exc))
        except OSError as exc:
            logger.error(f"Upload could not be stored: {exc}")
            return text_error(500, "File compression failed")

        entry = ArchiveEntry(name=artifact.original_name, path=artifact.temp_path)
        return stream_archive([entry], f"{artifact.original_name}.zip", scope)


@router.post("/pdf-compress")
async def pdf_compress(
    file: UploadFile | None = File(None),
    level: str | None = Form(None),
    settings: Settings = Depends(get_settings),
    storage: TempStorage = Depends(get_temp_storage),
    invoker: ToolInvoker = Depends(get_tool_invoker),
):
    """Distill a PDF with a low/medium/high quality preset."""
    with storage.scope() as scope:
        try:
            upload = require_uploads(file, "No PDF uploaded")[0]
            artifact = await ingest_upload(upload, scope, settings.MAX_FILE_SIZE)
        except ClientInputError as exc:
            return text_error(exc.status_code, str(exc))
        except OSError as exc:
            logger.error(f"PDF upload could not be stored: {exc}")
            return text_error(500, "PDF compression failed")

        if artifact.extension != "pdf" and artifact.mime_hint != "application/pdf":
            return text_error(400, "Only PDF files can be compressed")

        output = scope.allocate("compressed", ".pdf")
        result = await compress_pdf(invoker, artifact.temp_path, output, level)
        if isinstance(result, ToolFailure):
            return text_error(500, "PDF compression failed")

        return stream_file(result.output_path, "application/pdf", "compressed.pdf", scope)


@router.post("/file-convert")
async def file_convert(
    file: UploadFile | None = File(None),
    target: str | None = Form(None),
    settings: Settings = Depends(get_settings),
    storage: TempStorage = Depends(get_temp_storage),
    invoker: ToolInvoker = Depends(get_tool_invoker),
):
    """
    Convert a file to another format.

    Supported pairs: jpg/jpeg/png/webp to jpg/png/webp (in-process),
    mp4/mp3/wav among themselves (FFmpeg) and office documents to pdf
    (LibreOffice). Other pairs are rejected before anything is stored.
    """
    try:
        upload = require_uploads(file)[0]
        target = normalize_extension(target)
        if not target:
            return json_error(400, "Target format is required")
        classify(upload_extension(upload), target)
    except UnsupportedConversionError as exc:
        logger.info(f"Rejected conversion: {exc}")
        return json_error(400, "Unsupported conversion", source=exc.details["source"], target=exc.details["target"])
    except ClientInputError as exc:
        return json_error(exc.status_code, str(exc))

    with storage.scope() as scope:
        try:
            artifact = await ingest_upload(upload, scope, settings.MAX_FILE_SIZE)
        except ClientInputError as exc:
            return json_error(exc.status_code, str(exc))
        except OSError as exc:
            logger.error(f"Upload could not be stored: {exc}")
            return json_error(500, "Conversion failed")

        job = plan_job(artifact, target, scope)
        result = await run_job(job, invoker)
        if isinstance(result, ToolFailure):
            return json_error(500, "Conversion failed")

        filename = f"{artifact.base_name}.{job.target_extension}"
        if result.buffer is not None:
            return buffer_response(result.buffer, "application/octet-stream", filename)
        return stream_file(result.output_path, "application/octet-stream", filename, scope)
