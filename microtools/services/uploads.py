"""
Upload ingestion.

Multipart parts are streamed in chunks to scope-allocated temp paths; the
client's filename is kept only as a label.
"""

from pathlib import Path

from fastapi import UploadFile
from loguru import logger

from microtools.exceptions import MissingUploadError, UploadTooLargeError
from microtools.models.artifacts import UploadedArtifact
from microtools.utils.fs import TempScope, safe_suffix, sanitize_filename

CHUNK_SIZE = 1024 * 1024


def require_uploads(
    files: UploadFile | list[UploadFile] | None,
    message: str = "No file uploaded",
) -> list[UploadFile]:
    """
    Normalise the file parameter of a request and reject empty submissions.

    Args:
        files: A single part, a list of parts or None
        message: Client-facing message when nothing was uploaded

    Returns:
        Non-empty list of parts that carry a filename

    Raises:
        MissingUploadError: If no usable file part was sent
    """
    if files is None:
        raise MissingUploadError(message)
    if not isinstance(files, list):
        files = [files]
    files = [upload for upload in files if upload is not None and upload.filename]
    if not files:
        raise MissingUploadError(message)
    return files


def upload_extension(upload: UploadFile) -> str:
    """Lower-case extension of a part's filename, without the dot."""
    return Path(sanitize_filename(upload.filename)).suffix.lower().lstrip(".")


async def ingest_upload(upload: UploadFile, scope: TempScope, max_size: int) -> UploadedArtifact:
    """
    Persist one uploaded part to temp storage.

    Args:
        upload: Multipart file part
        scope: Request temp scope that will own the file
        max_size: Maximum accepted size in bytes

    Returns:
        UploadedArtifact describing the stored file

    Raises:
        UploadTooLargeError: If the part exceeds ``max_size``
    """
    original_name = sanitize_filename(upload.filename)
    temp_path = scope.allocate("upload", safe_suffix(original_name))

    written = 0
    with open(temp_path, "wb") as fh:
        while chunk := await upload.read(CHUNK_SIZE):
            written += len(chunk)
            if written > max_size:
                logger.warning(f"Upload rejected, exceeds {max_size} bytes: {original_name}")
                raise UploadTooLargeError(max_size)
            fh.write(chunk)

    logger.debug(f"Ingested upload {original_name} ({written} bytes) -> {temp_path.name}")
    return UploadedArtifact(
        temp_path=temp_path,
        original_name=original_name,
        declared_size=written,
        mime_hint=upload.content_type,
    )


async def ingest_uploads(uploads: list[UploadFile], scope: TempScope, max_size: int) -> list[UploadedArtifact]:
    """Persist several parts, preserving their order."""
    return [await ingest_upload(upload, scope, max_size) for upload in uploads]
