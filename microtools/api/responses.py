"""
Response streaming helpers.

Three output modes: in-memory buffers, on-disk files streamed in chunks,
and zip archives built while they are sent. Streamed modes take ownership
of the request's temp scope and release it only once the body has drained
or failed, never when the handler returns.
"""

import re
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from fastapi import Response
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from loguru import logger
from starlette.background import BackgroundTask

from microtools.models.artifacts import ArchiveEntry
from microtools.services.archive import iter_zip
from microtools.utils.fs import TempScope, sanitize_filename

CHUNK_SIZE = 64 * 1024

_UNSAFE_HEADER_CHARS = re.compile(r"[^A-Za-z0-9._ ()+-]")


def content_disposition(filename: str) -> str:
    """
    Build an attachment Content-Disposition header.

    CR, LF, quotes, backslashes and non-ASCII characters are replaced so a
    client-supplied name cannot inject headers.
    """
    safe = _UNSAFE_HEADER_CHARS.sub("_", sanitize_filename(filename, default="download"))
    return f'attachment; filename="{safe}"'


def text_error(status_code: int, message: str) -> PlainTextResponse:
    """Plain-text error body for file endpoints."""
    return PlainTextResponse(message, status_code=status_code)


def json_error(status_code: int, message: str, **extra) -> JSONResponse:
    """``{"error": ...}`` body for JSON endpoints."""
    return JSONResponse(status_code=status_code, content={**extra, "error": message})


def buffer_response(data: bytes, media_type: str, filename: str | None = None) -> Response:
    """
    Send an in-memory result.

    Args:
        data: Response body
        media_type: Content-Type
        filename: If given, the body is offered as a download under this name

    Returns:
        Response with explicit content headers
    """
    headers = {"Content-Disposition": content_disposition(filename)} if filename else None
    return Response(content=data, media_type=media_type, headers=headers)


def _iter_file(path: Path, on_close: Callable[[], None]) -> Iterator[bytes]:
    try:
        with open(path, "rb") as fh:
            while chunk := fh.read(CHUNK_SIZE):
                yield chunk
    finally:
        on_close()


def _guarded(chunks: Iterator[bytes], on_close: Callable[[], None]) -> Iterator[bytes]:
    try:
        yield from chunks
    except Exception as exc:
        logger.error(f"Archive stream failed: {exc}")
        raise
    finally:
        on_close()


def stream_file(path: Path, media_type: str, filename: str, scope: TempScope) -> StreamingResponse:
    """
    Stream an on-disk result and release the request's temp files afterwards.

    Args:
        path: Result file inside temp storage
        media_type: Content-Type
        filename: Download name
        scope: Request scope; ownership passes to the response

    Returns:
        StreamingResponse whose body reads ``path`` in chunks
    """
    size = path.stat().st_size
    release = scope.defer()
    return StreamingResponse(
        _iter_file(path, release),
        media_type=media_type,
        headers={
            "Content-Disposition": content_disposition(filename),
            "Content-Length": str(size),
        },
        background=BackgroundTask(release),
    )


def stream_archive(entries: Iterable[ArchiveEntry], filename: str, scope: TempScope) -> StreamingResponse:
    """
    Stream a zip archive built entry by entry.

    Args:
        entries: Lazily produced archive entries
        filename: Download name
        scope: Request scope; ownership passes to the response

    Returns:
        StreamingResponse with ``application/zip`` body
    """
    release = scope.defer()
    return StreamingResponse(
        _guarded(iter_zip(entries), release),
        media_type="application/zip",
        headers={"Content-Disposition": content_disposition(filename)},
        background=BackgroundTask(release),
    )
