"""
Streaming zip bundles.

Entries are appended one at a time to a ``zipfile.ZipFile`` writing into a
write-only sink; whatever the compressor has produced so far is yielded
after each chunk, so a bundle is never materialised in full.
"""

import zipfile
from collections.abc import Iterable, Iterator
from pathlib import PurePosixPath

from loguru import logger
from PIL import Image

from microtools.models.artifacts import ArchiveEntry, UploadedArtifact
from microtools.services.images import recompress_image
from microtools.utils.fs import sanitize_filename

CHUNK_SIZE = 64 * 1024
ZIP64_THRESHOLD = 2 ** 31 - 1


def _unique_name(name: str, seen: set[str]) -> str:
    """Suffix ``-1``, ``-2``, ... onto the stem until ``name`` is unused."""
    candidate = name
    path = PurePosixPath(name)
    counter = 1
    while candidate in seen:
        candidate = f"{path.stem}-{counter}{path.suffix}"
        counter += 1
    seen.add(candidate)
    return candidate


class _ZipSink:
    """Write-only buffer; zipfile falls back to data descriptors when it cannot seek."""

    def __init__(self):
        self._chunks: list[bytes] = []

    def write(self, data) -> int:
        self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def iter_zip(entries: Iterable[ArchiveEntry], compresslevel: int = 9) -> Iterator[bytes]:
    """
    Build a zip archive incrementally.

    Args:
        entries: Ordered entries; each carries either in-memory data or a file path
            (repeated names get a numeric suffix)
        compresslevel: DEFLATE level

    Yields:
        Consecutive chunks of the archive
    """
    sink = _ZipSink()
    seen: set[str] = set()
    with zipfile.ZipFile(sink, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=compresslevel) as archive:
        for entry in entries:
            name = _unique_name(entry.name, seen)
            if entry.data is not None:
                archive.writestr(name, entry.data)
            elif entry.path is not None:
                large = entry.path.stat().st_size >= ZIP64_THRESHOLD
                with entry.path.open("rb") as src, archive.open(name, "w", force_zip64=large) as dst:
                    for chunk in iter(lambda: src.read(CHUNK_SIZE), b""):
                        dst.write(chunk)
                        data = sink.drain()
                        if data:
                            yield data
            else:
                raise ValueError(f"Archive entry has no content: {entry.name}")

            data = sink.drain()
            if data:
                yield data

    data = sink.drain()
    if data:
        yield data


def compressed_image_entries(
    artifacts: Iterable[UploadedArtifact],
    quality: int,
) -> Iterator[ArchiveEntry]:
    """
    Recompress each uploaded image into an archive entry.

    An image that cannot be processed is bundled unchanged under its original
    name, so the archive always has one entry per upload.

    Args:
        artifacts: Ingested images, in upload order
        quality: Clamped encoder quality

    Yields:
        ``<base>-compressed.<ext>`` entries, or the original file on failure
    """
    for artifact in artifacts:
        ext = artifact.extension
        try:
            data = recompress_image(artifact.temp_path, ext, quality)
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            logger.warning(f"Recompression failed, bundling original: {exc}")
            yield ArchiveEntry(name=sanitize_filename(artifact.original_name), path=artifact.temp_path)
        else:
            name = sanitize_filename(f"{artifact.base_name}-compressed.{ext}")
            yield ArchiveEntry(name=name, data=data)
