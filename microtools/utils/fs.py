"""
Filesystem utilities for request-scoped temp files.

This module owns the temp working directory: it hands out collision-free
paths, tracks what each request created and guarantees deletion whatever
the outcome of the request.
"""

import re
import shutil
import time
import uuid
from collections.abc import Callable
from pathlib import Path

from loguru import logger

_SAFE_SUFFIX = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


def ensure_directory(path: str | Path) -> Path:
    """
    Ensure directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure

    Returns:
        Path object of the directory

    Raises:
        OSError: If directory cannot be created
    """
    path = Path(path)

    try:
        path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Directory ensured: {path}")
        return path
    except OSError as exc:
        logger.error(f"Failed to create directory {path}: {exc}")
        raise


def sanitize_filename(filename: str | None, default: str = "file") -> str:
    """
    Reduce a client-supplied filename to a safe display label.

    Path components, control characters and traversal sequences are removed.
    The result is never used to build filesystem paths.

    Args:
        filename: Original filename as sent by the client
        default: Label used when nothing usable remains

    Returns:
        Sanitized filename
    """
    if not filename:
        return default

    # Keep only the last path component (both Unix and Windows separators)
    for sep in ["/", "\\"]:
        filename = filename.split(sep)[-1]

    filename = "".join(char for char in filename if char.isprintable())
    filename = filename.replace("..", "").strip()

    if not filename or filename == ".":
        return default
    return filename


def safe_suffix(filename: str | None) -> str:
    """Return the filename's extension if it is a short alphanumeric one, else ''."""
    suffix = Path(sanitize_filename(filename)).suffix.lower()
    return suffix if _SAFE_SUFFIX.match(suffix) else ""


class TempStorage:
    """
    Allocator for temp artifacts inside a dedicated working directory.

    The directory is created lazily on first allocation. Generated names
    combine a prefix, a nanosecond timestamp and a random token, so
    concurrent requests never collide and no user-supplied text reaches
    the filesystem.
    """

    def __init__(self, root: str | Path):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """Working directory, created on first access."""
        return ensure_directory(self._root)

    def allocate(self, prefix: str = "tmp", suffix: str = "") -> Path:
        """
        Generate a unique path inside the working directory.

        Args:
            prefix: Short label for the artifact kind
            suffix: Extension including the dot; dropped if not alphanumeric

        Returns:
            Path that does not exist yet
        """
        if suffix and not _SAFE_SUFFIX.match(suffix):
            suffix = ""
        name = f"{prefix}-{time.time_ns()}-{uuid.uuid4().hex[:12]}{suffix.lower()}"
        return self.root / name

    def release(self, path: str | Path) -> None:
        """
        Delete a temp artifact.

        Missing files are ignored and deletion errors are logged, never raised:
        a failed cleanup must not fail a response that is already in flight.

        Args:
            path: File or directory to delete
        """
        path = Path(path)
        try:
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink(missing_ok=True)
            logger.debug(f"Released temp artifact: {path.name}")
        except OSError as exc:
            logger.warning(f"Failed to release temp artifact {path}: {exc}")

    def scope(self) -> "TempScope":
        """Start tracking the temp artifacts of one request."""
        return TempScope(self)


class TempScope:
    """
    Tracks every temp artifact of one request and releases each exactly once.

    Used as a context manager around a handler body. On exit all tracked
    paths are released, unless ownership was handed to a streaming response
    via ``defer``; the stream then calls the returned callback when it
    drains or fails.
    """

    def __init__(self, storage: TempStorage):
        self.storage = storage
        self._paths: list[Path] = []
        self._deferred = False
        self._released = False

    @property
    def paths(self) -> list[Path]:
        """Paths currently tracked by this scope."""
        return list(self._paths)

    def allocate(self, prefix: str = "tmp", suffix: str = "") -> Path:
        """Allocate a path from the storage and track it."""
        path = self.storage.allocate(prefix, suffix)
        self._paths.append(path)
        return path

    def adopt(self, path: str | Path) -> Path:
        """Track a path produced by an external tool inside the working directory."""
        path = Path(path)
        if path not in self._paths:
            self._paths.append(path)
        return path

    def defer(self) -> Callable[[], None]:
        """Hand cleanup over to the caller; returns the release callback."""
        self._deferred = True
        return self.release_all

    def release_all(self) -> None:
        """Release every tracked path. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        for path in self._paths:
            self.storage.release(path)

    def __enter__(self) -> "TempScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._deferred or exc_type is not None:
            self.release_all()
