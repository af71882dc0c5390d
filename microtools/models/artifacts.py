"""
Request-scoped data structures.

Nothing here outlives a single HTTP request: artifacts point at temp files
owned by the request's ``TempScope`` and results are consumed immediately by
the response streamer.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Union


class ConversionCategory(str, Enum):
    """Which engine handles a source/target pair."""

    IMAGE = "image"
    MEDIA = "media"
    DOCUMENT = "document"


@dataclass(frozen=True)
class UploadedArtifact:
    """An uploaded part persisted to temp storage."""

    temp_path: Path
    original_name: str
    declared_size: int
    mime_hint: str | None = None

    @property
    def extension(self) -> str:
        """Lower-case extension of the original name, without the dot."""
        return Path(self.original_name).suffix.lower().lstrip(".")

    @property
    def base_name(self) -> str:
        """Original name without its extension, for labelling outputs."""
        return Path(self.original_name).stem or "file"


@dataclass
class ConversionJob:
    """A routed conversion request."""

    source_extension: str
    target_extension: str
    source_path: Path
    category: ConversionCategory
    output_path: Path | None = None
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolSuccess:
    """Successful tool or in-process transform; exactly one of path/buffer is set."""

    output_path: Path | None = None
    buffer: bytes | None = None
    stdout: str = ""
    stderr: str = ""


@dataclass(frozen=True)
class ToolFailure:
    """Failed tool invocation with server-side diagnostic text."""

    diagnostic: str
    error_type: str
    returncode: int | None = None


ToolInvocationResult = Union[ToolSuccess, ToolFailure]


@dataclass(frozen=True)
class ArchiveEntry:
    """One named member of a streamed zip bundle."""

    name: str
    data: bytes | None = None
    path: Path | None = None
