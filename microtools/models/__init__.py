"""
Models package for the MicroTools backend.
"""

from .artifacts import (
    ArchiveEntry,
    ConversionCategory,
    ConversionJob,
    ToolFailure,
    ToolInvocationResult,
    ToolSuccess,
    UploadedArtifact,
)

__all__ = [
    "ArchiveEntry", "ConversionCategory", "ConversionJob",
    "ToolFailure", "ToolInvocationResult", "ToolSuccess", "UploadedArtifact",
]
