"""
Utilities package for the MicroTools backend.

This package contains utility modules for common operations.
"""

from .fs import (
    TempScope,
    TempStorage,
    ensure_directory,
    safe_suffix,
    sanitize_filename,
)
from .shell import (
    CommandResult,
    check_command_available,
    get_command_version,
    run_command,
)

__all__ = [
    "run_command", "check_command_available", "get_command_version", "CommandResult",
    "TempStorage", "TempScope", "ensure_directory", "sanitize_filename", "safe_suffix",
]
