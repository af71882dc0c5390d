"""
Shared FastAPI dependencies.

Process-wide objects are built once and handed to handlers through
``Depends`` so tests can swap them with ``app.dependency_overrides``.
"""

from functools import lru_cache

from microtools.config import settings
from microtools.services.invoker import ToolInvoker
from microtools.utils.fs import TempStorage


@lru_cache
def get_temp_storage() -> TempStorage:
    """Temp storage rooted at ``TMP_DIR``."""
    return TempStorage(settings.TMP_DIR)


@lru_cache
def get_tool_invoker() -> ToolInvoker:
    """Tool invoker configured from settings."""
    return ToolInvoker.from_settings(settings)
