"""
Services package for the MicroTools backend.

This package contains service modules for external tool integration,
in-process image transforms and third-party API calls.
"""

from .invoker import Tool, ToolInvoker, attach_output
from .pdf import compress_pdf, resolve_pdf_preset
from .router import classify, plan_job, run_job
from .uploads import ingest_upload, ingest_uploads, require_uploads

__all__ = [
    "Tool", "ToolInvoker", "attach_output",
    "compress_pdf", "resolve_pdf_preset",
    "classify", "plan_job", "run_job",
    "ingest_upload", "ingest_uploads", "require_uploads",
]
