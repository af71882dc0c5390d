"""
MicroTools backend.

FastAPI service proxying file conversion, compression and media-download
tasks to external tools and third-party APIs.
"""

__version__ = "0.1.0"
