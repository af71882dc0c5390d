"""
Health check endpoints for the MicroTools backend.

This module provides health check endpoints for monitoring
and service discovery.
"""

import platform
from datetime import datetime

import psutil
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger

from microtools.config import Settings, get_settings
from microtools.utils.shell import check_command_available

router = APIRouter()

HEALTH_TEXT = "MicroTools backend OK"

# Tools without which the conversion endpoints cannot work
CRITICAL_TOOLS = ["ghostscript", "ffmpeg", "soffice"]


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    """Plain-text liveness string."""
    return HEALTH_TEXT


def check_dependencies(settings: Settings) -> dict[str, bool]:
    """
    Check the availability of external executables.

    Args:
        settings: Application settings with tool paths

    Returns:
        dict: Tool name to availability
    """
    return {
        "ghostscript": check_command_available(settings.GHOSTSCRIPT_PATH),
        "ffmpeg": check_command_available(settings.FFMPEG_PATH),
        "soffice": check_command_available(settings.SOFFICE_PATH),
        "yt-dlp": check_command_available(settings.YTDLP_PATH),
    }


@router.get("/api/health")
async def detailed_health_check(settings: Settings = Depends(get_settings)) -> JSONResponse:
    """
    Detailed health check endpoint with system information.

    Returns:
        JSONResponse: Detailed health status and system metrics
    """
    try:
        system_metrics = {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": psutil.virtual_memory().percent,
            "disk_percent": psutil.disk_usage("/").percent,
        }
    except OSError as exc:
        logger.warning(f"System metrics unavailable: {exc}")
        system_metrics = {}

    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "timestamp": datetime.utcnow().isoformat(),
            "system": {
                "platform": platform.system(),
                "python_version": platform.python_version(),
            },
            "metrics": system_metrics,
            "dependencies": check_dependencies(settings),
        },
    )


@router.get("/api/ready")
async def readiness_check(settings: Settings = Depends(get_settings)) -> JSONResponse:
    """
    Readiness check endpoint for container health checks.

    Returns:
        JSONResponse: 200 when every critical tool is installed, 503 otherwise
    """
    dependencies = check_dependencies(settings)
    missing = [tool for tool in CRITICAL_TOOLS if not dependencies[tool]]

    if not missing:
        return JSONResponse(
            status_code=200,
            content={
                "status": "ready",
                "service": settings.APP_NAME,
                "timestamp": datetime.utcnow().isoformat(),
            },
        )
    return JSONResponse(
        status_code=503,
        content={
            "status": "not_ready",
            "service": settings.APP_NAME,
            "missing_dependencies": missing,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
