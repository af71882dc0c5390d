"""
FastAPI application entry point for the MicroTools backend.

This module initializes the FastAPI application with configuration,
middleware, logging and routing.
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from microtools.api import downloads, files, health, payments, tools
from microtools.config import settings
from microtools.middleware import LoggingMiddleware
from microtools.utils.fs import ensure_directory
from microtools.utils.shell import check_command_available, get_command_version


def validate_tool_paths() -> None:
    """Validate that required external tools are available."""
    required_tools = {
        "gs": settings.GHOSTSCRIPT_PATH,
        "ffmpeg": settings.FFMPEG_PATH,
        "soffice": settings.SOFFICE_PATH,
        "yt-dlp": settings.YTDLP_PATH,
    }

    missing_tools = []
    for tool_name, tool_path in required_tools.items():
        if not check_command_available(tool_path):
            missing_tools.append(f"{tool_name} (expected at {tool_path})")
            logger.warning(f"Tool not found: {tool_name} at {tool_path}")
        else:
            logger.info(f"Tool found: {tool_name} ({get_command_version(tool_path) or 'version unknown'})")

    if missing_tools and settings.ENVIRONMENT == "production":
        raise RuntimeError(
            f"Required tools not found in production: {', '.join(missing_tools)}. "
            "Please ensure ghostscript, ffmpeg, libreoffice and yt-dlp are installed."
        )
    elif missing_tools:
        logger.warning(
            f"Some tools not found (non-fatal in {settings.ENVIRONMENT}): {', '.join(missing_tools)}"
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Handles startup and shutdown events.
    """
    logger.info("Starting MicroTools backend")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    ensure_directory(settings.TMP_DIR)
    logger.info(f"Temp directory: {Path(settings.TMP_DIR).resolve()}")

    try:
        validate_tool_paths()
    except RuntimeError as exc:
        logger.error(f"Tool validation failed: {exc}")
        raise

    if not settings.payments_configured:
        logger.warning("Razorpay credentials not set, payment endpoints will answer 'not configured'")

    yield

    logger.info("Shutting down MicroTools backend")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="File conversion, compression and media download tools",
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    setup_middleware(app)
    setup_exception_handlers(app)
    setup_routers(app)
    setup_logging()

    return app


def setup_middleware(app: FastAPI) -> None:
    """
    Configure middleware for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    app.add_middleware(LoggingMiddleware)  # type: ignore


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Render request validation failures as ``{"error": ...}`` with status 400.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        else:
            message = "Invalid request"
        logger.info(f"Rejected {request.method} {request.url.path}: {message}")
        return JSONResponse(status_code=400, content={"error": message})


def setup_routers(app: FastAPI) -> None:
    """
    Include API routers in the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.include_router(health.router, tags=["health"])
    app.include_router(files.router, prefix="/api", tags=["files"])
    app.include_router(tools.router, prefix="/api", tags=["tools"])
    app.include_router(downloads.router, prefix="/api", tags=["downloads"])
    app.include_router(payments.router, prefix="/api", tags=["payments"])


def setup_logging() -> None:
    """
    Configure logging with loguru.
    """
    logger.remove()  # Remove default handler

    logger.add(
        sink=sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=settings.LOG_LEVEL,
        colorize=True
    )

    # Add file handler for production
    if settings.ENVIRONMENT == "production":
        ensure_directory("logs")

        logger.add(
            "logs/app.log",
            rotation="1 day",
            retention="30 days",
            level=settings.LOG_LEVEL,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
        )


# Create the FastAPI application instance
app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    uvicorn.run(
        "microtools.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
