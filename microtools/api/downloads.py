"""
Media lookup and download proxy endpoints.

Upstream failures of any kind collapse into one generic message per
endpoint; the underlying kind is only logged.
"""

from fastapi import APIRouter, Depends
from loguru import logger

from microtools.api.deps import get_temp_storage, get_tool_invoker
from microtools.api.responses import json_error, stream_file
from microtools.config import Settings, get_settings
from microtools.exceptions import UpstreamError
from microtools.models.artifacts import ToolFailure
from microtools.models.request import UrlRequest
from microtools.models.response import DownloadResponse, ErrorResponse, YoutubeInfoResponse
from microtools.services.invoker import ToolInvoker
from microtools.services.proxies import (
    download_twitter_video,
    fetch_facebook_video,
    fetch_instagram_media,
    fetch_tiktok_video,
    is_twitter_url,
)
from microtools.services.youtube import fetch_video_info, is_youtube_url
from microtools.utils.fs import TempStorage, ensure_directory

router = APIRouter()

_ERROR_RESPONSES = {400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}}


def _log_upstream(exc: UpstreamError) -> None:
    logger.error(f"{exc}: {exc.details.get('detail', '')}")


@router.post("/youtube", response_model=YoutubeInfoResponse, responses=_ERROR_RESPONSES)
def youtube_info(body: UrlRequest):
    """Return title, thumbnail and per-quality stream links for a YouTube video."""
    if not is_youtube_url(body.url):
        return json_error(400, "Invalid URL")
    try:
        return YoutubeInfoResponse(**fetch_video_info(body.url))
    except UpstreamError as exc:
        _log_upstream(exc)
        return json_error(502, "Failed to fetch video info")


@router.post("/download/instagram", response_model=DownloadResponse, responses=_ERROR_RESPONSES)
def download_instagram(body: UrlRequest, settings: Settings = Depends(get_settings)):
    """Resolve the media URL of an Instagram post."""
    try:
        url = fetch_instagram_media(body.url, settings.INSTAGRAM_API_URL, settings.UPSTREAM_TIMEOUT)
    except UpstreamError as exc:
        _log_upstream(exc)
        return json_error(502, "Instagram download failed")
    return DownloadResponse(url=url)


@router.post("/download/tiktok", response_model=DownloadResponse, responses=_ERROR_RESPONSES)
def download_tiktok(body: UrlRequest, settings: Settings = Depends(get_settings)):
    """Resolve the watermark-free video URL of a TikTok post."""
    try:
        url = fetch_tiktok_video(body.url, settings.TIKTOK_API_URL, settings.UPSTREAM_TIMEOUT)
    except UpstreamError as exc:
        _log_upstream(exc)
        return json_error(502, "TikTok download failed")
    return DownloadResponse(url=url)


@router.post("/download/facebook", response_model=DownloadResponse, responses=_ERROR_RESPONSES)
def download_facebook(body: UrlRequest, settings: Settings = Depends(get_settings)):
    """Resolve the video URL of a Facebook post."""
    try:
        url = fetch_facebook_video(body.url, settings.FACEBOOK_API_URL, settings.UPSTREAM_TIMEOUT)
    except UpstreamError as exc:
        _log_upstream(exc)
        return json_error(502, "Facebook download failed")
    return DownloadResponse(url=url)


@router.post("/download/twitter", responses=_ERROR_RESPONSES)
async def download_twitter(
    body: UrlRequest,
    storage: TempStorage = Depends(get_temp_storage),
    invoker: ToolInvoker = Depends(get_tool_invoker),
):
    """Download a Twitter/X video with yt-dlp and stream the mp4."""
    if not is_twitter_url(body.url):
        return json_error(400, "Invalid Twitter/X URL")

    with storage.scope() as scope:
        # yt-dlp writes .part and .ytdl files next to its output
        workdir = ensure_directory(scope.allocate("twitter"))
        output = workdir / "video.mp4"
        result = await download_twitter_video(invoker, body.url, output)
        if isinstance(result, ToolFailure):
            return json_error(502, "Failed to download video")
        return stream_file(result.output_path, "video/mp4", "twitter-video.mp4", scope)
