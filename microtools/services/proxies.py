"""
Third-party download and image APIs.

Each call issues one outbound request, extracts a single field and hands it
back. Failures are raised as ``UpstreamError`` with a kind that is logged
but never shown to clients.
"""

from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests
from loguru import logger

from microtools.exceptions import UpstreamError
from microtools.models.artifacts import ToolFailure, ToolInvocationResult
from microtools.services.invoker import Tool, ToolInvoker, attach_output

TWITTER_HOSTS = ("twitter.com", "x.com")


def _get_json(service: str, url: str, params: dict[str, str], timeout: float | None) -> Any:
    """GET a JSON document, mapping every failure mode onto UpstreamError."""
    try:
        response = requests.get(url, params=params, timeout=timeout)
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise UpstreamError(service, UpstreamError.HTTP_STATUS, str(exc)) from exc
    except requests.RequestException as exc:
        raise UpstreamError(service, UpstreamError.NETWORK, str(exc)) from exc

    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError(service, UpstreamError.MALFORMED_RESPONSE, "body is not JSON") from exc


def _extract(service: str, data: Any, *path: str | int) -> str:
    """Walk ``path`` through nested JSON and return a non-empty string."""
    value = data
    try:
        for key in path:
            value = value[key]
    except (KeyError, IndexError, TypeError) as exc:
        raise UpstreamError(service, UpstreamError.MALFORMED_RESPONSE, f"missing {path}") from exc

    if not isinstance(value, str) or not value:
        raise UpstreamError(service, UpstreamError.MALFORMED_RESPONSE, f"empty {path}")
    return value


def fetch_instagram_media(url: str, api_url: str, timeout: float | None = None) -> str:
    """Resolve the first media URL of an Instagram post."""
    data = _get_json("instagram", api_url, {"url": url}, timeout)
    return _extract("instagram", data, "media", 0, "url")


def fetch_tiktok_video(url: str, api_url: str, timeout: float | None = None) -> str:
    """Resolve the watermark-free play URL of a TikTok video."""
    data = _get_json("tiktok", api_url, {"url": url}, timeout)
    return _extract("tiktok", data, "data", "play")


def fetch_facebook_video(url: str, api_url: str, timeout: float | None = None) -> str:
    """Resolve the first video URL of a Facebook post."""
    data = _get_json("facebook", api_url, {"url": url}, timeout)
    return _extract("facebook", data, "result", 0, "url")


def remove_background(
    image_file: Path,
    filename: str,
    api_url: str,
    api_key: str | None,
    timeout: float | None = None,
) -> bytes:
    """
    Send an image to remove.bg and return the cut-out PNG.

    The key is not validated locally; a missing key fails at the API.

    Args:
        image_file: Stored upload
        filename: Label sent with the multipart part
        api_url: remove.bg endpoint
        api_key: remove.bg API key
        timeout: HTTP timeout, None for the client default

    Returns:
        PNG image data
    """
    headers = {"X-Api-Key": api_key} if api_key else {}
    try:
        with open(image_file, "rb") as fh:
            response = requests.post(
                api_url,
                files={"image_file": (filename, fh)},
                data={"size": "auto"},
                headers=headers,
                timeout=timeout,
            )
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise UpstreamError("remove.bg", UpstreamError.HTTP_STATUS, str(exc)) from exc
    except requests.RequestException as exc:
        raise UpstreamError("remove.bg", UpstreamError.NETWORK, str(exc)) from exc

    if not response.content:
        raise UpstreamError("remove.bg", UpstreamError.MALFORMED_RESPONSE, "empty body")
    return response.content


def is_twitter_url(url: str) -> bool:
    """Whether ``url`` is an http(s) URL on twitter.com or x.com."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False
    host = (parsed.hostname or "").lower()
    return any(host == domain or host.endswith(f".{domain}") for domain in TWITTER_HOSTS)


def build_twitter_args(url: str, output_file: Path) -> list[str]:
    """yt-dlp arguments; ``--`` stops the URL from being read as an option."""
    return ["-f", "mp4", "-o", str(output_file), "--", url]


async def download_twitter_video(invoker: ToolInvoker, url: str, output_file: Path) -> ToolInvocationResult:
    """
    Download a Twitter/X video with the yt-dlp binary.

    Args:
        invoker: Tool invoker
        url: Validated tweet URL
        output_file: Allocated output path

    Returns:
        ToolSuccess bound to ``output_file``, or ToolFailure
    """
    result = await invoker.invoke(Tool.YTDLP, build_twitter_args(url, output_file))
    result = attach_output(result, output_file)
    if isinstance(result, ToolFailure):
        logger.error(f"Twitter download failed: {result.diagnostic[-500:]}")
    return result
