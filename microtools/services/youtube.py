"""
YouTube metadata lookup.

Uses yt-dlp as a library to list formats without downloading, then maps
them onto a fixed quality ladder.
"""

from typing import Any
from urllib.parse import urlparse

import yt_dlp
from loguru import logger

from microtools.exceptions import UpstreamError

QUALITY_LADDER = ("144p", "240p", "360p", "480p", "720p", "1080p")
YOUTUBE_HOSTS = ("youtube.com", "youtu.be", "youtube-nocookie.com")


def is_youtube_url(url: str) -> bool:
    """Whether ``url`` points at a YouTube video host."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False
    host = (parsed.hostname or "").lower()
    return any(host == domain or host.endswith(f".{domain}") for domain in YOUTUBE_HOSTS)


def extract_links(formats: list[dict[str, Any]]) -> dict[str, str | None]:
    """
    Pick one video stream per ladder rung.

    Args:
        formats: ``formats`` list from yt-dlp's info dict

    Returns:
        Quality label to URL, None where no video format of that height exists
    """
    links: dict[str, str | None] = {}
    for label in QUALITY_LADDER:
        height = int(label[:-1])
        match = next(
            (
                fmt for fmt in formats
                if fmt.get("height") == height
                and fmt.get("vcodec") not in (None, "none")
                and fmt.get("url")
            ),
            None,
        )
        links[label] = match["url"] if match else None
    return links


def _thumbnail(info: dict[str, Any]) -> str | None:
    thumbnails = info.get("thumbnails") or []
    if thumbnails and thumbnails[-1].get("url"):
        return thumbnails[-1]["url"]
    return info.get("thumbnail")


def fetch_video_info(url: str) -> dict[str, Any]:
    """
    Look up a video's title, thumbnail and stream links.

    Args:
        url: YouTube video URL

    Returns:
        Dict with ``title``, ``thumbnail`` and ``links``

    Raises:
        UpstreamError: If yt-dlp cannot resolve the video
    """
    ydl_opts = {
        "quiet": True,
        "no_warnings": True,
        "skip_download": True,
        "noplaylist": True,
    }

    try:
        with yt_dlp.YoutubeDL(ydl_opts) as ydl:
            info = ydl.extract_info(url, download=False)
    except yt_dlp.utils.DownloadError as exc:
        raise UpstreamError("youtube", UpstreamError.HTTP_STATUS, str(exc)) from exc

    if not isinstance(info, dict):
        raise UpstreamError("youtube", UpstreamError.MALFORMED_RESPONSE, "no info dict")

    logger.debug(f"Resolved {len(info.get('formats') or [])} formats for {info.get('id')}")
    return {
        "title": info.get("title"),
        "thumbnail": _thumbnail(info),
        "links": extract_links(info.get("formats") or []),
    }
