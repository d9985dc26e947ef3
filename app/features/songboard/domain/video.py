"""
YouTube video id helpers.

The song board only ever stores an 11-character video id and a title; these
helpers validate ids and build the URLs clients embed.
"""

import re
from urllib.parse import urlencode

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

_URL_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.|m\.)?"
    r"(?:youtube\.com/(?:watch\?(?:\S*?&)?v=|embed/|v/|shorts/)|youtu\.be/)"
    r"([A-Za-z0-9_-]{11})"
)

THUMBNAIL_QUALITIES = ("default", "mqdefault", "hqdefault", "sddefault", "maxresdefault")

DEFAULT_EMBED_OPTIONS = {"autoplay": 0, "controls": 1, "modestbranding": 1, "rel": 0}


def is_valid_video_id(video_id: str | None) -> bool:
    return bool(video_id) and VIDEO_ID_PATTERN.fullmatch(video_id) is not None


def extract_video_id(value: str | None) -> str | None:
    """Pull a video id out of a bare id or a watch / youtu.be / embed / shorts URL."""
    if not value:
        return None

    value = value.strip()
    if is_valid_video_id(value):
        return value

    match = _URL_PATTERN.search(value)
    return match.group(1) if match else None


def _require_valid(video_id: str) -> None:
    if not is_valid_video_id(video_id):
        raise ValueError(f"Invalid YouTube video id: {video_id!r}")


def video_url(video_id: str) -> str:
    _require_valid(video_id)
    return f"https://www.youtube.com/watch?v={video_id}"


def thumbnail_url(video_id: str, quality: str = "maxresdefault") -> str:
    _require_valid(video_id)
    if quality not in THUMBNAIL_QUALITIES:
        quality = "maxresdefault"
    return f"https://i.ytimg.com/vi/{video_id}/{quality}.jpg"


def embed_url(video_id: str, **options) -> str:
    _require_valid(video_id)
    params = {**DEFAULT_EMBED_OPTIONS, **options}
    query = urlencode({k: v for k, v in params.items() if v is not None})
    return f"https://www.youtube.com/embed/{video_id}" + (f"?{query}" if query else "")
