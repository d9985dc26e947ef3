"""
YouTube Data API search client.
Looks up candidate videos for a suggestion; the song board only keeps the
selected id and title.
"""

import asyncio

import httpx

from app.config import settings
from app.features.songboard.domain import VideoCandidate, VideoSearchError
from app.features.songboard.domain.video import is_valid_video_id, thumbnail_url
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

REQUEST_TIMEOUT = 10  # seconds
MAX_RETRIES = 3
BACKOFF_FACTOR = 0.5
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class YouTubeSearchClient:
    """Search client for the YouTube Data API v3."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        max_results: int | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.YOUTUBE_API_KEY
        self.base_url = (base_url or settings.YOUTUBE_API_BASE_URL).rstrip("/")
        self.max_results = max_results or settings.YOUTUBE_SEARCH_MAX_RESULTS
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(REQUEST_TIMEOUT))

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_with_retry(self, url: str, params: dict) -> httpx.Response:
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = await self._client.get(url, params=params)
            except httpx.RequestError as e:
                if attempt >= MAX_RETRIES:
                    raise VideoSearchError(f"YouTube search request failed: {e}") from e
                backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                logger.debug("YouTube request error, retrying", attempt=attempt, error=str(e))
                await asyncio.sleep(backoff)
                continue

            if response.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES:
                backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                logger.debug(
                    "YouTube API retrying request",
                    attempt=attempt,
                    status_code=response.status_code,
                    backoff_seconds=backoff,
                )
                await asyncio.sleep(backoff)
                continue
            return response

        raise VideoSearchError("YouTube search retry loop exhausted")

    async def search(self, query: str) -> list[VideoCandidate]:
        """
        Search for videos matching a free-text query.

        Returns:
            Candidates with a valid 11-character video id; blank queries return []

        Raises:
            VideoSearchError: Missing API key, transport failure or API error
        """
        query = (query or "").strip()
        if not query:
            return []

        if not self.api_key:
            raise VideoSearchError("YouTube search is not configured")

        params = {
            "key": self.api_key,
            "q": query,
            "part": "snippet",
            "type": "video",
            "maxResults": self.max_results,
        }
        response = await self._get_with_retry(f"{self.base_url}/search", params)

        if not response.is_success:
            try:
                message = response.json().get("error", {}).get("message", response.text)
            except ValueError:
                message = response.text
            logger.error("YouTube search failed", status_code=response.status_code, error=message)
            raise VideoSearchError(
                f"YouTube API error: {message}", status_code=response.status_code
            )

        try:
            items = response.json().get("items", [])
        except ValueError as e:
            raise VideoSearchError(f"Invalid YouTube response: {e}") from e

        candidates = [c for c in (self._to_candidate(item) for item in items) if c is not None]
        logger.info("YouTube search completed", results=len(candidates))
        return candidates

    @staticmethod
    def _to_candidate(item: dict) -> VideoCandidate | None:
        video_id = (item.get("id") or {}).get("videoId")
        if not is_valid_video_id(video_id):
            return None

        snippet = item.get("snippet") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumb = (thumbnails.get("medium") or thumbnails.get("default") or {}).get("url")

        return VideoCandidate(
            id=video_id,
            title=snippet.get("title") or "",
            channel_title=snippet.get("channelTitle"),
            thumbnail_url=thumb or thumbnail_url(video_id, "mqdefault"),
        )
