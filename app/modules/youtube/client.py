"""YouTube Data API client for animated educational video lookup.

Two sequential calls per lookup: ``search`` resolves candidate ids, then
``videos`` fetches status records so only processed, public, embeddable,
non made-for-kids uploads are returned.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ConfigurationError
from app.core.logging import get_logger
from app.modules.youtube.models import (
    SearchResponse,
    VideoDescriptor,
    VideoListResponse,
    to_descriptor,
)

logger = get_logger(__name__)

YOUTUBE_API_BASE_URL = "https://www.googleapis.com/youtube/v3"
EDUCATION_CATEGORY_ID = "27"

# Appended to the topic to bias results toward animated, student-oriented content.
QUERY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "en": ("educational animation", "story-based", "cartoon", "for students"),
    "bn": ("শিক্ষামূলক অ্যানিমেশন", "গল্প ভিত্তিক", "কার্টুন", "শিক্ষার্থীদের জন্য"),
}

INVALID_KEY_REASONS = frozenset({"keyInvalid", "API_KEY_INVALID"})


class YouTubeAPIError(Exception):
    """Raised when a YouTube API call fails at the transport or provider level."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


def build_search_query(topic: str, language: str = "en") -> str:
    keywords = QUERY_KEYWORDS.get(language, QUERY_KEYWORDS["en"])
    return " ".join([topic.strip(), *keywords])


def _provider_error(response: httpx.Response) -> tuple[str, Optional[str]]:
    """Extract (message, reason) from a Google API error body."""
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}", None
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return response.reason_phrase or f"HTTP {response.status_code}", None
    message = error.get("message") or response.reason_phrase
    reason = None
    details = error.get("errors") or error.get("details") or []
    if details and isinstance(details[0], dict):
        reason = details[0].get("reason")
    return message, reason


class YouTubeClient:
    """Thin async client over a shared ``httpx.AsyncClient``.

    Pass ``http_client`` to reuse a process-wide client; otherwise one is
    created and owned by this instance (close it with ``aclose``).
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = YOUTUBE_API_BASE_URL,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _require_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "YouTube API key is not configured. Set YOUTUBE_API_KEY in your environment.",
                setting="YOUTUBE_API_KEY",
            )
        return self.api_key

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/{path}"
        try:
            response = await self._http.get(url, params=params)
        except httpx.HTTPError as e:
            raise YouTubeAPIError(f"YouTube API {path} request failed: {e}") from e

        if response.is_error:
            message, reason = _provider_error(response)
            if reason in INVALID_KEY_REASONS:
                raise ConfigurationError(
                    f"YouTube API rejected the configured key: {message}",
                    setting="YOUTUBE_API_KEY",
                )
            logger.error(
                "YouTube API %s error %s (%s): %s",
                path,
                response.status_code,
                reason or "-",
                message,
            )
            raise YouTubeAPIError(
                f"YouTube API {path} failed: {message}",
                status_code=response.status_code,
                reason=reason,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise YouTubeAPIError(f"YouTube API {path} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise YouTubeAPIError(f"YouTube API {path} returned an unexpected payload")
        return data

    async def search_video_ids(
        self, topic: str, language: str = "en", limit: int = 12
    ) -> list[str]:
        key = self._require_key()
        params = {
            "part": "snippet",
            "q": build_search_query(topic, language),
            "type": "video",
            "videoEmbeddable": "true",
            "videoCategoryId": EDUCATION_CATEGORY_ID,
            "relevanceLanguage": language,
            "maxResults": str(limit),
            "key": key,
        }
        data = await self._get("search", params)
        try:
            parsed = SearchResponse.model_validate(data)
        except PydanticValidationError as e:
            raise YouTubeAPIError("YouTube API search returned malformed items") from e
        ids = [item.id.video_id for item in parsed.items if item.id.video_id]
        return ids[:limit]

    async def fetch_video_details(self, video_ids: list[str]) -> VideoListResponse:
        key = self._require_key()
        params = {
            "part": "snippet,status",
            "id": ",".join(video_ids),
            "key": key,
        }
        data = await self._get("videos", params)
        try:
            return VideoListResponse.model_validate(data)
        except PydanticValidationError as e:
            raise YouTubeAPIError("YouTube API videos returned malformed items") from e

    async def search_animated_educational_videos(
        self,
        topic: str,
        language: str = "en",
        max_results: int = 6,
    ) -> list[VideoDescriptor]:
        """Return up to ``max_results`` verified, embeddable educational videos.

        Fewer (possibly zero) videos is a normal outcome when candidates do
        not pass the status filter.
        """
        self._require_key()
        # Over-fetch so post-filtering attrition still leaves enough results.
        video_ids = await self.search_video_ids(topic, language, limit=max_results * 2)
        if not video_ids:
            return []

        details = await self.fetch_video_details(video_ids)
        verified: list[VideoDescriptor] = []
        for item in details.items:
            if item.is_playable_inline():
                verified.append(to_descriptor(item))
            if len(verified) >= max_results:
                break
        logger.info(
            "YouTube lookup for %r: %d candidates, %d verified",
            topic,
            len(video_ids),
            len(verified),
        )
        return verified
