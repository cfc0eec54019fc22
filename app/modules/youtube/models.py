"""Pydantic models for the YouTube Data API v3 responses we consume.

Only the fields the video lookup reads are declared; everything else in the
provider payload is ignored. Missing status flags default to the value that
fails the filter, so an incomplete record is never treated as embeddable.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DESCRIPTION_LIMIT = 150
ELLIPSIS = "..."


class _ProviderModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Thumbnail(_ProviderModel):
    url: str


class Snippet(_ProviderModel):
    title: str = ""
    description: str = ""
    channel_title: str = ""
    thumbnails: dict[str, Thumbnail] = Field(default_factory=dict)


class SearchItemId(_ProviderModel):
    kind: str = ""
    video_id: Optional[str] = None


class SearchItem(_ProviderModel):
    id: SearchItemId


class SearchResponse(_ProviderModel):
    items: list[SearchItem] = Field(default_factory=list)


class VideoStatus(_ProviderModel):
    upload_status: str = ""
    privacy_status: str = ""
    embeddable: bool = False
    made_for_kids: bool = False


class VideoDetail(_ProviderModel):
    id: str
    snippet: Snippet = Field(default_factory=Snippet)
    status: VideoStatus = Field(default_factory=VideoStatus)

    def is_playable_inline(self) -> bool:
        """Processed, public, embeddable and not made-for-kids."""
        return (
            self.status.upload_status == "processed"
            and self.status.privacy_status == "public"
            and self.status.embeddable
            and not self.status.made_for_kids
        )

    def thumbnail_url(self) -> str:
        for size in ("high", "medium", "default"):
            thumb = self.snippet.thumbnails.get(size)
            if thumb and thumb.url:
                return thumb.url
        return f"https://i.ytimg.com/vi/{self.id}/hqdefault.jpg"


class VideoListResponse(_ProviderModel):
    items: list[VideoDetail] = Field(default_factory=list)


class VideoDescriptor(_ProviderModel):
    """A verified, embeddable video as returned to callers."""

    id: str = Field(..., description="The YouTube video ID.")
    title: str = Field(..., description="The title of the YouTube video.")
    description: str = Field(
        ...,
        max_length=DESCRIPTION_LIMIT + len(ELLIPSIS),
        description="A brief description of the video, truncated to 150 characters.",
    )
    thumbnail_url: str = Field(..., description="URL of the video thumbnail image.")
    url: str = Field(..., description="Watch URL of the video.")


def truncate_description(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def to_descriptor(detail: VideoDetail) -> VideoDescriptor:
    return VideoDescriptor(
        id=detail.id,
        title=detail.snippet.title,
        description=truncate_description(detail.snippet.description),
        thumbnail_url=detail.thumbnail_url(),
        url=f"https://www.youtube.com/watch?v={detail.id}",
    )
