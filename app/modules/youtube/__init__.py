"""YouTube module exports."""

from .client import YouTubeAPIError, YouTubeClient, build_search_query
from .models import VideoDescriptor, truncate_description

__all__ = [
    "YouTubeAPIError",
    "YouTubeClient",
    "build_search_query",
    "VideoDescriptor",
    "truncate_description",
]
