# yt_api.py
#
# Thin wrappers over the YouTube Data API v3 for video / channel metadata.
# The developer key is read from GOOGLE_API_KEY unless passed in.
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from googleapiclient.discovery import build

from aws_utils import getenv

logger = logging.getLogger(__name__)

VIDEO_URL = "http://www.youtube.com/watch?v={video_id}"


class VideoNotFoundError(LookupError):
    pass


class ChannelNotFoundError(LookupError):
    pass


@dataclass
class YtVideoMetaData:
    video_id: str
    description: str = ""
    channel_name: str = ""
    title: str = ""
    tags: List[str] = field(default_factory=list)
    channel_id: str = ""
    thumbnail_url: str = ""
    category_id: str = ""
    published_at: str = ""
    video_url: str = ""
    default_audio_language: str = ""
    default_language: str = ""


def get_yt_conn(developer_key: Optional[str] = None):
    key = developer_key or getenv("GOOGLE_API_KEY", "")
    if not key:
        logger.warning("GOOGLE_API_KEY is not set")
    return build("youtube", "v3", developerKey=key, cache_discovery=False)


def _thumbnail(snippet: dict) -> str:
    thumbs = snippet.get("thumbnails", {})
    for size in ("default", "medium", "high"):
        if size in thumbs:
            return thumbs[size].get("url", "")
    return ""


def lookup_video_description(service, video_id: str) -> YtVideoMetaData:
    """Fetch snippet metadata for one video id."""
    logger.debug("Looking up %s", video_id)
    response = service.videos().list(part="snippet,contentDetails,statistics", id=video_id).execute()

    items = response.get("items", [])
    if not items:
        raise VideoNotFoundError(f"Video not found on YT: {video_id}")

    snippet = items[0].get("snippet", {})
    return YtVideoMetaData(
        video_id=video_id,
        description=snippet.get("description", ""),
        channel_name=snippet.get("channelTitle", ""),
        title=snippet.get("title", ""),
        tags=snippet.get("tags", []),
        channel_id=snippet.get("channelId", ""),
        thumbnail_url=_thumbnail(snippet),
        category_id=snippet.get("categoryId", ""),
        published_at=snippet.get("publishedAt", ""),
        video_url=VIDEO_URL.format(video_id=video_id),
        default_audio_language=snippet.get("defaultAudioLanguage", ""),
        default_language=snippet.get("defaultLanguage", ""),
    )


def _channel_title(response: dict, lookup: str) -> str:
    items = response.get("items", [])
    if not items:
        raise ChannelNotFoundError(f"No items returned for {lookup}")
    return items[0]["snippet"]["title"]


def channels_list_by_username(service, part: str, username: str) -> str:
    response = service.channels().list(part=part, forUsername=username).execute()
    return _channel_title(response, username)


def channels_by_id(service, part: str, channel_id: str) -> str:
    response = service.channels().list(part=part, id=channel_id).execute()
    return _channel_title(response, channel_id)
