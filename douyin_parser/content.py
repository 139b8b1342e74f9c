from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence


UNKNOWN_AUTHOR = "未知作者"


@dataclass(frozen=True)
class CanonicalRecord:
    """
    The single normalized view of a resolution response.

    `content_node` is authoritative for every downstream field; `payload_node`
    is consulted only when the content node lacks a field.
    """

    status_code: int
    content_node: Mapping[str, Any] | None
    payload_node: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_failure(self) -> bool:
        return self.status_code != 200 or self.content_node is None


@dataclass(frozen=True)
class Author:
    nickname: str = UNKNOWN_AUTHOR
    signature: str = ""


@dataclass(frozen=True)
class Statistics:
    digg: int = 0
    comment: int = 0
    share: int = 0
    collect: int = 0


@dataclass(frozen=True)
class VideoUrls:
    download: str | None = None
    play: str | None = None

    @property
    def preferred(self) -> str | None:
        return self.download or self.play


@dataclass(frozen=True)
class ContentFields:
    """Presentation fields derived from a canonical record."""

    description: str = ""
    media_urls: Sequence[str] = ()
    duration_seconds: int = 0
    author: Author = field(default_factory=Author)
    statistics: Statistics = field(default_factory=Statistics)
    video_urls: VideoUrls = field(default_factory=VideoUrls)
    cover_url: str | None = None
    aweme_id: str | None = None

    @property
    def is_image_post(self) -> bool:
        return len(self.media_urls) > 0

    @property
    def content_type(self) -> str:
        return "图片" if self.is_image_post else "视频"


@dataclass(frozen=True)
class Image:
    """An image reference the host platform renders as an inline attachment."""

    src: str


OutgoingItem = str | Image


@dataclass(frozen=True)
class InboundMessage:
    text: str
    user_id: str = ""
    channel_id: str = ""
    username: str | None = None

    @property
    def sender(self) -> str:
        return self.username or self.user_id
