from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


_OFFLINE_VIDEO_RESPONSE: dict[str, Any] = {
    "code": 200,
    "data": {
        "aweme_id": "7300000000000000001",
        "desc": "offline sample video",
        "author": {"nickname": "offline_author", "signature": "sample signature"},
        "statistics": {
            "digg_count": 12,
            "comment_count": 3,
            "share_count": 1,
            "collect_count": 0,
        },
        "video": {
            "duration": 15300,
            "play_addr": {"url_list": ["https://example.com/video/play.mp4"]},
            "download_addr": {"url_list": ["https://example.com/video/download.mp4"]},
            "cover": {"url_list": ["https://example.com/video/cover.jpg"]},
        },
    },
}

_OFFLINE_IMAGE_RESPONSE: dict[str, Any] = {
    "code": 200,
    "data": {
        "aweme_detail": {
            "aweme_id": "7300000000000000002",
            "desc": "offline sample gallery",
            "author": {"nickname": "offline_author"},
            "images": [
                {"url_list": ["https://example.com/image/1.jpg"]},
                {"url_list": ["https://example.com/image/2.jpg"]},
            ],
        }
    },
}


@dataclass
class OfflineVideoDataClient:
    """
    Network-free stub for the `parse --offline` smoke check.

    URLs containing "note" resolve to an image post, everything else to a video post.
    """

    video_response: dict[str, Any] = field(default_factory=lambda: dict(_OFFLINE_VIDEO_RESPONSE))
    image_response: dict[str, Any] = field(default_factory=lambda: dict(_OFFLINE_IMAGE_RESPONSE))
    calls: list[str] = field(default_factory=list)

    async def fetch_video_data(self, url: str) -> Any:
        self.calls.append(url)
        if "note" in url:
            return self.image_response
        return self.video_response
