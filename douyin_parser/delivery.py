from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

from .content import ContentFields, Image, OutgoingItem
from .errors import DeliverySendFailure, MissingVideoURL
from .run_log import RunLogger

SendFn = Callable[[OutgoingItem], Awaitable[Any]]

VIDEO_LINK_PREFIX = "视频地址："


@dataclass(frozen=True)
class DeliveryReport:
    attempted: int
    delivered: int

    @property
    def failed(self) -> int:
        return self.attempted - self.delivered


class DeliveryManager:
    """
    Sends outgoing items one at a time through a primary path with a single fallback.

    A failed item is logged and dropped; it never aborts the items after it.
    """

    def __init__(
        self,
        primary: SendFn,
        *,
        fallback: SendFn | None = None,
        logger: RunLogger | None = None,
    ) -> None:
        self._primary = primary
        self._fallback = fallback
        self._log = logger or RunLogger(verbosity=0)
        self._attempted = 0
        self._delivered = 0

    def report(self) -> DeliveryReport:
        return DeliveryReport(attempted=self._attempted, delivered=self._delivered)

    async def send(self, item: OutgoingItem) -> bool:
        self._attempted += 1
        try:
            await self._primary(item)
        except Exception as primary_exc:
            self._log.warning("primary_send_failed", error=_describe(primary_exc))
        else:
            self._delivered += 1
            return True

        try:
            if self._fallback is None:
                raise DeliverySendFailure("No fallback send path is configured")
            await self._fallback(item)
        except Exception as fallback_exc:
            failure = DeliverySendFailure(f"Both send paths failed for item: {_preview(item)}")
            failure.__cause__ = fallback_exc
            self._log.exception("fallback_send_failed", exc=failure)
            return False

        self._delivered += 1
        return True

    async def send_images(self, urls: Sequence[str]) -> int:
        sent = 0
        for url in urls:
            if await self.send(Image(src=url)):
                sent += 1
        return sent

    async def deliver_media(
        self,
        fields: ContentFields,
        *,
        max_duration: int,
        long_video_template: str,
        url: str | None = None,
    ) -> None:
        """
        Send the media that follows the text reply.

        Image posts send every URL in order. Video posts over `max_duration`
        (0 disables the limit) get the long-video text plus the cover instead of
        the video link. Raises MissingVideoURL when a video has no usable URL.
        """
        if fields.is_image_post:
            self._log.detail("images_sending", url=url, count=len(fields.media_urls))
            sent = await self.send_images(fields.media_urls)
            self._log.success(
                "images_sent", url=url, count=len(fields.media_urls), delivered=sent
            )
            return

        duration = fields.duration_seconds
        if max_duration > 0 and duration > max_duration:
            self._log.warning(
                "video_too_long",
                url=url,
                duration=duration,
                max_duration=max_duration,
            )
            await self.send(long_video_template)
            if fields.cover_url:
                await self.send(Image(src=fields.cover_url))
            return

        video_url = fields.video_urls.preferred
        if not video_url:
            raise MissingVideoURL(f"No download or play URL found for {url or 'message'}")

        self._log.detail("video_link_sending", url=url, duration=duration)
        if await self.send(VIDEO_LINK_PREFIX + video_url):
            self._log.success("video_link_sent", url=url)


def _preview(item: OutgoingItem, *, limit: int = 80) -> str:
    text = f"image:{item.src}" if isinstance(item, Image) else str(item)
    return text if len(text) <= limit else text[: limit - 1] + "…"


def _describe(exc: BaseException) -> dict[str, str]:
    return {"type": type(exc).__name__, "message": str(exc)}
