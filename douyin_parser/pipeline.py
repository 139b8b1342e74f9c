from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol

from .config_schema import AppConfig
from .content import ContentFields, InboundMessage
from .delivery import DeliveryManager, DeliveryReport, SendFn
from .detect import find_share_url
from .errors import MissingVideoURL, ResolutionFailure, TransportError
from .extract import extract_content
from .normalize import normalize_response
from .run_log import RunLogger
from .template import build_template_context, render_template

RESOLUTION_FAILED_REPLY = "解析失败! 该链接或许不支持"
MISSING_VIDEO_URL_REPLY = "无法获取视频链接，请稍后重试"
TRANSPORT_ERROR_REPLY = "发生错误! 请重试; {detail}"

HandleStatus = Literal[
    "skipped",
    "delivered",
    "resolution_failed",
    "missing_video_url",
    "transport_error",
]


class VideoDataSource(Protocol):
    async def fetch_video_data(self, url: str) -> Any: ...


@dataclass(frozen=True)
class HandleResult:
    status: HandleStatus
    url: str | None = None
    fields: ContentFields | None = None
    delivery: DeliveryReport | None = None


class LinkPipeline:
    """
    Per-message pipeline: detect, resolve, normalize, extract, render, deliver.

    Holds only read-only collaborators, so concurrent `handle` calls share no state.
    """

    def __init__(
        self,
        config: AppConfig,
        source: VideoDataSource,
        *,
        logger: RunLogger | None = None,
    ) -> None:
        self._config = config
        self._source = source
        self._log = logger or RunLogger.to_stderr(verbosity=config.log_level)

    async def handle(
        self,
        message: InboundMessage,
        *,
        send: SendFn,
        fallback: SendFn | None = None,
    ) -> HandleResult:
        url = find_share_url(message.text)
        if url is None:
            return HandleResult(status="skipped")

        self._log.info(
            "link_detected", url=url, user=message.sender, channel=message.channel_id
        )
        delivery = DeliveryManager(send, fallback=fallback, logger=self._log)

        try:
            fields = await self._resolve(url)
            reply = render_template(self._config.reply_template, build_template_context(fields))
            await delivery.send(reply)
            await delivery.deliver_media(
                fields,
                max_duration=self._config.max_duration,
                long_video_template=self._config.long_video_template,
                url=url,
            )
        except ResolutionFailure as e:
            self._log.warning("resolution_failed", url=url, status_code=e.status_code)
            await delivery.send(RESOLUTION_FAILED_REPLY)
            return HandleResult(status="resolution_failed", url=url, delivery=delivery.report())
        except MissingVideoURL as e:
            self._log.error("video_url_missing", url=url, message=str(e))
            await delivery.send(MISSING_VIDEO_URL_REPLY)
            return HandleResult(status="missing_video_url", url=url, delivery=delivery.report())
        except TransportError as e:
            self._log.exception("resolution_request_failed", exc=e, url=url)
            await delivery.send(TRANSPORT_ERROR_REPLY.format(detail=e))
            return HandleResult(status="transport_error", url=url, delivery=delivery.report())

        return HandleResult(
            status="delivered",
            url=url,
            fields=fields,
            delivery=delivery.report(),
        )

    async def _resolve(self, url: str) -> ContentFields:
        self._log.detail("resolution_requested", url=url)
        raw = await self._source.fetch_video_data(url)

        record = normalize_response(raw)
        if record.is_failure:
            raise ResolutionFailure(
                f"Resolution failed for {url} (status {record.status_code})",
                status_code=record.status_code,
            )

        fields = extract_content(record)
        if self._log.detail_enabled:
            self._log.detail(
                "resolution_succeeded",
                url=url,
                aweme_id=fields.aweme_id,
                type=fields.content_type,
                nickname=fields.author.nickname,
                duration=fields.duration_seconds,
                digg_count=fields.statistics.digg,
                comment_count=fields.statistics.comment,
            )
        else:
            self._log.success(
                "resolution_succeeded",
                url=url,
                type=fields.content_type,
                nickname=fields.author.nickname,
                duration=fields.duration_seconds,
            )
        return fields
