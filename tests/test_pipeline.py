from __future__ import annotations

import asyncio
import io
import json
import unittest
from typing import Any

from douyin_parser.config_schema import AppConfig
from douyin_parser.content import Image, InboundMessage
from douyin_parser.errors import TransportError
from douyin_parser.pipeline import (
    MISSING_VIDEO_URL_REPLY,
    RESOLUTION_FAILED_REPLY,
    LinkPipeline,
)
from douyin_parser.run_log import RunLogger

_SHARE_TEXT = "复制打开抖音，看看 https://v.douyin.com/i5cseJ9a/ 10/23"


class _FakeSource:
    def __init__(self, response: Any = None, *, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.calls: list[str] = []

    async def fetch_video_data(self, url: str) -> Any:
        self.calls.append(url)
        if self._error is not None:
            raise self._error
        return self._response


class _Sink:
    def __init__(self, *, fail: bool = False) -> None:
        self.items: list[Any] = []
        self._fail = fail

    async def __call__(self, item: Any) -> None:
        if self._fail:
            raise RuntimeError("session closed")
        self.items.append(item)


def _video_response(duration: int = 30000) -> dict[str, Any]:
    return {
        "code": 200,
        "data": {
            "aweme_detail": {
                "aweme_id": "1",
                "desc": "a video",
                "author": {"nickname": "nick"},
                "statistics": {"digg_count": 0, "comment_count": 5},
                "video": {
                    "duration": duration,
                    "download_addr": {"url_list": ["u1"]},
                    "play_addr": {"url_list": ["u2"]},
                    "cover": {"url_list": ["cover"]},
                },
            }
        },
    }


def _pipeline(source: _FakeSource, stream: io.StringIO | None = None, **cfg: Any) -> LinkPipeline:
    config = AppConfig(**cfg)
    logger = RunLogger(stream=stream or io.StringIO(), verbosity=3)
    return LinkPipeline(config, source, logger=logger)


class TestLinkPipeline(unittest.IsolatedAsyncioTestCase):
    async def test_skips_messages_without_link(self) -> None:
        source = _FakeSource(_video_response())
        sink = _Sink()
        result = await _pipeline(source).handle(InboundMessage(text="hello"), send=sink)

        self.assertEqual(result.status, "skipped")
        self.assertEqual(source.calls, [])
        self.assertEqual(sink.items, [])

    async def test_video_post_sends_reply_then_link(self) -> None:
        source = _FakeSource(_video_response())
        sink = _Sink()
        pipeline = _pipeline(
            source,
            reply_template="{desc} by {nickname} ({digg_count} likes, {comment_count} comments)",
        )

        result = await pipeline.handle(InboundMessage(text=_SHARE_TEXT), send=sink)

        self.assertEqual(result.status, "delivered")
        self.assertEqual(source.calls, ["https://v.douyin.com/i5cseJ9a/"])
        self.assertEqual(
            sink.items,
            ["a video by nick ( likes, 5 comments)", "视频地址：u1"],
        )

    async def test_long_video_sends_preview_instead_of_link(self) -> None:
        sink = _Sink()
        pipeline = _pipeline(
            _FakeSource(_video_response(duration=120000)),
            max_duration=90,
            long_video_template="too long",
        )

        await pipeline.handle(InboundMessage(text=_SHARE_TEXT), send=sink)

        self.assertEqual(sink.items[1:], ["too long", Image("cover")])
        self.assertFalse(any(isinstance(i, str) and i.startswith("视频地址") for i in sink.items))

    async def test_half_second_over_limit_counts_as_too_long(self) -> None:
        sink = _Sink()
        pipeline = _pipeline(
            _FakeSource(_video_response(duration=90500)),
            max_duration=90,
            long_video_template="too long",
        )

        result = await pipeline.handle(InboundMessage(text=_SHARE_TEXT), send=sink)

        assert result.fields is not None
        self.assertEqual(result.fields.duration_seconds, 91)
        self.assertEqual(sink.items[1:], ["too long", Image("cover")])

    async def test_link_event_records_sender_and_channel(self) -> None:
        stream = io.StringIO()
        message = InboundMessage(text=_SHARE_TEXT, user_id="u1", channel_id="c9", username="ann")
        await _pipeline(_FakeSource(_video_response()), stream).handle(message, send=_Sink())

        events = [json.loads(ln) for ln in stream.getvalue().splitlines() if ln.strip()]
        (detected,) = [e for e in events if e["event"] == "link_detected"]
        self.assertEqual(detected["data"], {"user": "ann", "channel": "c9"})

    async def test_image_post_sends_all_images(self) -> None:
        response = {"data": {"aweme": {"images": [{"url_list": [u]} for u in "abcd"]}}}
        sink = _Sink()
        await _pipeline(_FakeSource(response)).handle(InboundMessage(text=_SHARE_TEXT), send=sink)

        self.assertEqual(sink.items[1:], [Image("a"), Image("b"), Image("c"), Image("d")])

    async def test_resolution_failure_reports_and_halts(self) -> None:
        sink = _Sink()
        result = await _pipeline(_FakeSource({"code": 500, "data": {}})).handle(
            InboundMessage(text=_SHARE_TEXT), send=sink
        )

        self.assertEqual(result.status, "resolution_failed")
        self.assertEqual(sink.items, [RESOLUTION_FAILED_REPLY])

    async def test_missing_content_node_is_resolution_failure(self) -> None:
        sink = _Sink()
        result = await _pipeline(_FakeSource({"code": 200, "data": None})).handle(
            InboundMessage(text=_SHARE_TEXT), send=sink
        )
        self.assertEqual(result.status, "resolution_failed")

    async def test_missing_video_url_reports_retry(self) -> None:
        response = {"data": {"aweme_detail": {"desc": "no urls", "video": {"duration": 10}}}}
        sink = _Sink()
        result = await _pipeline(_FakeSource(response)).handle(
            InboundMessage(text=_SHARE_TEXT), send=sink
        )

        self.assertEqual(result.status, "missing_video_url")
        self.assertEqual(sink.items, ["抖音解析：\nno urls", MISSING_VIDEO_URL_REPLY])

    async def test_transport_error_reports_detail(self) -> None:
        stream = io.StringIO()
        sink = _Sink()
        source = _FakeSource(error=TransportError("boom"))
        result = await _pipeline(source, stream).handle(InboundMessage(text=_SHARE_TEXT), send=sink)

        self.assertEqual(result.status, "transport_error")
        self.assertEqual(sink.items, ["发生错误! 请重试; boom"])

        events = [json.loads(ln) for ln in stream.getvalue().splitlines() if ln.strip()]
        failed = [e for e in events if e["event"] == "resolution_request_failed"]
        self.assertEqual(len(failed), 1)
        self.assertEqual(failed[0]["level"], "ERROR")

    async def test_fallback_send_counts_as_delivered(self) -> None:
        primary = _Sink(fail=True)
        fallback = _Sink()
        result = await _pipeline(_FakeSource(_video_response())).handle(
            InboundMessage(text=_SHARE_TEXT), send=primary, fallback=fallback
        )

        self.assertEqual(result.status, "delivered")
        self.assertEqual(fallback.items, ["抖音解析：\na video", "视频地址：u1"])
        assert result.delivery is not None
        self.assertEqual(result.delivery.failed, 0)

    async def test_concurrent_messages_are_isolated(self) -> None:
        pipeline = _pipeline(_FakeSource(_video_response()))
        sinks = [_Sink() for _ in range(3)]

        results = await asyncio.gather(
            *(pipeline.handle(InboundMessage(text=_SHARE_TEXT), send=s) for s in sinks)
        )

        self.assertTrue(all(r.status == "delivered" for r in results))
        for sink in sinks:
            self.assertEqual(sink.items, ["抖音解析：\na video", "视频地址：u1"])


if __name__ == "__main__":
    unittest.main()
