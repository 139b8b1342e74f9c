from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Mapping, Sequence

from .content import (
    UNKNOWN_AUTHOR,
    Author,
    CanonicalRecord,
    ContentFields,
    Statistics,
    VideoUrls,
)

Rule = Callable[[CanonicalRecord], Any]
Accept = Callable[[Any], bool]

# Durations above this are assumed to be milliseconds.
_MILLISECOND_THRESHOLD = 1000

_COVER_KEYS = ("dynamic_cover", "cover", "cover_original_scale")


def _dig(node: Any, *path: str) -> Any:
    cur = node
    for key in path:
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(key)
    return cur


def _from_content(*path: str) -> Rule:
    def rule(record: CanonicalRecord) -> Any:
        return _dig(record.content_node, *path)

    return rule


def _from_payload(*path: str) -> Rule:
    def rule(record: CanonicalRecord) -> Any:
        return _dig(record.payload_node, *path)

    return rule


def _is_present(value: Any) -> bool:
    return value is not None


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _is_non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_count(value: Any) -> bool:
    return _coerce_count(value) is not None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def first_present(
    rules: Iterable[Rule],
    record: CanonicalRecord,
    *,
    accept: Accept = _is_present,
) -> Any:
    """
    Evaluate rules in priority order and return the first accepted value.

    Later rules are never consulted once one matches.
    """
    for rule in rules:
        value = rule(record)
        if accept(value):
            return value
    return None


def _coerce_count(value: Any) -> int | None:
    if _is_number(value):
        n = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        n = int(value.strip())
    else:
        return None
    return n if n >= 0 else None


def _first_url(value: Any) -> str | None:
    """Pick the first URL out of a `{url_list: [...]}` / `{url: ...}` / string node."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        url_list = value.get("url_list")
        if isinstance(url_list, list):
            for item in url_list:
                if isinstance(item, str) and item:
                    return item
        url = value.get("url")
        if isinstance(url, str) and url:
            return url
    return None


def _flatten_media(items: Sequence[Any]) -> list[str]:
    out: list[str] = []
    for item in items:
        if isinstance(item, Mapping):
            urls = item.get("url_list") or item.get("url") or []
        else:
            urls = item
        if isinstance(urls, str):
            if urls:
                out.append(urls)
        elif isinstance(urls, list):
            out.extend(u for u in urls if isinstance(u, str) and u)
    return out


def _music_duration(record: CanonicalRecord) -> Any:
    music = _dig(record.content_node, "music")
    if not isinstance(music, Mapping) or not music:
        music = _dig(record.payload_node, "music")
    return _dig(music, "duration")


DESCRIPTION_RULES: tuple[Rule, ...] = (
    _from_content("desc"),
    _from_payload("desc"),
)

MEDIA_SOURCE_RULES: tuple[Rule, ...] = (
    _from_content("images"),
    _from_content("image_infos"),
    _from_payload("images"),
    _from_payload("image_infos"),
)

VIDEO_DURATION_RULES: tuple[Rule, ...] = (_from_content("video", "duration"),)

FALLBACK_DURATION_RULES: tuple[Rule, ...] = (
    _from_content("duration"),
    _music_duration,
)

NICKNAME_RULES: tuple[Rule, ...] = (
    _from_content("author", "nickname"),
    _from_payload("author", "nickname"),
)

SIGNATURE_RULES: tuple[Rule, ...] = (
    _from_content("author", "signature"),
    _from_payload("author", "signature"),
)

DOWNLOAD_URL_RULES: tuple[Rule, ...] = (_from_content("video", "download_addr"),)

PLAY_URL_RULES: tuple[Rule, ...] = (_from_content("video", "play_addr"),)

COVER_URL_RULES: tuple[Rule, ...] = tuple(
    [_from_content("video", key) for key in _COVER_KEYS]
    + [_from_payload(key) for key in _COVER_KEYS]
)

AWEME_ID_RULES: tuple[Rule, ...] = (
    _from_content("aweme_id"),
    _from_payload("aweme_id"),
)


def _statistic_rules(field_name: str) -> tuple[Rule, ...]:
    return (
        _from_content("statistics", field_name),
        _from_payload("statistics", field_name),
    )


def extract_media_urls(record: CanonicalRecord) -> list[str]:
    source = first_present(MEDIA_SOURCE_RULES, record, accept=_is_non_empty_list)
    if source is None:
        return []
    return _flatten_media(source)


def normalize_duration(value: float) -> int:
    """Convert a raw duration to whole seconds; values above 1000 are milliseconds."""
    if value > _MILLISECOND_THRESHOLD:
        return _round_half_up(value / 1000)
    return max(0, _round_half_up(value))


def extract_duration(record: CanonicalRecord) -> int:
    video_duration = first_present(VIDEO_DURATION_RULES, record, accept=_is_number)
    if video_duration is not None:
        return normalize_duration(video_duration)

    raw = first_present(FALLBACK_DURATION_RULES, record)
    if _is_number(raw):
        return max(0, _round_half_up(raw))
    return 0


def extract_statistics(record: CanonicalRecord) -> Statistics:
    def count(field_name: str) -> int:
        value = first_present(_statistic_rules(field_name), record, accept=_is_count)
        return _coerce_count(value) or 0

    return Statistics(
        digg=count("digg_count"),
        comment=count("comment_count"),
        share=count("share_count"),
        collect=count("collect_count"),
    )


def extract_author(record: CanonicalRecord) -> Author:
    nickname = first_present(NICKNAME_RULES, record, accept=_is_non_empty_str)
    signature = first_present(SIGNATURE_RULES, record, accept=_is_non_empty_str)
    return Author(nickname=nickname or UNKNOWN_AUTHOR, signature=signature or "")


def extract_video_urls(record: CanonicalRecord) -> VideoUrls:
    download = first_present(DOWNLOAD_URL_RULES, record)
    play = first_present(PLAY_URL_RULES, record)
    return VideoUrls(download=_first_url(download), play=_first_url(play))


def extract_cover_url(record: CanonicalRecord) -> str | None:
    for rule in COVER_URL_RULES:
        url = _first_url(rule(record))
        if url:
            return url
    return None


def _extract_aweme_id(record: CanonicalRecord) -> str | None:
    value = first_present(
        AWEME_ID_RULES, record, accept=lambda v: _is_non_empty_str(v) or _is_number(v)
    )
    return None if value is None else str(value)


def extract_content(record: CanonicalRecord) -> ContentFields:
    """
    Derive presentation fields from a canonical record.

    Every lookup is defensive: a missing mapping at any level reads as absent.
    """
    description = first_present(DESCRIPTION_RULES, record, accept=_is_non_empty_str)

    return ContentFields(
        description=description or "",
        media_urls=tuple(extract_media_urls(record)),
        duration_seconds=extract_duration(record),
        author=extract_author(record),
        statistics=extract_statistics(record),
        video_urls=extract_video_urls(record),
        cover_url=extract_cover_url(record),
        aweme_id=_extract_aweme_id(record),
    )
