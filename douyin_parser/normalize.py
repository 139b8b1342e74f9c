from __future__ import annotations

from typing import Any, Mapping

from .content import CanonicalRecord

_STATUS_KEYS = ("code", "status", "status_code")
_CONTENT_KEYS = ("aweme_detail", "aweme")

# Stands in for a status value that is present but not an integer; never 200.
UNPARSEABLE_STATUS = -1


def _coerce_status(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        s = value.strip()
        if s.lstrip("-").isdigit():
            return int(s)
    return None


def _non_empty_mapping(value: Any) -> Mapping[str, Any] | None:
    if isinstance(value, Mapping) and value:
        return value
    return None


def _status_code(response: Mapping[str, Any]) -> int:
    for key in _STATUS_KEYS:
        value = response.get(key)
        if value is None:
            continue
        code = _coerce_status(value)
        return UNPARSEABLE_STATUS if code is None else code
    return 200


def _payload_node(response: Mapping[str, Any]) -> Mapping[str, Any]:
    if "data" not in response:
        return response

    data = response.get("data")
    if not isinstance(data, Mapping):
        return {}

    # Some endpoint versions wrap the payload twice: {"data": {"data": {...}}}.
    inner = data.get("data")
    if isinstance(inner, Mapping):
        return inner
    return data


def _content_node(payload: Mapping[str, Any]) -> Mapping[str, Any] | None:
    for key in _CONTENT_KEYS:
        node = _non_empty_mapping(payload.get(key))
        if node is not None:
            return node

    aweme_list = payload.get("aweme_list")
    if isinstance(aweme_list, list) and aweme_list:
        node = _non_empty_mapping(aweme_list[0])
        if node is not None:
            return node

    return _non_empty_mapping(payload)


def normalize_response(response: Any) -> CanonicalRecord:
    """
    Map a raw resolution response onto a CanonicalRecord.

    Tolerates the known envelope variants (`aweme_detail`, `aweme`, `aweme_list`,
    bare payload) by walking a fixed fallback chain instead of branching on a version.
    """
    if not isinstance(response, Mapping):
        return CanonicalRecord(status_code=200, content_node=None, payload_node={})

    payload = _payload_node(response)
    return CanonicalRecord(
        status_code=_status_code(response),
        content_node=_content_node(payload),
        payload_node=payload,
    )
