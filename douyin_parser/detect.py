from __future__ import annotations

import re

HOST_MARKER = "douyin.com"

_URL_RE = re.compile(r"https?://\S+")


def find_share_url(text: str | None, *, host_marker: str = HOST_MARKER) -> str | None:
    """
    Return the first URL-shaped token of a message that mentions the host marker.

    The gate is coarse: the marker may appear anywhere in the text, so the returned
    URL is not guaranteed to point at the marker host.
    """
    content = text or ""
    if host_marker not in content:
        return None

    match = _URL_RE.search(content)
    if match is None:
        return None
    return match.group(0)
