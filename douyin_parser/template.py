from __future__ import annotations

import re
from typing import Mapping

from .content import ContentFields

TemplateValue = str | int
TemplateContext = Mapping[str, TemplateValue]

# Substitution order is fixed; a substituted value may itself contain a placeholder.
PLACEHOLDERS: tuple[str, ...] = (
    "desc",
    "type",
    "digg_count",
    "comment_count",
    "share_count",
    "collect_count",
    "duration",
    "nickname",
    "signature",
)

_LEFTOVER_RE = re.compile(r"\{[^}]+\}")


def build_template_context(fields: ContentFields) -> dict[str, TemplateValue]:
    stats = fields.statistics
    return {
        "desc": fields.description,
        "type": fields.content_type,
        "digg_count": stats.digg,
        "comment_count": stats.comment,
        "share_count": stats.share,
        "collect_count": stats.collect,
        "duration": fields.duration_seconds,
        "nickname": fields.author.nickname,
        "signature": fields.author.signature,
    }


def strip_placeholders(text: str) -> str:
    """Remove every remaining `{...}` token. Applying it twice changes nothing."""
    return _LEFTOVER_RE.sub("", text)


def render_template(template: str, context: TemplateContext) -> str:
    """
    Flat placeholder substitution.

    Only truthy values are substituted; falsy ones (0, "") are left in place and
    removed by the cleanup pass, so a zero counter renders as empty text.
    """
    result = template or ""
    for name in PLACEHOLDERS:
        value = context.get(name)
        if value:
            result = result.replace("{" + name + "}", str(value))
    return strip_placeholders(result)
