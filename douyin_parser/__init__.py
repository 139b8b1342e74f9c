from __future__ import annotations

from .config import load_config
from .config_schema import AppConfig
from .content import CanonicalRecord, ContentFields, Image, InboundMessage
from .delivery import DeliveryManager
from .detect import find_share_url
from .errors import (
    ConfigError,
    DeliverySendFailure,
    MissingVideoURL,
    ResolutionFailure,
    TransportError,
)
from .extract import extract_content
from .normalize import normalize_response
from .pipeline import HandleResult, LinkPipeline
from .resolver import VideoDataClient
from .template import render_template

__all__ = [
    "AppConfig",
    "CanonicalRecord",
    "ConfigError",
    "ContentFields",
    "DeliveryManager",
    "DeliverySendFailure",
    "HandleResult",
    "Image",
    "InboundMessage",
    "LinkPipeline",
    "MissingVideoURL",
    "ResolutionFailure",
    "TransportError",
    "VideoDataClient",
    "extract_content",
    "find_share_url",
    "load_config",
    "normalize_response",
    "render_template",
]
