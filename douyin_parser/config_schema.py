from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

NonNegativeInt = Annotated[int, Field(ge=0)]


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_host: str = "https://api.douyin.wtf"
    max_duration: NonNegativeInt = 90  # seconds; 0 disables the limit
    reply_template: str = "抖音解析：\n{desc}"
    long_video_template: str = "视频过长~ 请打开抖音客户端查看"
    log_level: int = Field(2, ge=0, le=3)
    request_timeout_seconds: float = Field(30.0, gt=0)

    @field_validator("api_host")
    @classmethod
    def _api_host_must_be_url(cls, v: str) -> str:
        host = (v or "").strip().rstrip("/")
        if not host.startswith(("http://", "https://")):
            raise ValueError("must start with http:// or https://")
        return host

    @field_validator("max_duration", mode="before")
    @classmethod
    def _max_duration_from_text(cls, v: object) -> object:
        if isinstance(v, str):
            text = v.strip()
            return int(text) if text else 0
        return v
