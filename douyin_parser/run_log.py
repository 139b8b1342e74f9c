from __future__ import annotations

import json
import sys
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, TextIO

# Verbosity thresholds, matching the `log_level` config field.
LOG_OFF = 0
LOG_ERRORS = 1
LOG_INFO = 2
LOG_DETAIL = 3


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _truncate(text: str, *, limit: int) -> str:
    s = str(text or "")
    if limit <= 0:
        return ""
    if len(s) <= limit:
        return s
    return s[: max(0, limit - 1)] + "…"


class RunLogger:
    """
    Verbosity-gated JSONL logger handed to the pipeline at construction.

    Each log line is a single JSON object. Level 0 writes nothing, level 1 writes
    warnings and errors, level 2 adds info/success events, level 3 adds detail events.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        stream: TextIO | None = None,
        verbosity: int = LOG_INFO,
        overwrite: bool = False,
        session_id: str | None = None,
    ) -> None:
        self._path = Path(path) if path is not None else None
        self._stream = stream
        self._verbosity = max(LOG_OFF, min(LOG_DETAIL, int(verbosity)))
        self._overwrite = bool(overwrite)
        self._session_id = (session_id or "").strip() or uuid.uuid4().hex
        self._fp: TextIO | None = None
        self._owns_fp = False
        self._lock = Lock()

    @classmethod
    def open(
        cls,
        path: str | Path,
        *,
        verbosity: int = LOG_INFO,
        overwrite: bool = True,
    ) -> "RunLogger":
        logger = cls(path, verbosity=verbosity, overwrite=overwrite)
        logger._ensure_open()
        return logger

    @classmethod
    def to_stderr(cls, *, verbosity: int = LOG_INFO) -> "RunLogger":
        return cls(stream=sys.stderr, verbosity=verbosity)

    @property
    def verbosity(self) -> int:
        return self._verbosity

    @property
    def detail_enabled(self) -> bool:
        return self._verbosity >= LOG_DETAIL

    def close(self) -> None:
        with self._lock:
            if self._fp is not None and self._owns_fp:
                try:
                    self._fp.flush()
                finally:
                    self._fp.close()
            self._fp = None
            self._owns_fp = False

    def __enter__(self) -> "RunLogger":
        self._ensure_open()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def detail(self, event: str, *, url: str | None = None, **data: Any) -> None:
        if self._verbosity >= LOG_DETAIL:
            self.log("DETAIL", event, url=url, **data)

    def info(self, event: str, *, url: str | None = None, **data: Any) -> None:
        if self._verbosity >= LOG_INFO:
            self.log("INFO", event, url=url, **data)

    def success(self, event: str, *, url: str | None = None, **data: Any) -> None:
        if self._verbosity >= LOG_INFO:
            self.log("SUCCESS", event, url=url, **data)

    def warning(self, event: str, *, url: str | None = None, **data: Any) -> None:
        if self._verbosity >= LOG_ERRORS:
            self.log("WARN", event, url=url, **data)

    def error(self, event: str, *, url: str | None = None, **data: Any) -> None:
        if self._verbosity >= LOG_ERRORS:
            self.log("ERROR", event, url=url, **data)

    def exception(
        self,
        event: str,
        *,
        exc: BaseException,
        url: str | None = None,
        **data: Any,
    ) -> None:
        if self._verbosity < LOG_ERRORS:
            return
        err = {
            "type": type(exc).__name__,
            "message": _truncate(str(exc), limit=2000),
            "traceback": _truncate(
                "".join(
                    traceback.format_exception(
                        type(exc), exc, exc.__traceback__
                    )
                ),
                limit=12000,
            ),
        }
        self.log("ERROR", event, url=url, error=err, **data)

    def log(self, level: str, event: str, *, url: str | None = None, **data: Any) -> None:
        lvl = (level or "").strip().upper() or "INFO"
        ev = (event or "").strip() or "event"

        record: dict[str, Any] = {
            "ts": _utc_now_iso(),
            "level": lvl,
            "event": ev,
            "session_id": self._session_id,
        }

        u = (url or "").strip()
        if u:
            record["url"] = u

        if data:
            record["data"] = data

        self._write(record)

    def _ensure_open(self) -> None:
        if self._fp is not None:
            return

        with self._lock:
            if self._fp is not None:
                return

            if self._stream is not None:
                self._fp = self._stream
                self._owns_fp = False
                return

            if self._path is None:
                return

            self._path.parent.mkdir(parents=True, exist_ok=True)
            mode = "w" if self._overwrite else "a"
            self._fp = self._path.open(mode, encoding="utf-8", newline="\n")
            self._owns_fp = True
            # Later reopens append to what this session already wrote.
            self._overwrite = False

    def _write(self, record: dict[str, Any]) -> None:
        self._ensure_open()

        payload = json.dumps(
            record,
            ensure_ascii=False,
            sort_keys=True,
            separators=(",", ":"),
            default=str,
        )

        with self._lock:
            if self._fp is None:
                return
            self._fp.write(payload + "\n")
            self._fp.flush()
