from __future__ import annotations

import io
import json
import tempfile
import unittest
from pathlib import Path

from douyin_parser.run_log import RunLogger


def _events(text: str) -> list[dict]:
    return [json.loads(ln) for ln in text.splitlines() if ln.strip()]


def _emit_all(log: RunLogger) -> None:
    log.detail("d")
    log.info("i")
    log.success("s")
    log.warning("w")
    log.error("e")


class TestRunLoggerVerbosity(unittest.TestCase):
    def test_levels_gate_events(self) -> None:
        expected = {
            0: [],
            1: ["w", "e"],
            2: ["i", "s", "w", "e"],
            3: ["d", "i", "s", "w", "e"],
        }
        for verbosity, names in expected.items():
            with self.subTest(verbosity=verbosity):
                stream = io.StringIO()
                _emit_all(RunLogger(stream=stream, verbosity=verbosity))
                self.assertEqual([e["event"] for e in _events(stream.getvalue())], names)

    def test_exception_records_error_details(self) -> None:
        stream = io.StringIO()
        log = RunLogger(stream=stream, verbosity=1)
        try:
            raise ValueError("bad")
        except ValueError as e:
            log.exception("failed", exc=e, url="https://v.douyin.com/x/")

        (event,) = _events(stream.getvalue())
        self.assertEqual(event["level"], "ERROR")
        self.assertEqual(event["url"], "https://v.douyin.com/x/")
        self.assertEqual(event["data"]["error"]["type"], "ValueError")
        self.assertIn("bad", event["data"]["error"]["traceback"])


class TestRunLoggerFile(unittest.TestCase):
    def test_writes_jsonl_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "logs" / "run.log"
            with RunLogger.open(path, verbosity=2) as log:
                log.info("started", api_host="https://api.example.com")
                log.detail("hidden")

            events = _events(path.read_text(encoding="utf-8"))
            self.assertEqual([e["event"] for e in events], ["started"])
            self.assertEqual(events[0]["data"], {"api_host": "https://api.example.com"})
            self.assertIn("session_id", events[0])


if __name__ == "__main__":
    unittest.main()
