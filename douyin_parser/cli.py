from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Sequence

from .config import load_config
from .config_schema import AppConfig
from .content import Image, InboundMessage, OutgoingItem
from .errors import ConfigError
from .pipeline import HandleResult, LinkPipeline, VideoDataSource
from .resolver import VideoDataClient
from .run_log import RunLogger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="douyin_parser")

    subparsers = parser.add_subparsers(dest="command", required=True)

    parse = subparsers.add_parser(
        "parse",
        help="Run one chat message through the link pipeline and print the replies.",
    )
    parse.add_argument(
        "text",
        help="Message text, e.g. a copied share blurb containing a v.douyin.com link.",
    )
    parse.add_argument(
        "--config",
        required=True,
        help="Path to YAML config file.",
    )
    parse.add_argument(
        "--offline",
        action="store_true",
        help="Resolve against canned responses instead of the remote API.",
    )
    parse.add_argument(
        "--log",
        default=None,
        help="Write JSONL log lines to this file instead of stderr.",
    )
    parse.set_defaults(_handler=_cmd_parse)

    return parser


def _eprint(message: str) -> None:
    print(message, file=sys.stderr)


async def _print_item(item: OutgoingItem) -> None:
    if isinstance(item, Image):
        print(f"image: {item.src}")
    else:
        print(f"text: {item}")


async def _run_parse(cfg: AppConfig, text: str, *, offline: bool, log: RunLogger) -> HandleResult:
    message = InboundMessage(text=text, user_id="cli", channel_id="cli")

    if offline:
        from .offline import OfflineVideoDataClient

        source: VideoDataSource = OfflineVideoDataClient()
        return await LinkPipeline(cfg, source, logger=log).handle(message, send=_print_item)

    async with VideoDataClient(cfg.api_host, timeout_seconds=cfg.request_timeout_seconds) as client:
        return await LinkPipeline(cfg, client, logger=log).handle(message, send=_print_item)


def _cmd_parse(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)

    if args.log:
        log = RunLogger.open(Path(args.log), verbosity=cfg.log_level)
    else:
        log = RunLogger.to_stderr(verbosity=cfg.log_level)

    with log:
        log.info("parse_command_started", config_path=str(args.config), api_host=cfg.api_host)
        result = asyncio.run(
            _run_parse(cfg, args.text, offline=bool(args.offline), log=log)
        )

    print(f"status={result.status}")
    if result.status == "transport_error":
        return 3
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        handler = getattr(args, "_handler")
        return int(handler(args))
    except ConfigError as e:
        _eprint(str(e))
        return 2
    except KeyboardInterrupt:
        _eprint("Interrupted")
        return 130
    except Exception as e:
        _eprint(f"Unexpected error: {e}")
        return 1
