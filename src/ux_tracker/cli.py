#!/usr/bin/env python3
"""
CLI tool for exercising the tracker outside a host application.

Usage:
    ux-tracker check-consent user@test.com --consent-url http://localhost:5000
    ux-tracker replay session.jsonl --identity user@test.com --accept
    ux-tracker replay session.jsonl --config tracker.yaml --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import yaml
from colorama import Fore, Style, init as colorama_init

from .capture.inputs import (
    FocusInput,
    PageInfo,
    PointerInput,
    ScrollInput,
    SubmitInput,
    TargetInfo,
    VisibilityInput,
)
from .capture.source import SyntheticEventSource
from .clock import ManualClock
from .config import TrackerConfig
from .consent.client import ConsentClient, RemoteUnavailable
from .consent.gate import Decision
from .tracker import Tracker


logger = logging.getLogger(__name__)


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _target(data: dict[str, Any] | None) -> TargetInfo:
    if not data:
        return TargetInfo()
    return TargetInfo(
        tag=data.get("tag", ""),
        id=data.get("id"),
        class_name=data.get("class"),
        form_id=data.get("form_id"),
        name=data.get("name"),
        has_value=bool(data.get("has_value", False)),
        ancestor_ids=tuple(data.get("ancestors", ())),
    )


def parse_record(record: dict[str, Any]) -> tuple[str, Any]:
    """Turn one recorded line into (event_type, input)."""
    kind = record.get("type")
    if kind in ("click", "mousemove"):
        return kind, PointerInput(x=record["x"], y=record["y"], target=_target(record.get("target")))
    if kind == "scroll":
        return kind, ScrollInput(
            scroll_y=record["scroll_y"],
            viewport_height=record["viewport_height"],
            document_height=record["document_height"],
        )
    if kind == "focusout":
        return kind, FocusInput(target=_target(record.get("target")))
    if kind == "submit":
        return kind, SubmitInput(form_id=record.get("form_id"))
    if kind == "visibilitychange":
        return kind, VisibilityInput(state=record.get("state", "hidden"))
    raise ValueError(f"Unknown recorded event type {kind!r}")


def load_recording(path: str) -> tuple[PageInfo, list[tuple[int, str, Any]]]:
    """
    Read a JSON-lines recording.

    An optional {"type": "page", ...} line describes the page; every other
    line is a raw UI input with a "t" timestamp in ms.
    """
    page = PageInfo()
    events: list[tuple[int, str, Any]] = []

    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
                if record.get("type") == "page":
                    page = PageInfo(
                        url=record.get("url"),
                        width=record.get("width", 0),
                        height=record.get("height", 0),
                        user_agent=record.get("user_agent"),
                    )
                    continue
                event_type, ui_input = parse_record(record)
                events.append((int(record.get("t", 0)), event_type, ui_input))
            except (ValueError, KeyError, TypeError) as e:
                raise ValueError(f"{path}:{lineno}: {e}") from e

    events.sort(key=lambda item: item[0])
    return page, events


def _load_config(args) -> TrackerConfig:
    config = TrackerConfig.load(args.config) if args.config else TrackerConfig()
    if getattr(args, "identity", None):
        config.identity = args.identity
    if getattr(args, "consent_url", None):
        config.consent.service_url = args.consent_url
    if getattr(args, "endpoint", None):
        config.transport.endpoint = args.endpoint
    if getattr(args, "dry_run", False):
        config.transport.kind = "console"
    return config


async def cmd_check_consent(args) -> int:
    """Ask the consent service about an identity."""
    config = _load_config(args)
    if not config.consent.service_url:
        print(colorize("Error: no consent service URL configured", Fore.RED), file=sys.stderr)
        return 2

    client = ConsentClient(base_url=config.consent.service_url, timeout=config.consent.timeout_seconds)
    try:
        allowed = await client.check(args.email)
    except RemoteUnavailable as e:
        print(colorize(f"Unavailable: {e}", Fore.YELLOW))
        return 2

    if allowed:
        print(colorize(f"{args.email}: tracking allowed", Fore.GREEN))
        return 0
    print(colorize(f"{args.email}: tracking not allowed", Fore.RED))
    return 1


async def cmd_replay(args) -> int:
    """Feed a recorded session through the full pipeline."""
    config = _load_config(args)
    page, recorded = load_recording(args.file)

    clock = ManualClock(start_ms=recorded[0][0] if recorded else 0)
    source = SyntheticEventSource(page=page)
    tracker = Tracker(config=config, source=source, clock=clock)

    decision = await tracker.start()
    if decision is Decision.PROMPT:
        if args.accept:
            tracker.prompt.accept()
        elif args.decline:
            tracker.prompt.decline()

    if not tracker.state.tracking_active:
        print(colorize(f"Consent decision: {decision.value}; nothing captured", Fore.YELLOW))
        await tracker.shutdown()
        return 1

    for t, event_type, ui_input in recorded:
        clock.advance_to(t)
        source.dispatch(event_type, ui_input)

    await tracker.shutdown()

    stats = tracker.stats
    print(colorize("\nReplay complete", Style.BRIGHT))
    print(f"  {colorize('Inputs:', Fore.CYAN)} {len(recorded)}")
    print(f"  {colorize('Batches:', Fore.CYAN)} {stats['batcher']['batches_sent']}")
    print(f"  {colorize('Events:', Fore.CYAN)} {stats['batcher']['events_sent']}")
    print(f"  {colorize('Session:', Fore.CYAN)} {tracker.state.session_id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ux-tracker", description="UX tracker tools")
    parser.add_argument("--config", help="Tracker config file (YAML or JSON)")
    parser.add_argument("--log-level", default=None, help="Logging level (default from config)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser("check-consent", help="Query the consent service")
    check.add_argument("email", help="Identity to check")
    check.add_argument("--consent-url", help="Consent service base URL")
    check.set_defaults(func=cmd_check_consent)

    replay = subparsers.add_parser("replay", help="Replay a JSON-lines recording")
    replay.add_argument("file", help="Recording to replay")
    replay.add_argument("--identity", help="Identity (email) to attach")
    replay.add_argument("--consent-url", help="Consent service base URL")
    replay.add_argument("--endpoint", help="Collector endpoint")
    replay.add_argument("--dry-run", action="store_true", help="Print payloads instead of sending")
    answer = replay.add_mutually_exclusive_group()
    answer.add_argument("--accept", action="store_true", help="Accept the consent prompt")
    answer.add_argument("--decline", action="store_true", help="Decline the consent prompt")
    replay.set_defaults(func=cmd_replay)

    return parser


def main(argv: list[str] | None = None) -> int:
    colorama_init()
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        level = args.log_level
        if level is None:
            level = TrackerConfig.load(args.config).log_level if args.config else "WARNING"
        configure_logging(level)
        return asyncio.run(args.func(args))
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(colorize(f"Error: {e}", Fore.RED), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
