"""Command line entry point: run a page, classify a URL, or flip preferences."""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Optional, Sequence

from .browser.core import AutomationSession
from .config import AgentConfig, LOCATE_STRATEGIES, configure_logging, load_config
from .pages.routes import detect_page_type, get_route_description
from .settings import JsonFileStore, PreferenceStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kingsdrop",
        description="Automate Kinguin checkout, game and dashboard pages in Chromium.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Open a URL and run its page handler once.")
    run.add_argument("url", help="Page to open (checkout, game page or dashboard URL)")
    run.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless.",
    )
    run.add_argument(
        "--strategy",
        choices=LOCATE_STRATEGIES,
        help="How to wait for elements (default from KINGSDROP_LOCATE_STRATEGY).",
    )
    run.add_argument(
        "--hold",
        type=float,
        default=0.0,
        metavar="SECONDS",
        help="Keep the page open this long after the handler finishes.",
    )

    classify = sub.add_parser("classify", help="Print the page type for a URL.")
    classify.add_argument("url")

    sub.add_parser("toggle-auto-click", help="Toggle clicking (vs. highlighting) the pay button.")
    sub.add_parser("show-settings", help="Print the stored preferences.")
    return parser


async def _run(config: AgentConfig, preferences: PreferenceStore, url: str, hold: float) -> dict[str, Any]:
    async with AutomationSession(config=config, preferences=preferences) as session:
        result = await session.run(url)
        if hold > 0:
            await asyncio.sleep(hold)
        return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()
    configure_logging(config)
    preferences = PreferenceStore(JsonFileStore(config.settings_path))

    if args.command == "classify":
        page_type = detect_page_type(args.url)
        print(f"{page_type.value}\t{get_route_description(args.url)}")
        return 0

    if args.command == "toggle-auto-click":
        enabled = preferences.toggle("auto_click_pay")
        print(f"Auto-Click Pay: {'ENABLED' if enabled else 'DISABLED'}")
        return 0

    if args.command == "show-settings":
        print(json.dumps(preferences.load().model_dump(by_alias=True), indent=2))
        return 0

    config = config.with_overrides(
        headless=False if args.headed else None,
        locate_strategy=args.strategy,
    )
    result = asyncio.run(_run(config, preferences, args.url, args.hold))
    print(json.dumps(result, indent=2))
    return 0 if result.get("success") is not False else 1


if __name__ == "__main__":
    raise SystemExit(main())
