"""Command-line entry point: serve demo pages or inspect a page."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Optional, Sequence

import uvicorn
from playwright.async_api import async_playwright

from harness.config import SUPPORTED_BROWSERS, HarnessConfig
from harness.errors import HarnessError
from harness.inspection import detect_components, extract_embedded_fsm, summarize_components
from harness.navigator import LoadState, Readiness, SelectorVisible
from harness.records import format_record
from harness.session import Session
from harness.static_server import create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="harness", description="Browser interaction harness for demo pages"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Serve a directory of demo pages")
    serve.add_argument("--dir", dest="html_dir", type=Path, help="Page directory")
    serve.add_argument("--host", help="Bind address")
    serve.add_argument("--port", type=int, help="Port to listen on")

    inspect = commands.add_parser("inspect", help="Report components and signals of a page")
    inspect.add_argument("url", help="Absolute URL or path relative to the base URL")
    inspect.add_argument("--wait-for", metavar="SELECTOR", help="Wait for a visible element")
    inspect.add_argument("--browser", choices=SUPPORTED_BROWSERS, help="Browser to use")
    inspect.add_argument("--json", action="store_true", help="Print a JSON report")
    return parser


def serve(config: HarnessConfig, args: argparse.Namespace) -> int:
    html_dir = args.html_dir or config.html_dir
    app = create_app(html_dir)
    host = args.host or config.host
    port = config.port if args.port is None else args.port
    logger.info(f"Serving {html_dir} on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
    return 0


async def inspect_page(
    config: HarnessConfig,
    url: str,
    browser_name: str,
    wait_for: Optional[str] = None,
) -> Dict[str, object]:
    """Open ``url`` and collect components, embedded FSM and signals."""
    readiness: Readiness = SelectorVisible(wait_for) if wait_for else LoadState.LOAD_EVENT
    async with async_playwright() as p:
        launcher = getattr(p, browser_name)
        browser = await launcher.launch(
            headless=config.headless, args=config.launch_args(browser_name)
        )
        try:
            context = await browser.new_context(viewport=config.viewport_size)  # type: ignore[arg-type]
            async with await Session.open(context, config) as session:
                await session.goto(url, readiness)
                components = await detect_components(session)
                fsm = await extract_embedded_fsm(session)
                records = sorted(
                    [
                        *session.console_records(),
                        *session.runtime_errors(),
                        *session.dialogs(),
                    ],
                    key=lambda r: r.sequence,
                )
                return {
                    "url": session.navigator.current_url,
                    "components": [c.model_dump(mode="json") for c in components],
                    "summary": summarize_components(components),
                    "fsm": fsm,
                    "signals": [format_record(r) for r in records],
                }
        finally:
            await browser.close()


def _print_report(report: Dict[str, object]) -> None:
    print(f"Page: {report['url']}")
    summary = report["summary"]
    print(f"Components: {json.dumps(summary, sort_keys=True)}")
    components = report["components"]
    if isinstance(components, list):
        for component in components:
            label = f" {component['label']!r}" if component.get("label") else ""
            disabled = " (disabled)" if component.get("disabled") else ""
            print(f"  {component['kind']:<8} {component['selector']}{label}{disabled}")
    fsm = report["fsm"]
    print(f"Embedded FSM: {'yes' if fsm is not None else 'no'}")
    signals = report["signals"]
    if isinstance(signals, list):
        print(f"Signals ({len(signals)}):")
        for line in signals:
            print(f"  {line}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = HarnessConfig.from_environment()
        match args.command:
            case "serve":
                return serve(config, args)
            case "inspect":
                browser_name = args.browser or config.browsers[0]
                report = asyncio.run(
                    inspect_page(config, args.url, browser_name, args.wait_for)
                )
                if args.json:
                    print(json.dumps(report, indent=2))
                else:
                    _print_report(report)
                return 0
            case _:
                parser.error(f"Unknown command {args.command}")
    except HarnessError as e:
        logger.error(str(e))
        return 1
    return 2


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
