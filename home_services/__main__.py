"""
Entry point for running home services via `python -m home_services`.

Commands:
    serve               Start the dashboard with uvicorn (default)
    unit [--output P]   Print the systemd unit, or write it to P
    unit --check P      Exit 1 if the unit at P differs from the rendered one
    watch URL           Follow a dashboard's event stream and log each reload
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn

from .config import config

logger = logging.getLogger("home_services")


def serve(args: argparse.Namespace) -> int:
    """Run the dashboard server."""
    uvicorn.run(
        "home_services.main:app",
        host=args.host,
        port=args.port,
        reload=False,
    )
    return 0


def unit(args: argparse.Namespace) -> int:
    """Print or write the systemd unit, or check an installed one against it."""
    from .unit import parse_unit, render_unit, write_unit

    if args.check is not None:
        try:
            installed = parse_unit(Path(args.check).read_text())
        except (OSError, ValueError) as e:
            print(f"Cannot read unit {args.check}: {e}")
            return 1
        expected = parse_unit(render_unit())
        differences = [
            f"[{section}] {key}: {installed.get(section, {}).get(key)} != {expected.get(section, {}).get(key)}"
            for section in sorted(set(installed) | set(expected))
            for key in sorted(set(installed.get(section, {})) | set(expected.get(section, {})))
            if installed.get(section, {}).get(key) != expected.get(section, {}).get(key)
        ]
        for line in differences:
            print(line)
        if differences:
            return 1
        print(f"{args.check} matches the rendered unit")
        return 0

    if args.output is None:
        sys.stdout.write(render_unit())
        return 0

    success, message = write_unit(Path(args.output))
    print(message)
    return 0 if success else 1


def watch(args: argparse.Namespace) -> int:
    """Follow an event stream and log a line per debounced reload."""
    from .reload import watch as watch_stream

    logging.basicConfig(level=config.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    logger.setLevel(config.app_log_level)

    url = args.url.rstrip("/")
    if not url.endswith("/sse"):
        url = f"{url}/sse"

    def on_reload():
        logger.info(f"Reload triggered by {url}")

    try:
        asyncio.run(watch_stream(url, on_reload))
    except KeyboardInterrupt:
        logger.info("Stopped watching")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="home_services", description="Home services dashboard")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Run the dashboard server")
    serve_parser.add_argument("--host", default=config.host)
    serve_parser.add_argument("--port", type=int, default=config.port)
    serve_parser.set_defaults(func=serve)

    unit_parser = subparsers.add_parser("unit", help="Print or write the systemd unit")
    unit_parser.add_argument("--output", "-o", help="Write the unit to this path instead of stdout")
    unit_parser.add_argument("--check", metavar="PATH", help="Compare an installed unit with the rendered one")
    unit_parser.set_defaults(func=unit)

    watch_parser = subparsers.add_parser("watch", help="Follow a dashboard's reload events")
    watch_parser.add_argument("url", help="Dashboard base URL or its /sse endpoint")
    watch_parser.set_defaults(func=watch)

    return parser


def main(argv: list[str] = None) -> int:
    """Run the requested command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args(["serve"])
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
