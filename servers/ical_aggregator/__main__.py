"""
Command-line entry point for the iCal Feed Aggregator.

Commands:
- one URL [--town T] [--location L]: render a single feed
- many: render every configured source merged together
- sources: list configured sources
- serve: run the HTTP API

Run with: python -m servers.ical_aggregator many --format html
"""

import argparse
import asyncio
import json
import sys

from .config.settings import load_config
from .errors import FeedError
from .server import CalendarFeedServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ical-aggregator",
        description="Merge community calendar feeds into CSV, HTML or JSON",
    )
    parser.add_argument("--config", help="Path to a JSON config file")
    commands = parser.add_subparsers(dest="command", required=True)

    one = commands.add_parser("one", help="Render a single feed")
    one.add_argument("url", help="Feed URL (http, https or webcal)")
    one.add_argument("--format", choices=["csv", "html", "json"])
    one.add_argument("--town", help="Town appended to every location")
    one.add_argument("--location", help="Location used for every event")

    many = commands.add_parser("many", help="Render all configured sources")
    many.add_argument("--format", choices=["csv", "html", "json"])

    commands.add_parser("sources", help="List configured sources")

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=7134)

    return parser


async def run(args: argparse.Namespace) -> str:
    """Execute a non-server command and return its output."""
    server = CalendarFeedServer(config=load_config(args.config))

    if args.command == "one":
        rendered = await server.get_one(
            args.url,
            format=args.format,
            town=args.town,
            location=args.location,
        )
        return rendered.body

    if args.command == "many":
        rendered = await server.get_many(format=args.format)
        return rendered.body

    return json.dumps(await server.list_sources(), indent=2)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("servers.ical_aggregator.api:app", host=args.host, port=args.port)
        return 0

    try:
        output = asyncio.run(run(args))
    except FeedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
