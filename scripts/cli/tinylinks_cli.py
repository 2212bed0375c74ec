#!/usr/bin/env python3
"""
Command-line interface for tinylinks.

Works directly against the JSON record store and claims it while running.
A store held by the web service is refused; use the service's HTTP API then.

Usage:
    python tinylinks_cli.py shorten <url> [<url> ...] [--validity MINUTES] [--custom-code CODE]
    python tinylinks_cli.py visit <short_code> [--no-open]
    python tinylinks_cli.py stats <short_code>
    python tinylinks_cli.py list [--sort created|clicks|expires] [--status all|active|expired]
    python tinylinks_cli.py health
"""

import argparse
import asyncio
import json
import os
import sys
import webbrowser
from typing import List, Optional

# Add repository root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from config import load_config
from tinylinks.common.logging_config import setup_logging
from tinylinks.common.timeutil import to_iso
from tinylinks.common.validators import is_valid_validity_minutes
from tinylinks.countdown import RedirectCountdown
from tinylinks.errors import ShortLinkError
from tinylinks.geolocation import MockGeolocation
from tinylinks.models import ShortenRequest, URLRecord
from tinylinks.registry import WEB_RESERVED_CODES, URLRegistry
from tinylinks.resolver import URLResolver
from tinylinks.statistics import SortKey, StatusFilter, build_report
from tinylinks.store import JsonFileRecordStore, StoreLockedError

DEFAULT_STORE_PATH = "data/shortened_urls.json"


def _record_to_json(record: URLRecord, now) -> dict:
    return {
        "short_code": record.short_code,
        "original_url": record.original_url,
        "created_at": to_iso(record.created_at),
        "expires_at": to_iso(record.expires_at),
        "validity_minutes": record.validity_minutes,
        "click_count": record.click_count,
        "expired": record.is_expired(now),
    }


def _print_error(message: str, **extra) -> int:
    print(json.dumps({"success": False, "error": message, **extra}, indent=2), file=sys.stderr)
    return 1


class TinyLinksCLI:
    """Command-line interface for tinylinks."""

    def __init__(
        self,
        store_path: str,
        verbose: bool = False,
        max_urls: int = 5,
        default_validity_minutes: int = 30,
    ):
        """Initialize CLI."""
        self.store_path = store_path
        self.max_urls = max_urls
        self.default_validity_minutes = default_validity_minutes
        self.verbose = verbose
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.store = None
        self.registry = None
        self.resolver = None

    async def initialize(self):
        """Claim the store and load the registry from it."""
        self.store = JsonFileRecordStore(self.store_path, logger=self.logger)
        await self.store.acquire()
        self.registry = URLRegistry(
            logger=self.logger,
            default_validity_minutes=self.default_validity_minutes,
            reserved_codes=WEB_RESERVED_CODES,
        )
        count = await self.registry.rehydrate(self.store)
        self.registry.subscribe(self.store.save)
        self.resolver = URLResolver(self.registry, geolocation=MockGeolocation(), logger=self.logger)
        self.logger.debug(f"Loaded {count} records from {self.store_path}")

    async def cleanup(self):
        """Cleanup resources."""
        if self.store:
            await self.store.close()

    async def shorten(self, urls: List[str], validity: Optional[int] = None, custom_code: Optional[str] = None):
        """Shorten one or more URLs."""
        if custom_code and len(urls) > 1:
            return _print_error("--custom-code can only be used with a single URL")
        if len(urls) > self.max_urls:
            return _print_error(f"At most {self.max_urls} URLs can be shortened at once", code="too_many_urls")
        if validity is not None:
            is_valid, reason = is_valid_validity_minutes(validity)
            if not is_valid:
                return _print_error(reason, code="invalid_validity")

        requests = [
            ShortenRequest(original_url=url, validity_minutes=validity, custom_short_code=custom_code)
            for url in urls
        ]
        try:
            records = await self.registry.create(requests)
        except ShortLinkError as e:
            return _print_error(e.message, code=e.code, index=e.index)

        now = self.registry.clock()
        print(json.dumps({
            "success": True,
            "links": [_record_to_json(record, now) for record in records],
            "message": f"Successfully created {len(records)} short URL(s)",
        }, indent=2))
        return 0

    async def visit(self, short_code: str, open_browser: bool = True, countdown_seconds: int = 3):
        """Resolve a short code as a visit, then open its destination after a countdown."""
        result = await self.resolver.resolve(short_code, referrer=None)

        if not result.is_redirect:
            return _print_error(
                f"Short code '{short_code}' {'has expired' if result.expires_at else 'not found'}",
                status=result.status.value,
            )

        print(json.dumps({
            "success": True,
            "short_code": short_code,
            "url": result.url,
            "click_count": result.record.click_count,
        }, indent=2))

        if not open_browser:
            return 0

        countdown = RedirectCountdown(seconds=countdown_seconds)
        try:
            completed = await countdown.run(
                lambda remaining: print(f"Opening in {remaining}s... (Ctrl-C to cancel)", file=sys.stderr)
            )
        except (KeyboardInterrupt, asyncio.CancelledError):
            countdown.cancel()
            completed = False

        if completed:
            webbrowser.open(result.url)
        else:
            print("Redirect cancelled", file=sys.stderr)
        return 0

    async def stats(self, short_code: str):
        """Show one short URL with its click history."""
        record = self.registry.find_by_code(short_code)
        if record is None:
            return _print_error(f"Short code '{short_code}' not found")

        result = _record_to_json(record, self.registry.clock())
        result["clicks"] = [
            {"timestamp": to_iso(click.timestamp), "source": click.source, "location": click.location}
            for click in record.clicks
        ]
        print(json.dumps({"success": True, **result}, indent=2, ensure_ascii=False))
        return 0

    async def list_urls(self, sort: str = "created", status: str = "all"):
        """List every short URL with summary totals."""
        try:
            report = build_report(
                self.registry.records,
                self.registry.clock(),
                sort=SortKey(sort),
                status=StatusFilter(status),
            )
        except ValueError as e:
            return _print_error(str(e))

        now = self.registry.clock()
        print(json.dumps({
            "success": True,
            "summary": report["summary"],
            "count": len(report["records"]),
            "urls": [_record_to_json(record, now) for record in report["records"]],
        }, indent=2))
        return 0

    async def health(self):
        """Check the record store."""
        healthy = await self.store.health_check()
        print(json.dumps({
            "success": healthy,
            "store": "healthy" if healthy else "unhealthy",
            "records": len(self.registry),
        }, indent=2))
        return 0 if healthy else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="tinylinks CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shorten two URLs valid for an hour
  %(prog)s shorten https://example.com/a https://example.com/b --validity 60

  # Shorten with custom code
  %(prog)s shorten https://example.com/long/url --custom-code mylink

  # Visit a short link (records a click)
  %(prog)s visit mylink

  # List links with the most clicks first
  %(prog)s list --sort clicks
        """
    )

    parser.add_argument(
        "--store-path",
        default=os.getenv("STORE_PATH", DEFAULT_STORE_PATH),
        help=f"JSON record store (default: from STORE_PATH env or {DEFAULT_STORE_PATH})"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten one or more URLs")
    shorten_parser.add_argument("urls", nargs="+", help="URLs to shorten")
    shorten_parser.add_argument("--validity", type=int, help="Validity in minutes (default 30)")
    shorten_parser.add_argument("--custom-code", help="Custom short code (single URL only)")

    visit_parser = subparsers.add_parser("visit", help="Visit a short URL")
    visit_parser.add_argument("short_code", help="Short code to visit")
    visit_parser.add_argument("--no-open", action="store_true", help="Do not open a browser")
    visit_parser.add_argument("--countdown", type=int, default=3, help="Seconds before opening")

    stats_parser = subparsers.add_parser("stats", help="Get URL statistics")
    stats_parser.add_argument("short_code", help="Short code to get stats for")

    list_parser = subparsers.add_parser("list", help="List short URLs")
    list_parser.add_argument("--sort", default="created", choices=[key.value for key in SortKey])
    list_parser.add_argument("--status", default="all", choices=[value.value for value in StatusFilter])

    subparsers.add_parser("health", help="Check store health")

    return parser


async def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = load_config()
    cli = TinyLinksCLI(
        store_path=args.store_path,
        verbose=args.verbose,
        max_urls=config.max_urls_per_submission,
        default_validity_minutes=config.default_validity_minutes,
    )

    try:
        try:
            await cli.initialize()
        except StoreLockedError as e:
            return _print_error(f"{e}; stop the service or use its HTTP API", code="store_locked")

        if args.command == "shorten":
            return await cli.shorten(args.urls, args.validity, args.custom_code)
        elif args.command == "visit":
            return await cli.visit(args.short_code, not args.no_open, args.countdown)
        elif args.command == "stats":
            return await cli.stats(args.short_code)
        elif args.command == "list":
            return await cli.list_urls(args.sort, args.status)
        elif args.command == "health":
            return await cli.health()
        else:
            parser.print_help()
            return 1

    finally:
        await cli.cleanup()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
