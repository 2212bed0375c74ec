#!/usr/bin/env python3
"""
Seed test data into the tinylinks record store.

Usage:
    python seed_data.py --store-path data/shortened_urls.json --count 10
"""

import argparse
import asyncio
import os
import random
import sys

# Add repository root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from tinylinks.common.logging_config import setup_logging
from tinylinks.geolocation import MockGeolocation
from tinylinks.models import ShortenRequest
from tinylinks.registry import WEB_RESERVED_CODES, URLRegistry
from tinylinks.resolver import URLResolver
from tinylinks.statistics import summarize
from tinylinks.store import JsonFileRecordStore, StoreLockedError


# Sample URLs for testing
SAMPLE_URLS = [
    "https://github.com/python/cpython",
    "https://docs.python.org/3/library/asyncio.html",
    "https://fastapi.tiangolo.com/",
    "https://redis.io/documentation",
    "https://stackoverflow.com/questions/tagged/python",
    "https://news.ycombinator.com/",
    "https://www.reddit.com/r/programming/",
    "https://medium.com/@username/long-article-title",
]

SAMPLE_REFERRERS = [None, "https://www.google.com/", "https://twitter.com/", "https://news.ycombinator.com/"]

# Same batch size the web form allows
BATCH_SIZE = 5


async def main():
    parser = argparse.ArgumentParser(description="Seed test data")
    parser.add_argument(
        "--store-path",
        default=os.getenv("STORE_PATH", "data/shortened_urls.json"),
        help="JSON record store"
    )
    parser.add_argument("--count", type=int, default=10, help="Number of URLs to create")
    parser.add_argument("--max-clicks", type=int, default=5, help="Maximum clicks recorded per URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    args = parser.parse_args()

    logger = setup_logging(level="DEBUG" if args.verbose else "INFO")

    store = JsonFileRecordStore(args.store_path, logger=logger)
    try:
        await store.acquire()
    except StoreLockedError as e:
        logger.error(f"Cannot seed: {e}")
        return 1

    try:
        return await seed(args, store, logger)
    finally:
        await store.close()


async def seed(args, store, logger):
    registry = URLRegistry(logger=logger, reserved_codes=WEB_RESERVED_CODES)
    await registry.rehydrate(store)
    registry.subscribe(store.save)
    resolver = URLResolver(registry, geolocation=MockGeolocation(), logger=logger)

    logger.info(f"Creating {args.count} test URLs in {args.store_path}...")

    created = []
    for start in range(0, args.count, BATCH_SIZE):
        batch = [
            ShortenRequest(
                original_url=f"{random.choice(SAMPLE_URLS)}?test={i}&seed=true",
                validity_minutes=random.choice([1, 5, 30, 60, 24 * 60]),
            )
            for i in range(start, min(start + BATCH_SIZE, args.count))
        ]
        try:
            records = await registry.create(batch)
        except Exception as e:
            logger.error(f"Error seeding data: {e}")
            return 1
        for record in records:
            logger.info(f"Created: {record.short_code} -> {record.original_url}")
        created.extend(records)

    for record in created:
        for _ in range(random.randint(0, args.max_clicks)):
            await resolver.resolve(record.short_code, referrer=random.choice(SAMPLE_REFERRERS))

    logger.info(f"Successfully created {len(created)} URLs")

    stats = summarize(registry.records, registry.clock())
    logger.info(f"Total URLs in store: {stats['total_urls']}, total clicks: {stats['total_clicks']}")

    logger.info("Done")
    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
