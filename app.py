#!/usr/bin/env python3
"""
Main entry point for the tinylinks service.

The registry is rehydrated from the record store before the first request is
served, and every later change is mirrored back to the store.

Usage:
    python app.py

Environment variables:
    STORE_BACKEND - 'file' (default) or 'redis'
    STORE_PATH - JSON file for the file store
    REDIS_URL - Redis connection URL for the redis store
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    TELEMETRY_URL - Remote log endpoint (optional)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from tinylinks.common.logging_config import setup_logging
from tinylinks.geolocation import MockGeolocation
from tinylinks.registry import WEB_RESERVED_CODES, URLRegistry
from tinylinks.resolver import URLResolver
from tinylinks.shortcode import ShortCodeAllocator
from tinylinks.store import JsonFileRecordStore, RedisRecordStore, get_record_store
from tinylinks.telemetry import NullTelemetry, RemoteTelemetry
from web_app import create_app


def build_telemetry(config, logger):
    """Remote telemetry when an endpoint is configured, otherwise local only."""
    if config.telemetry_url:
        logger.info(f"Sending telemetry to {config.telemetry_url}")
        return RemoteTelemetry(
            endpoint=config.telemetry_url,
            token=config.telemetry_token,
            stack=config.telemetry_stack,
            timeout_seconds=config.telemetry_timeout_seconds,
            logger=logger,
        )
    logger.info("Remote telemetry disabled")
    return NullTelemetry(stack=config.telemetry_stack, logger=logger)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting tinylinks service...")

    store = get_record_store(
        config.store_backend,
        path=config.store_path,
        redis_url=config.redis_url,
        key=config.storage_key,
        logger=logger,
    )
    if isinstance(store, RedisRecordStore):
        logger.info(f"Connecting to Redis at {config.redis_url}")
        await store.connect()
    elif isinstance(store, JsonFileRecordStore):
        await store.acquire()

    telemetry = build_telemetry(config, logger)

    registry = URLRegistry(
        allocator=ShortCodeAllocator(
            lengths=config.short_code_lengths,
            max_attempts=config.max_generation_attempts,
        ),
        telemetry=telemetry,
        logger=logger,
        default_validity_minutes=config.default_validity_minutes,
        reserved_codes=WEB_RESERVED_CODES,
    )
    count = await registry.rehydrate(store)
    registry.subscribe(store.save)
    logger.info(f"Loaded {count} short links from the {config.store_backend} store")

    resolver = URLResolver(
        registry,
        geolocation=MockGeolocation(),
        telemetry=telemetry,
        logger=logger,
        geolocation_timeout_seconds=config.geolocation_timeout_seconds,
    )

    # Update app state
    app.state.registry = registry
    app.state.resolver = resolver
    app.state.store = store
    app.state.telemetry = telemetry

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down tinylinks service...")
    await telemetry.aclose()
    await store.close()
    logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("tinylinks")
    logger.info(f"Configuration: {config.model_dump(exclude={'telemetry_token'})}")

    # Instances are set in lifespan
    app = create_app(
        registry=None,
        resolver=None,
        store=None,
        telemetry=None,
        config=config,
    )
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=True,
    )

    server = uvicorn.Server(uvicorn_config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
