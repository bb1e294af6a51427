#!/usr/bin/env python3
"""
Main entry point for the link service.

Runs two listeners in one process over one shared store pool: the management
API (MANAGEMENT_PORT) and the redirect listener (REDIRECT_PORT), plus the
expiry sweeper as a background task.

Usage:
    python app.py

Environment variables:
    DATABASE_URL - sqlite:///path/to/links.db or postgresql://... URL
    DB_CREATE_TABLES - Create tables on startup (default true)
    DB_POOL_SIZE - Maximum simultaneous store connections
    FORWARD_URL - Public base URL used to build shortened URLs
    CORS_ALLOWED_ORIGINS - Comma-separated origins for the management API
    MANAGEMENT_PORT / REDIRECT_PORT - Listener ports
    SWEEP_INTERVAL_SECONDS - Seconds between expiry sweeps
    LOG_LEVEL - Logging level
"""

import asyncio
import logging
import sys

import uvicorn

from config import Config, load_config
from shortlinks.database import create_store
from shortlinks.service import LinkService
from shortlinks.slugs import SlugGenerator
from shortlinks.sweeper import ExpirySweeper
from shortlinks.common.logging_config import setup_logging
from web_app import create_management_app, create_redirect_app


async def serve(config: Config, logger: logging.Logger) -> None:
    """Start the store, sweeper and both listeners, and run until shutdown."""
    logger.info(f"Opening store at {config.database_url}")
    store = create_store(
        config.database_url,
        pool_max_size=config.db_pool_size,
        connection_timeout_seconds=config.db_timeout_seconds,
        logger=logger,
    )
    await store.initialize(create_tables=config.db_create_tables)

    generator = SlugGenerator(
        length=config.slug_length,
        max_attempts=config.max_slug_attempts,
        logger=logger,
    )
    service = LinkService(store=store, slug_generator=generator, logger=logger)
    sweeper = ExpirySweeper(store, interval_seconds=config.sweep_interval_seconds, logger=logger)

    servers = [
        uvicorn.Server(uvicorn.Config(
            create_management_app(service, config),
            host=config.host,
            port=config.management_port,
            log_level=config.log_level.lower(),
            access_log=True,
        )),
        uvicorn.Server(uvicorn.Config(
            create_redirect_app(service, config),
            host=config.host,
            port=config.redirect_port,
            log_level=config.log_level.lower(),
            access_log=True,
        )),
    ]

    sweeper.start()
    try:
        logger.info(
            f"Serving management API on {config.host}:{config.management_port}, "
            f"redirects on {config.host}:{config.redirect_port}"
        )
        tasks = [asyncio.create_task(server.serve()) for server in servers]
        # When one listener stops (signal or failure), stop the other too
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for server in servers:
            server.should_exit = True
        await asyncio.gather(*pending)
        for task in done:
            task.result()
    finally:
        logger.info("Shutting down link service...")
        await sweeper.stop()
        await service.close()
        logger.info("Service stopped")


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Link Shortener Service")
    logger.info(f"Configuration: {config.model_dump()}")

    try:
        asyncio.run(serve(config, logger))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
