#!/usr/bin/env python3
"""
Main entry point for the ShortLink service.

Concurrency: The server handles multiple connections simultaneously via async I/O
(FastAPI + asyncpg connection pool + redis.asyncio). Cookie sessions live in
process memory, so keep WORKERS=1 when the web UI is used.

Usage:
    python app.py

Environment variables:
    JWT_SECRET_KEY - Bearer token signing key (required)
    SESSION_SECRET_KEY - Session cookie signing key (random per process if unset)
    DATABASE_URL - PostgreSQL connection URL (in-memory storage if unset)
    DATABASE_CREATE_TABLES - Set to '1' to enable table creation
    REDIS_URL - Redis connection URL (optional)
    SAFE_BROWSING_API_KEY / SAFE_BROWSING_DB_PATH - Safe Browsing (optional)
    SAFE_BROWSING_REQUIRED - Refuse to start without Safe Browsing
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    TLS_CERTFILE / TLS_KEYFILE - Serve TLS directly
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from shortlink.auth.passwords import get_hasher
from shortlink.auth.sessions import SessionStore
from shortlink.auth.tokens import CredentialAuthority
from shortlink.database.cache import RedisCache
from shortlink.database.memory import MemoryStore
from shortlink.database.postgres import PostgresStore
from shortlink.keygen import KeyGenerator
from shortlink.resolver import LinkResolver
from shortlink.safety import SafeBrowsingClient
from shortlink.service import LinkService
from shortlink.common.logging_config import setup_logging
from web_app import attach_components, create_app


# Global instances for graceful shutdown
service_instance = None
sessions_instance = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    global service_instance, sessions_instance

    config = app.state.config
    logger = app.state.logger

    logger.info("Starting ShortLink service...")

    # Initialize storage
    if config.database_url:
        logger.info("Connecting to PostgreSQL")
        store = PostgresStore(db_config=config.database_url, logger=logger)
    else:
        logger.warning("DATABASE_URL not set, using in-memory storage (data is lost on restart)")
        store = MemoryStore(logger=logger)

    # Initialize cache (optional)
    if config.redis_url:
        logger.info(f"Connecting to Redis at {config.redis_url}")
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )
        await cache.connect()
    else:
        logger.info("Redis caching disabled")
        cache = None

    # Safety oracle; raises when required but unavailable
    oracle = SafeBrowsingClient(
        api_key=config.safe_browsing_api_key,
        db_path=config.safe_browsing_db_path,
        required=config.safe_browsing_required,
        timeout_seconds=config.safe_browsing_timeout_seconds,
        logger=logger,
    )
    await oracle.connect()

    hasher = get_hasher(config.password_hasher)

    service_instance = LinkService(
        store=store,
        hasher=hasher,
        cache=cache,
        oracle=oracle,
        key_generator=KeyGenerator(),
        logger=logger,
        max_collision_retries=config.max_collision_retries,
    )
    resolver = LinkResolver(store=store, hasher=hasher, oracle=oracle, cache=cache, logger=logger)

    authority = CredentialAuthority(
        secret_key=config.jwt_secret_key,
        ttl_seconds=config.token_ttl_seconds,
        grace_seconds=config.token_grace_seconds,
        logger=logger,
    )

    if config.session_secret_generated:
        logger.warning("SESSION_SECRET_KEY not set, using a random secret (sessions end on restart)")
    sessions_instance = SessionStore(
        secret_key=config.session_secret_key,
        ttl_seconds=config.session_ttl_seconds,
        logger=logger,
    )
    sessions_instance.start_cleanup()

    attach_components(app, service_instance, resolver, authority, sessions_instance)

    logger.info("Service started successfully")

    # Yield control to the application
    yield

    # Shutdown
    logger.info("Shutting down ShortLink service...")

    if sessions_instance:
        await sessions_instance.stop_cleanup()
    if service_instance:
        await service_instance.close()

    logger.info("Service stopped")


def main():
    """Main entry point."""
    # Load configuration
    config = load_config()

    # Setup logging
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("ShortLink Service")
    logger.info(f"Configuration: {config.redacted_dump()}")

    # Components are created in lifespan
    app = create_app(
        service=None,
        resolver=None,
        authority=None,
        sessions=None,
        config=config,
    )
    app.state.logger = logger
    app.router.lifespan_context = lifespan

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        workers=config.workers,
        log_level=config.log_level.lower(),
        access_log=True,
        ssl_certfile=config.tls_certfile,
        ssl_keyfile=config.tls_keyfile,
        proxy_headers=True,
    )

    server = uvicorn.Server(uvicorn_config)

    # Setup signal handlers for graceful shutdown
    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    # Run server
    try:
        scheme = "https" if config.tls_certfile else "http"
        logger.info(f"Starting server on {scheme}://{config.host}:{config.port}")
        server.run()
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
