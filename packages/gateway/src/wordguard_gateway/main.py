"""
WordGuard Gateway - Main Entry Point

FastAPI application exposing the content filter middleware and the admin API
for sensitive words and violation logs.
"""

import argparse
import asyncio
import logging
import os
from contextlib import asynccontextmanager, suppress
from typing import Optional

import redis
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .admin_api import AdminAPI
from .cache import WordCache
from .config import Settings, get_settings
from .content_filter import ContentFilter
from .errors import NotFoundError, StoreUnavailableError, ValidationError
from .middleware import ContentFilterMiddleware
from .redis_client import get_redis_client
from .stats import StatsAggregator
from .violation_store import ViolationStore
from .word_store import WordStore

logger = logging.getLogger(__name__)


async def run_cleanup_scheduler(violation_store: ViolationStore, interval_hours: float) -> None:
    """Periodically delete violation logs past the retention window."""
    interval = interval_hours * 3600
    await asyncio.sleep(min(interval, 60))
    while True:
        try:
            removed = await run_in_threadpool(violation_store.cleanup_expired_violations)
            if removed:
                logger.info(f"Scheduled cleanup removed {removed} violation logs")
        except (StoreUnavailableError, redis.RedisError) as e:
            logger.warning(f"Scheduled violation log cleanup failed: {e}")
        await asyncio.sleep(interval)


def _error_response(status_code: int, error: str, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": str(exc)})


def create_app(
    settings: Optional[Settings] = None, redis_client: Optional[redis.Redis] = None
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    client = redis_client if redis_client is not None else get_redis_client()

    word_store = WordStore(client, cache=WordCache(ttl_seconds=settings.word_cache_ttl_seconds))
    violation_store = ViolationStore(
        client,
        retention_days=settings.violation_retention_days,
        stats_limit=settings.violation_stats_limit,
    )
    content_filter = ContentFilter(word_store)
    stats = StatsAggregator(word_store, violation_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        if settings.cleanup_interval_hours > 0:
            task = asyncio.create_task(
                run_cleanup_scheduler(violation_store, settings.cleanup_interval_hours),
                name="violation_cleanup_scheduler",
            )
            logger.info(
                f"Started violation cleanup scheduler: interval={settings.cleanup_interval_hours}h "
                f"retention={settings.violation_retention_days}d"
            )
        yield
        if task is not None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    app = FastAPI(
        title="WordGuard Gateway",
        description="Sensitive word filtering and violation audit logs for AI relay traffic",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.word_store = word_store
    app.state.violation_store = violation_store
    app.state.content_filter = content_filter

    # Add content filter middleware
    app.add_middleware(
        ContentFilterMiddleware,
        content_filter=content_filter,
        violation_store=violation_store,
        enabled=settings.filter_enabled,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error_response(400, "Invalid request", exc)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(404, "Not found", exc)

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error(f"Store unavailable: {exc}")
        return _error_response(503, "Store unavailable", exc)

    admin_api = AdminAPI(word_store, violation_store, content_filter, stats)
    app.include_router(admin_api.router, prefix="/v1")

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "wordguard-gateway"}

    return app


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(description="WordGuard Gateway")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--redis-url", help="Redis URL for words and violation logs")
    parser.add_argument("--log-level", default="info", help="Log level")

    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.redis_url:
        os.environ["WORDGUARD_REDIS_URL"] = args.redis_url

    app = create_app()

    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
