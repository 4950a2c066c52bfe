"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.au_account.api.router import router as account_router
from src.au_admin.api.router import router as admin_router
from src.au_common.database import check_database, engine
from src.au_common.errors import AppError
from src.au_common.query_cache import listen_for_invalidations, query_cache
from src.au_common.redis_client import close_redis, ping_redis
from src.au_common.response import error_response
from src.au_gateway.api.router import router as auth_router
from src.au_gateway.middleware.request_log import RequestLogMiddleware
from src.au_market.api.router import router as market_router
from src.au_reporting.api.router import router as reporting_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("au.app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the cache invalidation listener.
    Shutdown: stop the listener, dispose pools."""
    await check_database()
    await ping_redis()
    listener = asyncio.create_task(listen_for_invalidations(query_cache))
    logger.info("%s started", settings.APP_NAME)
    yield
    listener.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await listener
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    if exc.http_status >= 500:
        logger.error("%s → %d %s", request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(account_router, prefix="/api/v1")
app.include_router(market_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(reporting_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
