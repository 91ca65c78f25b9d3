"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.br_availability.api.router import router as availability_router
from src.br_booking.api.router import router as booking_router
from src.br_common.database import engine
from src.br_common.errors import AppError
from src.br_common.redis_client import close_redis, get_redis
from src.br_common.response import error_response
from src.br_gateway.middleware.rate_limit import RateLimitMiddleware
from src.br_gateway.middleware.request_log import RequestLogMiddleware
from src.br_refund.api.router import router as refund_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    logger.info("%s started", settings.APP_NAME)
    yield
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Last added runs first: the request id exists before the rate limiter answers
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("%s %s failed: [%d] %s", request.method, request.url.path, exc.code, exc.message)
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(availability_router, prefix="/api/v1")
app.include_router(booking_router, prefix="/api/v1")
app.include_router(refund_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
