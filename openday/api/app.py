"""
FastAPI application for the Open Day planner
Provides REST endpoints for schedules, routes, recommendations and health checks
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from ..config import get_config
from ..core.engine import get_engine
from ..exceptions import OpenDayException, RateLimitError, log_exception
from ..metrics import get_metrics
from .routes import health, recommendations, routes, schedule

logger = logging.getLogger(__name__)


def create_limiter() -> Limiter:
    """Per-IP limiter using the configured default limit"""
    config = get_config()
    return Limiter(
        key_func=get_remote_address,
        default_limits=[config.features.rate_limit],
        enabled=config.features.enable_rate_limiting,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage app lifecycle"""
    logger.info("🚀 Starting Open Day API")
    try:
        get_engine()
    except OpenDayException as e:
        # Keep serving so the health endpoints can report the problem
        log_exception(e, "engine_startup")
    yield
    logger.info("🛑 Shutting down Open Day API")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    config = get_config()

    app = FastAPI(
        title="Open Day Planner API",
        description="Schedule conflicts, walking routes and event recommendations for the open day",
        version="1.0.0",
        lifespan=lifespan
    )

    # Add rate limiter
    app.state.limiter = create_limiter()
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(OpenDayException, _open_day_exception_handler)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if config.features.enable_metrics:
        @app.middleware("http")
        async def record_metrics(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            get_metrics().record_request(request.url.path, time.perf_counter() - started, response.status_code)
            return response

    # Include routers
    app.include_router(schedule.router, prefix="/api/schedule", tags=["schedule"])
    app.include_router(routes.router, prefix="/api/routes", tags=["routes"])
    app.include_router(recommendations.router, prefix="/api/recommendations", tags=["recommendations"])
    app.include_router(health.router, prefix="/api/health", tags=["health"])

    logger.info(f"✅ FastAPI application configured with rate limiting ({config.features.rate_limit})")

    return app


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}")
    error = RateLimitError(f"Rate limit exceeded: {exc.detail}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def _open_day_exception_handler(request: Request, exc: OpenDayException):
    """Map engine errors to JSON bodies with their status code"""
    log_exception(exc, request.url.path)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Create the app instance
app = create_app()
