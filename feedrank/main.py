"""
Feed ranking API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Create content-store tables if not present
  3. Connect to Redis (home-feed page cache; optional)
  4. Expose Prometheus /metrics endpoint
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from feedrank.clients.redis_client import close_redis, init_redis
from feedrank.config import settings
from feedrank.database import init_db
from feedrank.ranking.errors import RankingError
from feedrank.routers import feed, recommendations, trending
from feedrank.telemetry import instrument_app, setup_tracing

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting feed ranking API (env=%s)", settings.environment)

    await init_db()
    await init_redis()

    logger.info("Content store ready. API ready.")
    yield

    logger.info("Shutting down...")
    await close_redis()


app = FastAPI(
    title="Feed Ranking API",
    description=(
        "Home feed, personalized, trending, up-next and subscription "
        "rankings over long videos, reels, images and community posts."
    ),
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(RankingError)
async def ranking_error_handler(request: Request, exc: RankingError):
    if exc.status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status,
        content={"detail": str(exc), "code": exc.code},
    )


# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(feed.router, prefix="/feed", tags=["Feed"])
app.include_router(recommendations.router, prefix="/recommendations", tags=["Recommendations"])
app.include_router(trending.router, prefix="/trending", tags=["Trending"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
