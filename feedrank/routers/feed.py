"""
Home feed endpoint — GET /feed?user_id=<id>&page=<n>&page_size=<n>

  1. Look the page up in the Redis page cache (feed:{viewer}:{page}:{size})
  2. On a miss, rank it: own + subscribed authors, newest-first per kind,
     interleaved by the 12-slot template
  3. Cache the page unless a content source was degraded

A cached page can be up to feed_cache_ttl seconds stale.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from opentelemetry import trace

from feedrank.clients.redis_client import get_cached_page, set_cached_page
from feedrank.config import settings
from feedrank.dependencies import get_ranking_engine
from feedrank.ranking.engine import RankingEngine
from feedrank.schemas import RankedPageResponse

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.get("/", response_model=RankedPageResponse)
async def get_feed(
    user_id: str = Query(..., description="ID of the requesting viewer"),
    page: int = Query(1, ge=1, le=settings.max_page),
    page_size: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    size = page_size or settings.default_page_size

    with tracer.start_as_current_span("feed_cache") as span:
        cached = await get_cached_page(user_id, page, size)
        span.set_attribute("feed.cache_hit", cached is not None)
    if cached is not None:
        return RankedPageResponse.model_validate(cached)

    ranked = await engine.get_home_feed(user_id, page=page, page_size=size)
    response = RankedPageResponse.from_page(ranked)

    if not ranked.degraded_sources:
        await set_cached_page(user_id, page, size, response.model_dump(mode="json"))
    else:
        logger.info(
            "Not caching degraded feed page for %s (%s)",
            user_id,
            ", ".join(ranked.degraded_sources),
        )
    return response
