"""
Recommendation endpoints:
  GET /recommendations/personalized?user_id=  — interest-ranked, cold start → trending
  GET /recommendations/trending               — engagement-decay over a timeframe
  GET /recommendations/upnext/{content_id}    — similar to one seed item
  GET /recommendations/subscriptions?user_id= — newest from subscribed authors
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from feedrank.config import settings
from feedrank.dependencies import get_ranking_engine
from feedrank.ranking.engine import TIMEFRAME_PATTERN, RankingEngine
from feedrank.schemas import RankedPageResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/personalized", response_model=RankedPageResponse)
async def personalized(
    user_id: str = Query(..., description="ID of the requesting viewer"),
    limit: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    timeframe: Optional[str] = Query(None, pattern=TIMEFRAME_PATTERN),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    page = await engine.get_personalized(user_id, limit=limit, timeframe=timeframe)
    return RankedPageResponse.from_page(page)


@router.get("/trending", response_model=RankedPageResponse)
async def trending(
    timeframe: Optional[str] = Query(None, pattern=TIMEFRAME_PATTERN),
    limit: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    page = await engine.get_trending(timeframe=timeframe, limit=limit)
    return RankedPageResponse.from_page(page)


@router.get("/upnext/{content_id}", response_model=RankedPageResponse)
async def up_next(
    content_id: str,
    limit: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    page = await engine.get_up_next(content_id, limit=limit)
    return RankedPageResponse.from_page(page)


@router.get("/subscriptions", response_model=RankedPageResponse)
async def subscriptions(
    user_id: str = Query(..., description="ID of the requesting viewer"),
    limit: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    page = await engine.get_subscriptions(user_id, limit=limit)
    return RankedPageResponse.from_page(page)
