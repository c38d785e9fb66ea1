"""
Trending endpoints:
  GET /trending/                 — all kinds, "trending" profile
  GET /trending/videos           — long + reel, "videos" profile (views count)
  GET /trending/reels            — reel only, "viral" profile (6h half-life)
  GET /trending/hashtags         — tag frequency and 24h growth over the last week
  GET /trending/hashtags/{tag}   — newest content carrying the tag
  GET /trending/creators         — authors by followers and last-30-day activity
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from feedrank.config import settings
from feedrank.dependencies import get_ranking_engine
from feedrank.ranking.engine import TIMEFRAME_PATTERN, RankingEngine
from feedrank.ranking.types import ContentKind
from feedrank.schemas import (
    CreatorsResponse,
    CreatorTrendResponse,
    HashtagsResponse,
    RankedPageResponse,
    TagTrendResponse,
)

router = APIRouter()


@router.get("/", response_model=RankedPageResponse)
async def trending_all(
    timeframe: Optional[str] = Query(None, pattern=TIMEFRAME_PATTERN),
    limit: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    page = await engine.get_trending(timeframe=timeframe, limit=limit)
    return RankedPageResponse.from_page(page)


@router.get("/videos", response_model=RankedPageResponse)
async def trending_videos(
    timeframe: Optional[str] = Query(None, pattern=TIMEFRAME_PATTERN),
    limit: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    page = await engine.get_trending(
        timeframe=timeframe,
        limit=limit,
        profile="videos",
        kinds=(ContentKind.LONG, ContentKind.REEL),
    )
    return RankedPageResponse.from_page(page)


@router.get("/reels", response_model=RankedPageResponse)
async def trending_reels(
    timeframe: Optional[str] = Query(None, pattern=TIMEFRAME_PATTERN),
    limit: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    page = await engine.get_trending(
        timeframe=timeframe,
        limit=limit,
        profile="viral",
        kinds=(ContentKind.REEL,),
    )
    return RankedPageResponse.from_page(page)


@router.get("/hashtags", response_model=HashtagsResponse)
async def trending_hashtags(
    limit: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    trends = await engine.get_trending_hashtags(limit=limit)
    return HashtagsResponse(hashtags=[TagTrendResponse.from_trend(t) for t in trends])


@router.get("/hashtags/{tag}", response_model=RankedPageResponse)
async def tag_content(
    tag: str,
    limit: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    page = await engine.get_tag_content(tag, limit=limit)
    return RankedPageResponse.from_page(page)


@router.get("/creators", response_model=CreatorsResponse)
async def trending_creators(
    limit: Optional[int] = Query(None, ge=1, le=settings.max_limit),
    engine: RankingEngine = Depends(get_ranking_engine),
):
    trends = await engine.get_trending_creators(limit=limit)
    return CreatorsResponse(creators=[CreatorTrendResponse.from_trend(t) for t in trends])
