"""FastAPI dependency providers. Tests swap these via app.dependency_overrides."""
from fastapi import Depends

from feedrank.clients.content_store import ContentStore, SqlContentStore
from feedrank.database import AsyncSessionLocal
from feedrank.ranking.engine import RankingEngine


def get_content_store() -> ContentStore:
    return SqlContentStore(AsyncSessionLocal)


def get_ranking_engine(store: ContentStore = Depends(get_content_store)) -> RankingEngine:
    return RankingEngine(store)
