"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.

Scoring weights live here too: every ranked surface uses the same two
formulas and differs only in the profile it is handed.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Content store (MySQL-protocol) ─────────────────────────────────────
    db_host: str = "mysql"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "content"
    # Full SQLAlchemy URL; wins over the db_* fields (e.g. sqlite+aiosqlite)
    database_url_override: Optional[str] = None

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"mysql+aiomysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Redis (caller-side page cache) ─────────────────────────────────────
    redis_host: str = "redis"
    redis_port: int = 6379
    feed_cache_enabled: bool = True
    feed_cache_ttl: int = 300            # seconds a home-feed page stays cached

    # ── Engine ─────────────────────────────────────────────────────────────
    source_timeout_seconds: float = 2.0  # per content-kind fetch
    candidate_limit: int = 100           # per kind, per retrieval strategy
    default_page_size: int = 10
    default_limit: int = 20
    max_limit: int = 100
    max_page: int = 100                  # deepest home-feed page served
    default_timeframe: str = "7d"
    hashtag_window_days: int = 7
    hashtag_limit: int = 30
    hashtag_scan_limit: int = 1000       # per kind
    tag_content_limit: int = 50
    creator_window_days: int = 30
    creator_limit: int = 20
    creator_scan_limit: int = 1000       # per kind

    # ── Engagement-decay weights ───────────────────────────────────────────
    weight_like: float = 2.0
    weight_comment: float = 3.0
    weight_view: float = 0.0
    weight_engagement: float = 0.7
    weight_recency: float = 100.0
    half_life_hours: float = 24.0

    # "videos": long + short trending
    videos_weight_view: float = 1.0
    videos_weight_like: float = 10.0
    videos_weight_comment: float = 20.0
    videos_weight_engagement: float = 1.0

    # "viral": short-video trending, shorter memory
    viral_weight_view: float = 2.0
    viral_weight_like: float = 15.0
    viral_weight_comment: float = 30.0
    viral_weight_engagement: float = 1.0
    viral_half_life_hours: float = 6.0

    # "up_next": engagement only, no recency term
    upnext_weight_like: float = 2.0
    upnext_weight_comment: float = 3.0
    upnext_weight_view: float = 0.1
    upnext_weight_engagement: float = 1.0

    # Trending creators: followers * w + posts * w + likes * w + comments * w
    creator_weight_follower: float = 1.0
    creator_weight_post: float = 50.0
    creator_weight_like: float = 10.0
    creator_weight_comment: float = 20.0

    # ── Personalized-interest multipliers ──────────────────────────────────
    interest_view_weight: float = 0.1
    subscription_boost: float = 1.5
    tag_match_boost: float = 0.2         # per common tag
    author_match_boost: float = 1.3

    # ── Observability ──────────────────────────────────────────────────────
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "feedrank"
    environment: str = "development"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
