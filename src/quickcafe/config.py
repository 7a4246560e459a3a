import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
from redis import asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis (fast tier)
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Database (durable tier and cafe store)
    database_url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./quickcafe.db")

    # Google Maps
    google_places_api_key: str | None = os.getenv("GOOGLE_PLACES_API_KEY")
    google_maps_base_url: str = os.getenv(
        "GOOGLE_MAPS_BASE_URL", "https://maps.googleapis.com/maps/api"
    )

    # Review scoring
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    scoring_model: str = os.getenv("SCORING_MODEL", "gpt-3.5-turbo")

    # Search
    search_radius_meters: int = int(os.getenv("SEARCH_RADIUS_METERS", "5000"))
    max_preferred_distance_meters: float = float(
        os.getenv("MAX_PREFERRED_DISTANCE_METERS", "2000")
    )

    # Cache TTLs (seconds)
    fast_cache_ttl: int = int(os.getenv("FAST_CACHE_TTL", "3600"))  # 1 hour
    search_cache_ttl: int = int(os.getenv("SEARCH_CACHE_TTL", "86400"))  # 24 hours
    analysis_ttl: int = int(os.getenv("ANALYSIS_TTL", "604800"))  # 7 days

    # Analysis
    analysis_batch_size: int = int(os.getenv("ANALYSIS_BATCH_SIZE", "3"))
    min_review_chars: int = int(os.getenv("MIN_REVIEW_CHARS", "50"))
    max_reviews_per_cafe: int = int(os.getenv("MAX_REVIEWS_PER_CAFE", "3"))
    review_char_budget: int = int(os.getenv("REVIEW_CHAR_BUDGET", "150"))

    # Retry
    retry_max_attempts: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
    retry_base_delay: float = float(os.getenv("RETRY_BASE_DELAY", "1.0"))
    retry_backoff: str = os.getenv("RETRY_BACKOFF", "linear")

    # Recommendation
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "30"))
    top_n: int = int(os.getenv("TOP_N", "5"))
    pool_size: int = int(os.getenv("POOL_SIZE", "15"))
    require_analysis: bool = os.getenv("REQUIRE_ANALYSIS", "false").lower() == "true"

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.search_radius_meters <= 0:
            raise ValueError("SEARCH_RADIUS_METERS must be positive")

        if self.max_preferred_distance_meters <= 0:
            raise ValueError("MAX_PREFERRED_DISTANCE_METERS must be positive")

        for name in ("fast_cache_ttl", "search_cache_ttl", "analysis_ttl"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be positive")

        if self.analysis_batch_size < 1:
            raise ValueError("ANALYSIS_BATCH_SIZE must be at least 1")

        if self.retry_max_attempts < 1:
            raise ValueError("RETRY_MAX_ATTEMPTS must be at least 1")

        if self.retry_backoff not in ("linear", "exponential"):
            raise ValueError(
                f"RETRY_BACKOFF must be 'linear' or 'exponential', got {self.retry_backoff!r}"
            )

        if self.top_n < 1 or self.pool_size < 0:
            raise ValueError("TOP_N must be at least 1 and POOL_SIZE non-negative")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> aioredis.Redis:
    """Create an asyncio Redis client instance."""
    return aioredis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=True,
    )


def get_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async SQLAlchemy engine for the durable tier."""
    return create_async_engine(database_url or settings.database_url)
