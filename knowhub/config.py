from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Knowhub"
    debug: bool = False

    # Data sources
    vocabulary_path: Optional[str] = None  # Defaults to the packaged vocabulary.yaml
    data_snapshot_path: Optional[str] = None  # YAML/JSON records snapshot for the API
    source_timeout_seconds: float = 10.0

    # Relevance scoring (tunable heuristics)
    confidence_weight: float = 0.7
    recency_weight: float = 0.3
    recency_horizon_days: int = 365

    # Expert inference
    expert_min_evidence: int = 2
    expert_limit: int = 5

    # Trends
    trend_window_days: int = 30
    trend_ratio: float = 1.5
    trend_min_frequency: int = 3
    trend_limit: int = 10

    # Context assembly
    relevant_knowledge_limit: int = 10
    related_users_limit: int = 5
    common_skills_limit: int = 10
    stale_after_days: int = 180
    min_contributors: int = 3
    narrow_source_min_items: int = 5

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
