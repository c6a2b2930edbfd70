"""Environment configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file early to ensure environment variables are set
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    anthropic_api_key: str
    tools_data_path: Path
    counts_db_path: Path = Path("data/counts.db")
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000"

    # Relevance search
    ai_model: str = "anthropic:claude-haiku-4-5"
    ai_search_threshold: int = 15
    ai_min_query_length: int = 3
    ai_min_confidence: int = 80
    ai_max_results: int = 5
    ai_timeout_seconds: float = 12.0
    debounce_ms: int = 300

    # Presentation
    page_size: int = 9
    initial_load: int = 18
    load_more_count: int = 9

    # Counters and analytics
    counts_cache_seconds: float = 30.0
    analytics_domain: str | None = None
    analytics_endpoint: str = "https://plausible.io/api/event"

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse allowed origins as a list."""
        return [o.strip() for o in self.allowed_origins.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
