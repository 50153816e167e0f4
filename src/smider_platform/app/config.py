"""Application configuration via Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Resolve .env from the project root regardless of CWD
_ENV_FILE = Path(__file__).resolve().parents[3] / ".env"


class Settings(BaseSettings):
    """Central configuration loaded from environment variables / .env file."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./smider.db"

    # AI extraction
    gemini_api_key: str = ""
    extraction_model: str = "gemini-3-flash-preview"

    # Payments
    stripe_secret_key: str = ""
    currency: str = "nok"

    # Dispatch
    high_value_threshold: int = 100_000
    offer_window_minutes: int = 15
    offer_sweep_interval_seconds: int = 60

    # Fallback job location when the customer address is not geocoded (Oslo)
    default_lat: float = 59.9139
    default_lng: float = 10.7522

    # Demo mode: category fallback in matching, auto-accept for demo
    # contractors and demo contractor seeding. Never enable in production.
    demo_mode: bool = False

    # CORS / Frontend
    cors_origins: str = "http://localhost:3000"

    # General
    debug: bool = True

    model_config = {"env_file": str(_ENV_FILE), "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list.

        In debug mode, returns ["*"] to allow any origin.
        """
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
