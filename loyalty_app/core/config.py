# loyalty_app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - SUPABASE_SERVICE_ROLE_KEY (only used by the delete-account function
        and the screen endpoints that read on behalf of a verified user)
    """

    PROJECT_NAME: str = "Loyalty Rewards API"
    API_V1_STR: str = "/api/v1"
    FUNCTIONS_PREFIX: str = "/functions/v1"

    # Supabase gateway
    SUPABASE_URL: str
    SUPABASE_KEY: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    # Where auth emails (signup confirmation, password reset) send users back to
    APP_BASE_URL: str = "http://localhost:3000"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    # Client core timings
    SESSION_INIT_TIMEOUT_SECONDS: float = 10.0
    PROFILE_RETRY_DELAY_SECONDS: float = 0.5

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
