from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_SQLITE_PATH = BASE_DIR / "checkin_desk.db"
DEFAULT_SQLITE_URL = f"sqlite:///{DEFAULT_SQLITE_PATH}"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BASE_DIR / ".env", env_prefix="CHECKIN_", case_sensitive=False)

    api_token: str = Field(default="dev-token", description="Bearer token required for all /api calls")
    database_url: str = Field(default=DEFAULT_SQLITE_URL, description="SQLAlchemy database URL")
    # Comma-separated values or '*' for all
    cors_origins: str = Field(default="*")
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Rate limiting (per token+IP per minute)
    rate_limit_enabled: bool = Field(default=False)
    rate_limit_per_minute: int = Field(default=600)

    # start.gg OAuth / GraphQL
    startgg_client_id: Optional[str] = Field(default=None)
    startgg_client_secret: Optional[str] = Field(default=None)
    startgg_redirect_uri: Optional[str] = Field(default=None)
    startgg_oauth_scope: str = Field(default="identity tournaments:read")
    startgg_authorize_url: str = Field(default="https://start.gg/oauth/authorize")
    startgg_token_url: str = Field(default="https://api.start.gg/oauth/token")
    startgg_graphql_url: str = Field(default="https://api.start.gg/gql/alpha")
    startgg_timeout_seconds: float = Field(default=15.0)

    # Auth cookies are marked Secure in production unless overridden
    cookie_secure: Optional[bool] = Field(default=None)

    @property
    def cors_origins_list(self) -> List[str]:
        s = (self.cors_origins or "").strip()
        if not s or s == "*":
            return ["*"]
        return [part.strip() for part in s.split(",") if part.strip()]

    @property
    def secure_cookies(self) -> bool:
        if self.cookie_secure is not None:
            return self.cookie_secure
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
