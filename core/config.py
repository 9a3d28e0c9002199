from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Habitat API"
    ENV: str = "development"

    # -------------------------------------------------
    # Logging
    # -------------------------------------------------
    LOG_LEVEL: str = Field("INFO", env="LOG_LEVEL")

    # -------------------------------------------------
    # Rate limits (per identifier, sliding window)
    # -------------------------------------------------
    RATE_LIMIT_LOGIN_MAX: int = 5
    RATE_LIMIT_LOGIN_WINDOW_SECONDS: int = 900
    RATE_LIMIT_REDEEM_MAX: int = 10
    RATE_LIMIT_REDEEM_WINDOW_SECONDS: int = 600

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    FRONTEND_DOMAIN: Optional[str] = Field(None, env="FRONTEND_DOMAIN")

    HABITAT_DOMAINS: List[str] = [
        "http://localhost:3000",
    ]

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Primary DB)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = Field(None, env="SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = Field(None, env="SUPABASE_SERVICE_ROLE_KEY")

    # -------------------------------------------------
    # Session cookie (signed JWT)
    # -------------------------------------------------
    SESSION_SECRET: str = Field("change-me-in-production", env="SESSION_SECRET")
    SESSION_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "habitat_session"
    SESSION_TTL_MINUTES: int = Field(60 * 24 * 7, env="SESSION_TTL_MINUTES")
    SESSION_COOKIE_SECURE: bool = Field(False, env="SESSION_COOKIE_SECURE")

    # -------------------------------------------------
    # Invite codes
    # -------------------------------------------------
    INVITE_CODE_LENGTH: int = 8
    INVITE_CODE_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    INVITE_CODE_MAX_ATTEMPTS: int = 10
    INVITE_CODE_DEFAULT_EXPIRATION_DAYS: int = 30

    # -------------------------------------------------
    # Building codes (unique per organization)
    # -------------------------------------------------
    BUILDING_CODE_LENGTH: int = 8
    BUILDING_CODE_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    BUILDING_CODE_MAX_ATTEMPTS: int = 10

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = []

if settings.FRONTEND_DOMAIN:
    domain = settings.FRONTEND_DOMAIN
    if not domain.startswith("http"):
        domain = f"https://{domain}"
    cors_origins.append(domain.rstrip("/"))

cors_origins.extend([d.rstrip("/") for d in settings.HABITAT_DOMAINS])

settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
