import os
from typing import List


def _split_env_list(value: str) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item and item.strip()]


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) in {"1", "true", "True"}


class Settings:
    """Centralized application settings loaded from environment variables.

    This keeps security-sensitive values (like JWT secrets) and cross-cutting
    config (like CORS and rate limits) in one place.
    """

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_AUTO_CREATE: bool = _env_flag("DB_AUTO_CREATE")

    # JWT / Auth
    SECRET_KEY: str = os.getenv("SECRET_KEY", "")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))
    JWT_ISSUER: str | None = os.getenv("JWT_ISSUER") or None
    JWT_AUDIENCE: str | None = os.getenv("JWT_AUDIENCE") or None

    # Session cookie
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "coachlink_session")
    SESSION_COOKIE_SECURE: bool = _env_flag("SESSION_COOKIE_SECURE")

    # CORS
    # Comma-separated list, e.g. "http://localhost:3000,http://localhost:5173"
    _cors_origins_env: str = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173,http://localhost:5000",
    )
    CORS_ORIGINS: List[str] = _split_env_list(_cors_origins_env)

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Rate limiting
    RATE_LIMIT: str = os.getenv("RATE_LIMIT", "100/minute")
    RATE_LIMIT_ENABLED: bool = _env_flag("RATE_LIMIT_ENABLED", "1")

    # Health sampler
    HEALTH_WINDOW_SECONDS: int = int(os.getenv("HEALTH_WINDOW_SECONDS", "60"))
    HEALTH_PRUNE_INTERVAL_SECONDS: int = int(os.getenv("HEALTH_PRUNE_INTERVAL_SECONDS", "60"))


settings = Settings()
