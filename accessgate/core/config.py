import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Unknown plan features raise instead of degrading to "no access".
    # None = derive from ENV (strict everywhere except production).
    CATALOG_STRICT: Optional[bool] = None

    # Database (subscription snapshots, org permission overrides)
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Authoritative role resolution service
    ROLE_RESOLUTION_URL: Optional[str] = None  # e.g. https://<project>.functions.example.com/resolve-role
    ROLE_RESOLUTION_API_KEY: Optional[str] = None  # sent as the apikey header
    ROLE_RESOLUTION_TIMEOUT_SECONDS: float = 5.0

    # Session JWT verification (HS256 shared secret of the auth service)
    SESSION_JWT_SECRET: Optional[str] = None
    SESSION_JWT_AUDIENCE: Optional[str] = None  # typically "authenticated"

    # HTTP
    CORS_ALLOWED_ORIGINS: str = "http://localhost:3000"  # comma-separated

    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()


def catalog_strict(settings_obj: Optional[Settings] = None) -> bool:
    """Whether unknown plan features should fail loudly."""
    cfg = settings_obj or settings
    if cfg.CATALOG_STRICT is not None:
        return cfg.CATALOG_STRICT
    return (cfg.ENV or "development").lower() != "production"


REQUIRED_KEYS = ("DATABASE_URL", "ROLE_RESOLUTION_URL", "SESSION_JWT_SECRET")


def missing_keys(settings_obj: Optional[Settings] = None) -> List[str]:
    cfg = settings_obj or settings
    return [key for key in REQUIRED_KEYS if not getattr(cfg, key, None)]


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Report unset required keys. Strict mode raises RuntimeError, otherwise one warning is logged.

    Only key names are reported, never values.
    """
    cfg = settings_obj or settings
    if strict is None:
        strict = bool(getattr(cfg, "CONFIG_STRICT", False))

    missing = missing_keys(cfg)
    if not missing:
        return True
    message = "Missing required configuration: " + ", ".join(missing)
    if strict:
        raise RuntimeError(message)
    (logger or logging.getLogger("accessgate.config")).warning(message)
    return True


def cors_origins(settings_obj: Optional[Settings] = None) -> List[str]:
    cfg = settings_obj or settings
    return [origin.strip() for origin in cfg.CORS_ALLOWED_ORIGINS.split(",") if origin.strip()]
