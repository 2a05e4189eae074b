"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads happen here. No module should call os.getenv()
directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file. Field names map to env var names
      (e.g. jwt_issuer -> JWT_ISSUER).

  @model_validator(mode="after"): Cross-field validation once all fields are
      resolved. Signing configuration is required: a missing key, issuer or
      audience stops startup instead of running with partial auth.

  SigningConfig: frozen value object derived from Settings once at startup
      and handed to TokenSigner explicitly. Token code never reads Settings.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or employees/.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'empdir_auth.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    secret_key, jwt_issuer and jwt_audience use "" as the "not configured"
    sentinel. The validator raises on it, so callers never see an empty
    signing key.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Token signing
    # ------------------------------------------------------------------

    secret_key: str = ""
    jwt_issuer: str = ""
    jwt_audience: str = ""
    # Access tokens are short-lived; refresh tokens carry the session.
    token_expire_seconds: int = 900

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------

    # bcrypt cost factor (2^rounds iterations). 4 is bcrypt's floor.
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_signing(self) -> "Settings":
        """Refuse to start without a usable signing configuration.

        There is no development fallback. A missing SECRET_KEY, issuer or
        audience stops startup; the key must be at least 32 characters and the
        numeric knobs must be in range.
        """
        if not self.secret_key:
            raise ValueError("SECRET_KEY is required. Set SECRET_KEY in your environment or .env file.")
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if not self.jwt_issuer.strip():
            raise ValueError("JWT_ISSUER is required.")
        if not self.jwt_audience.strip():
            raise ValueError("JWT_AUDIENCE is required.")
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@dataclass(frozen=True)
class SigningConfig:
    """Immutable access-token signing parameters.

    Built once from Settings at startup and passed to TokenSigner. Frozen so a
    running process cannot swap keys or audiences out from under issued tokens.
    """

    secret_key: str
    issuer: str
    audience: str
    access_token_expire_seconds: int
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, settings: Settings) -> "SigningConfig":
        return cls(
            secret_key=settings.secret_key,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            access_token_expire_seconds=settings.token_expire_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once, at first call.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
