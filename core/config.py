"""
core/config.py -- PlanIt configuration, read from the environment (and .env).

Only this module reads environment variables; everything else asks
get_settings(). The lifespan in api/main.py reads the cached Settings once
and passes plain values (secret, cost, URL) into PasswordHasher, TokenCodec
and the two stores, so those classes can be built directly in tests.

Signing key policy:
  [M6] Tokens are HMAC-SHA256 signed with SECRET_KEY, so keys under 32
       characters are refused in every mode.
  [M7] Without DEBUG, a missing SECRET_KEY stops the process at startup.
       Generating one would end every session on each restart.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or tasks/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("planit.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'planit.db'}"
_MIN_SECRET_LENGTH = 32
_MIN_PRODUCTION_ROUNDS = 10
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Every tunable of the server. Field names are the lower-cased env var names.

    Each field has a default, so Settings() works with an empty environment
    as long as DEBUG=true or SECRET_KEY is set.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # 30 days. Tokens are stateless, so this is the only thing that ends a session.
    token_expire_seconds: int = Field(default=30 * 24 * 60 * 60, gt=0)
    # bcrypt cost factor: 2**rounds key-expansion iterations per hash. Values
    # under 10 are refused unless DEBUG is on.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    host: str = "0.0.0.0"  # nosec B104 -- bind address, overridable via HOST
    port: int = 4000
    cors_origins: list[str] = ["*"]
    allowed_hosts: list[str] = ["*"]
    # Directory holding the browser client (index.html, app.js). Empty = API only.
    client_dir: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}.")
        return level

    @model_validator(mode="after")
    def check_signing_key(self) -> "Settings":
        """Resolve SECRET_KEY before anything signs a token with it.

        Unset + DEBUG      -> a random 64-hex-char key for this process only [M7]
        Unset, no DEBUG    -> startup fails; a per-process key would end every
                              session on each restart
        Set, too short     -> startup fails in either mode [M6]
        """
        if not self.secret_key and self.debug:
            self.secret_key = secrets.token_hex(32)
            logger.warning("DEBUG is on and SECRET_KEY is unset: generated a throwaway signing key.")
        elif not self.secret_key:
            raise ValueError("SECRET_KEY is required unless DEBUG=true. Set it in the environment or in .env.")
        if len(self.secret_key) < _MIN_SECRET_LENGTH:
            raise ValueError(f"SECRET_KEY must be at least {_MIN_SECRET_LENGTH} characters.")
        return self

    @model_validator(mode="after")
    def check_bcrypt_cost(self) -> "Settings":
        """Cheap bcrypt costs (4..9) are for test suites only and need DEBUG=true."""
        if not self.debug and self.bcrypt_rounds < _MIN_PRODUCTION_ROUNDS:
            raise ValueError(
                f"BCRYPT_ROUNDS={self.bcrypt_rounds} is below {_MIN_PRODUCTION_ROUNDS}; lower costs require DEBUG=true."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Build Settings on first call and return the same instance afterwards.

    Tests that change the environment call get_settings.cache_clear() first.
    """
    return Settings()
