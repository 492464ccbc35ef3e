"""Unit tests for core/config.py -- Settings defaults and SECRET_KEY policy.

Covers:
- DEBUG=true without SECRET_KEY auto-generates a 64-char key
- Production mode without SECRET_KEY refuses to start
- Keys shorter than 32 characters are rejected in every mode
- Token lifetime and bcrypt cost defaults and bounds
- bcrypt costs under 10 need DEBUG=true
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings

GOOD_KEY = "k" * 32


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("DEBUG", "SECRET_KEY", "TOKEN_EXPIRE_SECONDS", "BCRYPT_ROUNDS", "PORT", "DATABASE_URL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestSecretKey:
    def test_debug_generates_key(self) -> None:
        settings = _settings(debug=True)
        assert len(settings.secret_key) == 64

    def test_debug_keys_differ_per_instance(self) -> None:
        assert _settings(debug=True).secret_key != _settings(debug=True).secret_key

    def test_production_requires_key(self) -> None:
        with pytest.raises(ValidationError, match="SECRET_KEY is required"):
            _settings()

    @pytest.mark.parametrize("debug", [True, False])
    def test_short_key_rejected(self, debug: bool) -> None:
        with pytest.raises(ValidationError, match="at least 32 characters"):
            _settings(debug=debug, secret_key="too-short")

    def test_explicit_key_is_kept(self) -> None:
        assert _settings(secret_key=GOOD_KEY).secret_key == GOOD_KEY

    def test_key_read_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("SECRET_KEY", GOOD_KEY)
        assert _settings().secret_key == GOOD_KEY


class TestDefaults:
    def test_session_lifetime_is_thirty_days(self) -> None:
        assert _settings(secret_key=GOOD_KEY).token_expire_seconds == 2_592_000

    def test_defaults(self) -> None:
        settings = _settings(secret_key=GOOD_KEY)
        assert settings.bcrypt_rounds == 12
        assert settings.port == 4000
        assert settings.database_url.startswith("sqlite:///")
        assert settings.database_url.endswith("planit.db")

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("BCRYPT_ROUNDS", "10")
        monkeypatch.setenv("PORT", "8080")
        settings = _settings(secret_key=GOOD_KEY)
        assert settings.bcrypt_rounds == 10
        assert settings.port == 8080

    @pytest.mark.parametrize("rounds", [3, 32])
    def test_bcrypt_rounds_bounds(self, rounds: int) -> None:
        with pytest.raises(ValidationError):
            _settings(secret_key=GOOD_KEY, bcrypt_rounds=rounds)

    def test_token_lifetime_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            _settings(secret_key=GOOD_KEY, token_expire_seconds=0)


class TestLogLevel:
    def test_level_is_upper_cased(self) -> None:
        assert _settings(secret_key=GOOD_KEY, log_level=" debug ").log_level == "DEBUG"

    def test_unknown_level_rejected(self) -> None:
        with pytest.raises(ValidationError, match="LOG_LEVEL"):
            _settings(secret_key=GOOD_KEY, log_level="chatty")


class TestBcryptCostFloor:
    @pytest.mark.parametrize("rounds", [4, 9])
    def test_low_cost_refused_without_debug(self, rounds: int) -> None:
        with pytest.raises(ValidationError, match="BCRYPT_ROUNDS"):
            _settings(secret_key=GOOD_KEY, bcrypt_rounds=rounds)

    def test_low_cost_from_environment_refused_without_debug(self, monkeypatch) -> None:
        monkeypatch.setenv("BCRYPT_ROUNDS", "4")
        with pytest.raises(ValidationError, match="BCRYPT_ROUNDS"):
            _settings(secret_key=GOOD_KEY)

    def test_low_cost_allowed_in_debug(self) -> None:
        assert _settings(debug=True, bcrypt_rounds=4).bcrypt_rounds == 4

    def test_floor_is_accepted(self) -> None:
        assert _settings(secret_key=GOOD_KEY, bcrypt_rounds=10).bcrypt_rounds == 10
