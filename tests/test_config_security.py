from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_placeholder_jwt_secret_allowed_in_development() -> None:
    settings = Settings(_env_file=None, app_env="development", identity_jwt_secret="change-me")
    assert settings.identity_jwt_secret == "change-me"


def test_placeholder_jwt_secret_rejected_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(
            _env_file=None,
            app_env="production",
            identity_jwt_secret="change-me-in-production",
            registration_rate_limit_allow_in_memory_in_production=True,
        )


def test_in_memory_rate_limiter_requires_explicit_ack_in_production() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, app_env="production", identity_jwt_secret="super-secure-value")


def test_custom_jwt_secret_allowed_in_production_with_explicit_ack() -> None:
    settings = Settings(
        _env_file=None,
        app_env="prod",
        identity_jwt_secret="super-secure-value",
        registration_rate_limit_allow_in_memory_in_production=True,
    )
    assert settings.identity_jwt_secret == "super-secure-value"


def test_redis_backend_requires_redis_url() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, registration_rate_limit_backend="REDIS", redis_url=None)


def test_trusted_proxy_ips_parsed_from_comma_separated_value() -> None:
    settings = Settings(
        _env_file=None,
        registration_rate_limit_trusted_proxy_ips=" 10.0.0.1, ,10.0.0.2 ",
    )
    assert settings.registration_rate_limit_trusted_proxy_ips == ("10.0.0.1", "10.0.0.2")


def test_default_currency_is_uppercased() -> None:
    settings = Settings(_env_file=None, default_currency="eur")
    assert settings.default_currency == "EUR"
