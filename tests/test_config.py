"""Tests for SDK configuration."""

import pytest

from clubify_checkout.config import (
    PRODUCTION_URL,
    SANDBOX_URL,
    AppSettings,
    Config,
    Environment,
    RepositorySettings,
)
from clubify_checkout.exceptions import ConfigurationError


class TestAppSettings:
    @pytest.mark.unit
    def test_defaults_to_sandbox(self) -> None:
        settings = AppSettings()

        assert settings.environment is Environment.SANDBOX
        assert settings.base_url == f"{SANDBOX_URL}/api/v1"
        assert not settings.deployed

    @pytest.mark.unit
    def test_environment_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLUBIFY_CHECKOUT_ENVIRONMENT", "production")
        monkeypatch.setenv("CLUBIFY_CHECKOUT_API_KEY", "secret")

        settings = AppSettings()

        assert settings.deployed
        assert settings.base_url == f"{PRODUCTION_URL}/api/v1"
        assert settings.api_key is not None
        assert settings.api_key.get_secret_value() == "secret"
        assert "secret" not in repr(settings)

    @pytest.mark.unit
    def test_explicit_base_url_is_not_suffixed_twice(self) -> None:
        settings = AppSettings(base_url="https://api.test/api/v2/", api_version="v2")

        assert settings.base_url == "https://api.test/api/v2"


class TestRepositorySettings:
    @pytest.mark.unit
    def test_defaults(self) -> None:
        settings = RepositorySettings()

        assert settings.entity_ttl == 300
        assert settings.query_ttl == 180
        assert settings.update_method == "PUT"

    @pytest.mark.unit
    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLUBIFY_CHECKOUT_REPOSITORY_ENTITY_TTL", "30")
        monkeypatch.setenv("CLUBIFY_CHECKOUT_REPOSITORY_UPDATE_METHOD", "PATCH")

        settings = RepositorySettings()

        assert settings.entity_ttl == 30
        assert settings.update_method == "PATCH"


class TestConfig:
    @pytest.mark.unit
    def test_from_mapping(self) -> None:
        config = Config.from_mapping(
            {"app": {"tenant_id": "t1", "api_key": "k"}, "cache": {"enabled": False}}
        )

        assert config.app.tenant_id == "t1"
        assert not config.cache.enabled
        assert config.base_url == f"{SANDBOX_URL}/api/v1"

    @pytest.mark.unit
    def test_unknown_section(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown configuration sections"):
            Config.from_mapping({"payments": {}})

    @pytest.mark.unit
    def test_invalid_value(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            Config.from_mapping({"repository": {"entity_ttl": 0}})

        assert exc_info.value.context["errors"]

    @pytest.mark.unit
    def test_default_headers(self) -> None:
        config = Config.from_mapping({"app": {"tenant_id": "t1", "api_key": "k"}})

        headers = config.default_headers()

        assert headers["Authorization"] == "Bearer k"
        assert headers["X-Tenant-Id"] == "t1"
        assert headers["Accept"] == "application/json"

    @pytest.mark.unit
    def test_anonymous_headers(self) -> None:
        headers = Config.from_mapping({"app": {}}).default_headers()

        assert "Authorization" not in headers
        assert "X-Tenant-Id" not in headers
