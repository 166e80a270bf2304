"""SDK configuration.

Each concern reads its own environment prefix through pydantic-settings:

- ``CLUBIFY_CHECKOUT_``: credentials, tenant and environment
- ``CLUBIFY_CHECKOUT_HTTP_``: HTTP gateway
- ``CLUBIFY_CHECKOUT_CACHE_``: cache backend
- ``CLUBIFY_CHECKOUT_LOG_``: logging
- ``CLUBIFY_CHECKOUT_REPOSITORY_``: repository TTLs and behaviour

:class:`Config` aggregates them and is what the client and adapters consume.
"""

import typing as t
from collections.abc import Mapping
from enum import Enum
from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

SDK_VERSION = "0.3.0"

PRODUCTION_URL = "https://checkout.svelve.com"
SANDBOX_URL = "https://sandbox.svelve.com"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    SANDBOX = "sandbox"
    STAGING = "staging"
    PRODUCTION = "production"

    @property
    def default_url(self) -> str:
        if self is Environment.SANDBOX:
            return SANDBOX_URL
        return PRODUCTION_URL


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        validate_default=True,
        protected_namespaces=("settings_",),
    )


class AppSettings(Settings):
    model_config = SettingsConfigDict(env_prefix="CLUBIFY_CHECKOUT_")

    api_key: SecretStr | None = None
    api_secret: SecretStr | None = None
    tenant_id: str | None = None
    environment: Environment = Environment.SANDBOX
    base_url: str | None = None
    api_version: str = "v1"
    debug: bool = False
    version: str = SDK_VERSION

    @model_validator(mode="after")
    def resolve_base_url(self) -> "AppSettings":
        url = (self.base_url or self.environment.default_url).rstrip("/")
        suffix = f"/api/{self.api_version}"
        if not url.endswith(suffix):
            url = f"{url}{suffix}"
        self.base_url = url
        return self

    @property
    def deployed(self) -> bool:
        return self.environment is Environment.PRODUCTION


class RequestsSettings(Settings):
    model_config = SettingsConfigDict(env_prefix="CLUBIFY_CHECKOUT_HTTP_")

    timeout: float = Field(default=30.0, gt=0)
    connect_timeout: float = Field(default=10.0, gt=0)
    retries: int = Field(default=3, ge=0, le=10)
    max_connections: int = Field(default=100, ge=1)
    max_keepalive_connections: int = Field(default=20, ge=0)
    keepalive_expiry: float = 5.0
    verify_ssl: bool = True
    user_agent: str = f"ClubifyCheckout-Python-SDK/{SDK_VERSION}"


class CacheSettings(Settings):
    model_config = SettingsConfigDict(env_prefix="CLUBIFY_CHECKOUT_CACHE_")

    enabled: bool = True
    backend: t.Literal["memory", "redis"] = "memory"
    default_ttl: int = Field(default=3600, ge=1)
    prefix: str = "clubify_checkout"
    redis_url: str = "redis://localhost:6379/0"


class LoggerSettings(Settings):
    model_config = SettingsConfigDict(env_prefix="CLUBIFY_CHECKOUT_LOG_")

    enabled: bool = True
    level: str = "INFO"
    serialize: bool = False
    colorize: bool = True
    format: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level:<8}</level> | "
        "<cyan>{extra[component]}</cyan> - <level>{message}</level> {extra[context]}"
    )


class RepositorySettings(Settings):
    """Repository configuration settings."""

    model_config = SettingsConfigDict(env_prefix="CLUBIFY_CHECKOUT_REPOSITORY_")

    # Caching settings
    cache_enabled: bool = True
    entity_ttl: int = Field(default=300, ge=1, description="Single entity TTL")
    query_ttl: int = Field(default=180, ge=1, description="List/search TTL")
    stats_ttl: int = Field(default=600, ge=1)
    history_ttl: int = Field(default=900, ge=1)
    related_ttl: int = Field(default=300, ge=1)

    # Behaviour
    events_enabled: bool = True
    default_limit: int = Field(default=100, ge=1, le=1000)
    update_method: t.Literal["PUT", "PATCH"] = "PUT"


class Config(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    requests: RequestsSettings = Field(default_factory=RequestsSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logger: LoggerSettings = Field(default_factory=LoggerSettings)
    repository: RepositorySettings = Field(default_factory=RepositorySettings)

    @classmethod
    def from_mapping(cls, data: Mapping[str, t.Any] | None = None) -> "Config":
        """Build a config from nested overrides, e.g. ``{"app": {"tenant_id": "t1"}}``.

        Values not given fall back to environment variables, then defaults.

        Raises:
            ConfigurationError: If any section fails validation
        """
        data = data or {}
        sections = {
            "app": AppSettings,
            "requests": RequestsSettings,
            "cache": CacheSettings,
            "logger": LoggerSettings,
            "repository": RepositorySettings,
        }
        unknown = set(data) - set(sections)
        if unknown:
            msg = f"Unknown configuration sections: {', '.join(sorted(unknown))}"
            raise ConfigurationError(msg, context={"sections": sorted(unknown)})
        try:
            return cls(
                **{name: model(**dict(data.get(name, {}))) for name, model in sections.items()}
            )
        except PydanticValidationError as e:
            msg = f"Invalid configuration: {e.error_count()} error(s)"
            raise ConfigurationError(msg, context={"errors": e.errors()}) from e

    @property
    def base_url(self) -> str:
        return t.cast("str", self.app.base_url)

    def default_headers(self) -> dict[str, str]:
        headers = {
            "User-Agent": self.requests.user_agent,
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-SDK-Version": self.app.version,
            "X-SDK-Language": "python",
        }
        if self.app.api_key is not None:
            headers["Authorization"] = f"Bearer {self.app.api_key.get_secret_value()}"
        if self.app.tenant_id:
            headers["X-Tenant-Id"] = self.app.tenant_id
        return headers
