"""SDK entry point.

Example:
    ```python
    from clubify_checkout import ClubifyCheckout, Config

    async with ClubifyCheckout(Config.from_mapping({"app": {"tenant_id": "t1"}})) as sdk:
        user = await sdk.users.find_by_email("ana@example.com")
    ```
"""

import typing as t

from .adapters.cache import CacheProtocol, create_cache
from .adapters.requests import HttpGatewayProtocol, Requests
from .cleanup import CleanupMixin
from .config import Config
from .depends import depends
from .events import EventDispatcher
from .logger import Logger, LoggerProtocol
from .metrics import MetricsCollector
from .modules import (
    CartRepository,
    DomainRepository,
    NotificationRepository,
    OrderRepository,
    ResourceRepository,
    SubscriptionRepository,
    TenantRepository,
    UserRepository,
    WebhookRepository,
)
from .repository.registry import RepositoryFactory, RepositoryType


class ClubifyCheckout(CleanupMixin):
    """Wires configuration, gateway, cache, events and metrics into repositories.

    Collaborators not passed in are built from ``config``; every one of them
    is published through :data:`clubify_checkout.depends.depends`.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        gateway: HttpGatewayProtocol | None = None,
        cache: CacheProtocol | None = None,
        events: EventDispatcher | None = None,
        logger: LoggerProtocol | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        super().__init__()
        self.config = config or Config()
        if logger is None:
            sdk_logger = Logger("client", self.config.logger)
            sdk_logger.init()
            logger = sdk_logger
        self.logger = logger
        self.gateway = gateway or Requests(self.config)
        if cache is None and self.config.cache.enabled:
            cache = create_cache(self.config.cache)
        self.cache = cache
        self.events = events or EventDispatcher()
        self.metrics = metrics or MetricsCollector()
        self.factory = RepositoryFactory(
            self.gateway,
            cache=self.cache,
            events=self.events,
            metrics=self.metrics,
            settings=self.config.repository,
        )

        depends.set(Config, self.config)
        depends.set(EventDispatcher, self.events)
        depends.set(MetricsCollector, self.metrics)
        depends.set(RepositoryFactory, self.factory)

        self.logger.info(
            "SDK initialized",
            environment=self.config.app.environment.value,
            base_url=self.config.base_url,
            cache=self.config.cache.backend if self.cache is not None else None,
        )

    def repository(self, type_: RepositoryType | str) -> ResourceRepository:
        return self.factory.create(type_)

    @property
    def users(self) -> UserRepository:
        return t.cast(UserRepository, self.factory.create(RepositoryType.USER))

    @property
    def tenants(self) -> TenantRepository:
        return t.cast(TenantRepository, self.factory.create(RepositoryType.TENANT))

    @property
    def domains(self) -> DomainRepository:
        return t.cast(DomainRepository, self.factory.create(RepositoryType.DOMAIN))

    @property
    def notifications(self) -> NotificationRepository:
        return t.cast(
            NotificationRepository, self.factory.create(RepositoryType.NOTIFICATION)
        )

    @property
    def subscriptions(self) -> SubscriptionRepository:
        return t.cast(
            SubscriptionRepository, self.factory.create(RepositoryType.SUBSCRIPTION)
        )

    @property
    def webhooks(self) -> WebhookRepository:
        return t.cast(WebhookRepository, self.factory.create(RepositoryType.WEBHOOK))

    @property
    def orders(self) -> OrderRepository:
        return t.cast(OrderRepository, self.factory.create(RepositoryType.ORDER))

    @property
    def carts(self) -> CartRepository:
        return t.cast(CartRepository, self.factory.create(RepositoryType.CART))

    async def _cleanup_resources(self) -> None:
        for component in (self.gateway, self.cache):
            close = getattr(component, "cleanup", None)
            if close is not None:
                await close()
        self.factory.clear_cache()
        self.logger.debug("SDK closed")
