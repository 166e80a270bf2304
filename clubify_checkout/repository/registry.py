"""Repository factory.

Maps each :class:`RepositoryType` to a zero-argument constructor that wires
a domain repository to the factory's shared collaborators. Instances are
cached per factory, so ``create("user")`` returns the same repository for
the factory's lifetime.
"""

from enum import Enum

import typing as t
from collections.abc import Callable

from clubify_checkout.adapters.cache import CacheProtocol
from clubify_checkout.adapters.requests import HttpGatewayProtocol
from clubify_checkout.config import RepositorySettings
from clubify_checkout.events import EventSinkProtocol
from clubify_checkout.exceptions import RepositoryRegistryError
from clubify_checkout.logger import Logger, LoggerProtocol
from clubify_checkout.metrics import MetricsSinkProtocol
from clubify_checkout.modules import (
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

Constructor = Callable[[], ResourceRepository]


class RepositoryType(str, Enum):
    USER = "user"
    TENANT = "tenant"
    DOMAIN = "domain"
    NOTIFICATION = "notification"
    SUBSCRIPTION = "subscription"
    WEBHOOK = "webhook"
    ORDER = "order"
    CART = "cart"


REPOSITORY_CLASSES: dict[RepositoryType, type[ResourceRepository]] = {
    RepositoryType.USER: UserRepository,
    RepositoryType.TENANT: TenantRepository,
    RepositoryType.DOMAIN: DomainRepository,
    RepositoryType.NOTIFICATION: NotificationRepository,
    RepositoryType.SUBSCRIPTION: SubscriptionRepository,
    RepositoryType.WEBHOOK: WebhookRepository,
    RepositoryType.ORDER: OrderRepository,
    RepositoryType.CART: CartRepository,
}


def resolve_type(type_: RepositoryType | str) -> RepositoryType:
    if isinstance(type_, RepositoryType):
        return type_
    try:
        return RepositoryType(str(type_).strip().lower())
    except ValueError:
        supported = ", ".join(m.value for m in RepositoryType)
        msg = f"Unknown repository type '{type_}' (supported: {supported})"
        raise RepositoryRegistryError(msg, context={"type": str(type_)}) from None


class RepositoryFactory:
    def __init__(
        self,
        gateway: HttpGatewayProtocol,
        cache: CacheProtocol | None = None,
        events: EventSinkProtocol | None = None,
        logger: LoggerProtocol | None = None,
        metrics: MetricsSinkProtocol | None = None,
        settings: RepositorySettings | None = None,
    ) -> None:
        self.gateway = gateway
        self.cache = cache
        self.events = events
        self.repository_logger = logger
        self.logger = logger or Logger("repository.factory")
        self.metrics = metrics
        self.settings = settings or RepositorySettings()
        self._constructors: dict[RepositoryType, Constructor] = {
            type_: self._constructor_for(cls)
            for type_, cls in REPOSITORY_CLASSES.items()
        }
        self._instances: dict[RepositoryType, ResourceRepository] = {}
        self._validate()

    def _constructor_for(self, cls: type[ResourceRepository]) -> Constructor:
        def construct() -> ResourceRepository:
            return cls.build(
                gateway=self.gateway,
                cache=self.cache,
                events=self.events,
                logger=self.repository_logger,
                metrics=self.metrics,
                settings=self.settings,
            )

        return construct

    def _validate(self) -> None:
        missing = [m.value for m in RepositoryType if m not in self._constructors]
        if missing:
            msg = f"No constructor registered for: {', '.join(missing)}"
            raise RepositoryRegistryError(msg, context={"missing": missing})

    def create(self, type_: RepositoryType | str) -> ResourceRepository:
        """Return the cached repository for ``type_``, building it on first use.

        Raises:
            RepositoryRegistryError: ``type_`` is not a known repository type
        """
        resolved = resolve_type(type_)
        instance = self._instances.get(resolved)
        if instance is None:
            instance = self._constructors[resolved]()
            self._instances[resolved] = instance
            self.logger.debug("Repository created", type=resolved.value)
        return instance

    def register(
        self, type_: RepositoryType | str, constructor: Constructor
    ) -> None:
        """Replace the constructor for ``type_`` and drop its cached instance."""
        resolved = resolve_type(type_)
        if not callable(constructor):
            msg = f"Constructor for '{resolved.value}' is not callable"
            raise RepositoryRegistryError(msg, context={"type": resolved.value})
        self._constructors[resolved] = constructor
        self._instances.pop(resolved, None)

    def supported_types(self) -> list[str]:
        return [m.value for m in RepositoryType]

    def is_type_supported(self, type_: RepositoryType | str) -> bool:
        try:
            resolve_type(type_)
        except RepositoryRegistryError:
            return False
        return True

    def clear_cache(self) -> None:
        self._instances.clear()

    def get_stats(self) -> dict[str, t.Any]:
        return {
            "supported_types": len(RepositoryType),
            "created_instances": len(self._instances),
            "instances": sorted(m.value for m in self._instances),
        }
