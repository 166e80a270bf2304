"""Tests for the repository factory."""

import typing as t

import pytest

from clubify_checkout.exceptions import RepositoryRegistryError
from clubify_checkout.modules import CartRepository, OrderRepository, UserRepository
from clubify_checkout.repository.registry import (
    RepositoryFactory,
    RepositoryType,
    resolve_type,
)


@pytest.fixture
def factory(deps: dict[str, t.Any]) -> RepositoryFactory:
    return RepositoryFactory(**deps)


@pytest.mark.unit
class TestRepositoryFactory:
    def test_resolve_type_accepts_strings(self) -> None:
        assert resolve_type("ORDER ") is RepositoryType.ORDER
        assert resolve_type(RepositoryType.CART) is RepositoryType.CART

    def test_create_returns_cached_instance(self, factory: RepositoryFactory) -> None:
        first = factory.create("user")
        second = factory.create(RepositoryType.USER)

        assert isinstance(first, UserRepository)
        assert first is second
        assert factory.get_stats() == {
            "supported_types": 8,
            "created_instances": 1,
            "instances": ["user"],
        }

    def test_repositories_share_collaborators(
        self, factory: RepositoryFactory, deps: dict[str, t.Any]
    ) -> None:
        cart = factory.create("cart")
        order = factory.create("order")

        assert isinstance(cart, CartRepository)
        assert isinstance(order, OrderRepository)
        assert cart.core.gateway is order.core.gateway is deps["gateway"]
        assert cart.core.cache is deps["cache"]
        assert cart.settings is deps["settings"]

    def test_unknown_type(self, factory: RepositoryFactory) -> None:
        with pytest.raises(RepositoryRegistryError, match="Unknown repository type"):
            factory.create("invoice")

        assert not factory.is_type_supported("invoice")
        assert factory.is_type_supported("webhook")

    def test_register_replaces_constructor(
        self, factory: RepositoryFactory, deps: dict[str, t.Any]
    ) -> None:
        original = factory.create("user")
        replacement = UserRepository.build(**deps)

        factory.register("user", lambda: replacement)

        assert factory.create("user") is replacement
        assert factory.create("user") is not original

    def test_register_rejects_non_callable(self, factory: RepositoryFactory) -> None:
        with pytest.raises(RepositoryRegistryError, match="not callable"):
            factory.register("user", t.cast(t.Any, "not-a-constructor"))

    def test_clear_cache(self, factory: RepositoryFactory) -> None:
        first = factory.create("tenant")

        factory.clear_cache()

        assert factory.get_stats()["created_instances"] == 0
        assert factory.create("tenant") is not first

    def test_supported_types(self, factory: RepositoryFactory) -> None:
        assert factory.supported_types() == [
            "user",
            "tenant",
            "domain",
            "notification",
            "subscription",
            "webhook",
            "order",
            "cart",
        ]
