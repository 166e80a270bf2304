import typing as t
from bevy import get_container


@t.runtime_checkable
class DependsProtocol(t.Protocol):
    @staticmethod
    def set(
        class_: t.Any,
        instance: t.Any = None,
        module: str | None = None,
    ) -> t.Any: ...
    @staticmethod
    def get_sync(category: t.Any, module: str | None = None) -> t.Any: ...
    async def get(self, category: t.Any, module: str | None = None) -> t.Any: ...


class Depends:
    """Shared-instance registry for SDK components.

    Wraps bevy's global container so the client can publish the collaborators
    it built (config, cache, gateway, event dispatcher) and application code
    can look them up by type.
    """

    @staticmethod
    def set(class_: t.Any, instance: t.Any = None, module: str | None = None) -> t.Any:
        """Register a class/instance in the dependency container.

        Returns the instance that was registered.
        """
        if instance is None:
            instance = class_()
        if module:
            get_container().add(class_, instance, qualifier=module)
        else:
            get_container().add(class_, instance)
        return instance

    async def get(self, category: t.Any, module: str | None = None) -> t.Any:
        """Get dependency asynchronously."""
        return Depends.get_sync(category, module)

    @staticmethod
    def get_sync(category: t.Any, module: str | None = None) -> t.Any:
        """Get dependency instance synchronously.

        Args:
            category: The class to retrieve
            module: Optional qualifier used when the instance was registered

        Returns:
            The dependency instance
        """
        if module:
            return get_container().get(category, qualifier=module)
        return get_container().get(category)


depends = Depends()
