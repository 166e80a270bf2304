"""Resource cleanup for gateway and cache adapters."""

import asyncio
import inspect

import typing as t
from loguru import logger as _loguru

logger = _loguru.bind(sdk="clubify_checkout", component="cleanup", context="")


class CleanupMixin:
    """Simple mixin for resource cleanup."""

    def __init__(self) -> None:
        self._resources: list[t.Any] = []
        self._cleaned_up = False
        self._cleanup_lock: asyncio.Lock | None = None

    def register_resource(self, resource: t.Any) -> None:
        """Register a resource for cleanup."""
        if resource not in self._resources:
            self._resources.append(resource)

    async def cleanup_resource(self, resource: t.Any) -> None:
        """Clean up a single resource using common patterns."""
        if resource is None:
            return

        for method_name in ("aclose", "close", "disconnect"):
            method = getattr(resource, method_name, None)
            if method is None:
                continue
            result = method()
            if inspect.isawaitable(result):
                await result
            logger.debug(f"Cleaned up resource using {method_name}()")
            return

    async def _cleanup_resources(self) -> None:
        """Hook for subclasses holding resources that are not registered."""

    async def cleanup(self) -> None:
        """Clean up all registered resources."""
        if self._cleanup_lock is None:
            self._cleanup_lock = asyncio.Lock()

        async with self._cleanup_lock:
            if self._cleaned_up:
                return

            errors = []
            for resource in self._resources.copy():
                try:
                    await self.cleanup_resource(resource)
                except (OSError, RuntimeError) as e:
                    errors.append(f"Failed to cleanup resource: {e}")
            await self._cleanup_resources()

            self._resources.clear()
            self._cleaned_up = True

            if errors:
                logger.warning(f"Resource cleanup errors: {'; '.join(errors)}")

    async def __aenter__(self) -> t.Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.cleanup()
