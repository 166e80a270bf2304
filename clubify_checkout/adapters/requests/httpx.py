import httpx
import typing as t

from clubify_checkout.cleanup import CleanupMixin
from clubify_checkout.config import Config
from clubify_checkout.exceptions import TransportError

from ._base import RequestsBase, clean_params


class Requests(RequestsBase, CleanupMixin):
    """HTTPX gateway to the Clubify Checkout API.

    Example:
        ```python
        async with Requests(config) as gateway:
            response = await gateway.get("users/user_1")
        ```

    Connection failures are retried by the transport (``requests.retries``);
    anything httpx still raises surfaces as :class:`TransportError`.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        RequestsBase.__init__(self, config)
        CleanupMixin.__init__(self)
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def _create_client(self) -> httpx.AsyncClient:
        """Create HTTPX client with connection pooling settings."""
        settings = self.config.requests
        transport = self._transport or httpx.AsyncHTTPTransport(
            retries=settings.retries,
            verify=settings.verify_ssl,
            limits=httpx.Limits(
                max_connections=settings.max_connections,
                max_keepalive_connections=settings.max_keepalive_connections,
                keepalive_expiry=settings.keepalive_expiry,
            ),
        )
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            headers=self.config.default_headers(),
            timeout=httpx.Timeout(settings.timeout, connect=settings.connect_timeout),
            transport=transport,
        )

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTPX client."""
        if self._http_client is None:
            self._http_client = await self._create_client()
            self.register_resource(self._http_client)
        return self._http_client

    async def request(
        self,
        method: str,
        uri: str,
        *,
        json: t.Any = None,
        params: t.Mapping[str, t.Any] | None = None,
        headers: t.Mapping[str, str] | None = None,
    ) -> httpx.Response:
        client = await self._ensure_client()
        method = method.upper()
        try:
            return await client.request(
                method,
                uri.lstrip("/"),
                json=json,
                params=clean_params(params),
                headers=headers,
            )
        except httpx.TimeoutException as e:
            msg = f"Request timed out: {method} {uri}"
            raise TransportError(msg, method=method, uri=uri) from e
        except httpx.TransportError as e:
            msg = f"Request failed: {method} {uri}: {e}"
            raise TransportError(msg, method=method, uri=uri) from e

    async def _cleanup_resources(self) -> None:
        self._http_client = None
