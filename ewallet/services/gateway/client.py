"""
Remote Gateway

Transport to the remote ledger service using httpx. The gateway:
1. Attaches the stored credential as a bearer header when present
2. Normalizes every failure into a GatewayFailure
3. On HTTP 401, emits an invalidation event to its listeners

The gateway never writes the credential slot and never redirects.
The SessionStore subscribes to invalidation events and performs
the logout itself.
"""

from datetime import date
from typing import Any, Callable, Optional

import httpx

from ewallet.config import get_settings
from ewallet.observability import get_logger
from ewallet.services.gateway import routes
from ewallet.services.gateway.normalization import (
    FailureKind,
    GatewayError,
    GatewayFailure,
    normalize_response,
    normalize_transport_error,
)
from ewallet.services.storage import CredentialStorageInterface


InvalidationListener = Callable[[GatewayFailure], None]


class RemoteGateway:
    """
    Async HTTP client for the remote ledger.

    Routes are exposed as thin methods so callers never build URLs.
    """

    def __init__(
        self,
        credential_storage: CredentialStorageInterface,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if base_url is None or timeout_seconds is None:
            settings = get_settings().gateway
            base_url = base_url or settings.base_url
            timeout_seconds = timeout_seconds or settings.timeout_seconds

        self._storage = credential_storage
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._invalidation_listeners: list[InvalidationListener] = []
        self._logger = get_logger(__name__)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RemoteGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    # Invalidation subscription
    # -------------------------------------------------------------------------

    def add_invalidation_listener(
        self,
        listener: InvalidationListener,
    ) -> Callable[[], None]:
        """
        Subscribe to 401 events.

        Returns a callable that removes the listener.
        """
        self._invalidation_listeners.append(listener)

        def remove() -> None:
            if listener in self._invalidation_listeners:
                self._invalidation_listeners.remove(listener)

        return remove

    def _emit_invalidation(self, failure: GatewayFailure) -> None:
        self._logger.warning(
            "session_invalidated_by_remote",
            status_code=failure.status_code,
            listeners=len(self._invalidation_listeners),
        )
        for listener in list(self._invalidation_listeners):
            try:
                listener(failure)
            except Exception:
                # One broken listener must not hide the 401 from the caller
                self._logger.exception("invalidation_listener_failed")

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _auth_headers(self) -> dict[str, str]:
        token = self._storage.get()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Perform one round trip.

        Returns:
            The decoded response body (JSON value, text, or None)

        Raises:
            GatewayError: For any transport failure or non-2xx response
        """
        client = self._get_client()

        try:
            response = await client.request(
                method,
                path,
                json=json,
                params=params,
                headers=self._auth_headers(),
            )
        except httpx.HTTPError as e:
            self._logger.warning(
                "gateway_transport_error",
                method=method,
                path=path,
                error=type(e).__name__,
            )
            raise GatewayError(normalize_transport_error(e)) from e

        if response.is_success:
            return self._decode_body(response)

        failure = normalize_response(response)
        self._logger.info(
            "gateway_request_failed",
            method=method,
            path=path,
            status_code=response.status_code,
            kind=failure.kind.value,
        )

        if failure.kind == FailureKind.UNAUTHORIZED:
            self._emit_invalidation(failure)

        raise GatewayError(failure)

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------

    async def register(self, username: str, password: str) -> Any:
        return await self.request(
            "POST",
            routes.AUTH_REGISTER,
            json={"username": username, "password": password},
        )

    async def login(self, username: str, password: str) -> Any:
        return await self.request(
            "POST",
            routes.AUTH_LOGIN,
            json={"username": username, "password": password},
        )

    async def get_balance(self) -> Any:
        return await self.request("GET", routes.WALLET_BALANCE)

    async def post_transaction(self, route: str, payload: dict[str, Any]) -> Any:
        return await self.request("POST", route, json=payload)

    async def get_transactions(self) -> Any:
        return await self.request("GET", routes.WALLET_TRANSACTIONS)

    async def get_transactions_in_range(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Any:
        params: dict[str, str] = {}
        if start is not None:
            params["startDate"] = start.strftime(routes.RANGE_DATE_FORMAT)
        if end is not None:
            params["endDate"] = end.strftime(routes.RANGE_DATE_FORMAT)
        return await self.request(
            "GET",
            routes.WALLET_TRANSACTIONS_RANGE,
            params=params,
        )
