"""
REST Backend Client

DESIGN DECISION: One thin async client over httpx for the whole REST
contract. It only does transport: building URLs, attaching the bearer
token, decoding JSON into our models and turning HTTP failures into
BackendError subclasses.

TRADEOFFS:
- Fetches (GET) are retried on transport errors; commands never are,
  so a flaky network can't create the same expense twice
- Error text from the backend body is surfaced verbatim
"""

import re
from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from spend_tracker.config import BackendSettings, get_settings
from spend_tracker.models.account import AuthResult, GoldValuation
from spend_tracker.models.entities import (
    AnyEntry,
    EntitySnapshot,
    EntryKind,
    Member,
    parse_snapshot,
)
from spend_tracker.models.funds import Funds
from spend_tracker.services.backend.interface import (
    AuthenticationError,
    BackendError,
    BackendInterface,
    ConnectionError,
    NotFoundError,
)

logger = structlog.get_logger(__name__)

_API_PREFIX = re.compile(r"^/?api/?")


def api_url(path: str, base_url: str = "") -> str:
    """
    Resolve an ``/api/...`` path against the configured backend.

    Without a base URL the path stays relative (same origin). With one,
    the ``api/`` prefix is dropped because the backend serves its routes
    at the root.

    >>> api_url("/api/funds")
    '/api/funds'
    >>> api_url("/api/funds", "https://backend.example.com")
    'https://backend.example.com/funds'
    """
    if not base_url:
        return path if path.startswith("/") else f"/{path}"
    clean = _API_PREFIX.sub("", path)
    return f"{base_url}/{clean}"


def error_message(response: httpx.Response) -> Optional[str]:
    """The backend's own error text (``message`` or ``detail``), if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return None


class HttpBackend(BackendInterface):
    """
    Backend implementation that talks to the REST API.

    Usage:
        async with HttpBackend() as backend:
            backend.set_token(token)
            snapshot = await backend.fetch_month_snapshot(2025, 1)
    """

    def __init__(
        self,
        settings: Optional[BackendSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        token: Optional[str] = None,
        retry_wait: Optional[wait_base] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: Backend settings. Defaults to the global settings.
            client: Preconfigured httpx client (tests pass one with a
                MockTransport). If None, one is created and owned here.
            token: Bearer token to attach to API requests.
            retry_wait: Wait strategy between fetch attempts.
        """
        self._settings = settings or get_settings().backend
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._settings.base_url or self._settings.origin,
            timeout=self._settings.timeout_seconds,
        )
        self._token = token
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    async def __aenter__(self) -> "HttpBackend":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _url(self, path: str) -> str:
        if self._settings.is_relative:
            return api_url(path)
        return api_url(path, self._settings.base_url)

    def _headers(self, url: str) -> dict[str, str]:
        is_api = url.startswith("/api") or (
            not self._settings.is_relative and url.startswith(self._settings.base_url)
        )
        if is_api and self._token:
            return {"Authorization": f"Bearer {self._token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (or None)."""
        url = self._url(path)
        try:
            response = await self._client.request(
                method,
                url,
                json=json,
                headers=self._headers(url),
            )
        except httpx.TransportError as e:
            raise ConnectionError(f"Could not reach the backend: {e}") from e

        if response.is_error:
            message = error_message(response) or (
                f"Request failed with status {response.status_code}"
            )
            logger.warning(
                "backend_request_failed",
                method=method,
                url=url,
                status_code=response.status_code,
            )
            if response.status_code in (401, 403):
                raise AuthenticationError(message, response.status_code)
            if response.status_code == 404:
                raise NotFoundError(message, response.status_code)
            raise BackendError(message, response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendError("Unexpected response from backend") from e

    async def _get(self, path: str) -> Any:
        """GET with retries on transport errors only."""
        body = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_retries),
            wait=self._retry_wait,
            retry=retry_if_exception_type(ConnectionError),
            reraise=True,
        ):
            with attempt:
                body = await self._request("GET", path)
        return body

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    async def fetch_month_snapshot(self, year: int, month: int) -> EntitySnapshot:
        body = await self._get(f"/api/data/{year}/{month}")
        return parse_snapshot(body or {})

    async def fetch_year_snapshot(self, year: int) -> EntitySnapshot:
        body = await self._get(f"/api/data/year/{year}")
        return parse_snapshot(body or {})

    # =========================================================================
    # ENTRIES
    # =========================================================================

    async def add_entry(self, kind: EntryKind, entry: AnyEntry) -> None:
        await self._request("POST", f"/api/{kind.resource}", json=entry.to_payload())

    async def delete_entry(self, kind: EntryKind, entry_id: str) -> None:
        await self._request("DELETE", f"/api/{kind.resource}/{entry_id}")

    # =========================================================================
    # FUNDS
    # =========================================================================

    async def fetch_funds(self) -> Funds:
        body = await self._get("/api/funds")
        return Funds.model_validate(body or {})

    async def save_funds(self, funds: Funds) -> Funds:
        body = await self._request("PUT", "/api/funds", json=funds.to_payload())
        # Some deployments answer 204; what we sent is then what is stored
        return Funds.model_validate(body) if body else funds

    # =========================================================================
    # MEMBERS
    # =========================================================================

    async def list_members(self) -> list[Member]:
        body = await self._get("/api/members")
        if not isinstance(body, list):
            return []
        return [Member.model_validate(row) for row in body]

    async def add_member(self, name: str) -> Member:
        body = await self._request("POST", "/api/members", json={"name": name})
        return Member.model_validate({**(body or {}), "name": name})

    async def remove_member(self, member_id: str) -> None:
        await self._request("DELETE", f"/api/members/{member_id}")

    # =========================================================================
    # VALUATION AND AUTH
    # =========================================================================

    async def gold_valuation(self) -> GoldValuation:
        body = await self._get("/api/investments/gold-valuation")
        return GoldValuation.model_validate(body or {})

    async def sign_in(self, email: str, password: str) -> AuthResult:
        return await self._authenticate("/api/auth/login", email, password)

    async def sign_up(self, email: str, password: str) -> AuthResult:
        return await self._authenticate("/api/auth/signup", email, password)

    async def _authenticate(self, path: str, email: str, password: str) -> AuthResult:
        try:
            body = await self._request(
                "POST", path, json={"email": email, "password": password},
            )
        except (ConnectionError, AuthenticationError):
            raise
        except BackendError as e:
            # 400/409 from the auth routes are credential problems too
            raise AuthenticationError(e.message, e.status_code) from e
        return AuthResult.model_validate(body or {})
