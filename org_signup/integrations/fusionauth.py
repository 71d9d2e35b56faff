"""HTTP-based FusionAuth client covering the calls made during organization sign-up."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from ..config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-FusionAuth-TenantId"


@dataclass
class ClientResponse:
    """Status and decoded body of one FusionAuth call."""

    status_code: Optional[int]
    response: Any = None

    @property
    def was_successful(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300


class FusionAuthError(Exception):
    """Raised when FusionAuth answers with a non-2xx status or cannot be reached.

    ``status_code`` is ``None`` for transport failures.
    """

    def __init__(self, status_code: Optional[int], response: Any = None) -> None:
        super().__init__(f"FusionAuth request failed ({status_code}): {response!r}")
        self.status_code = status_code
        self.response = response


class IdentityProviderClient(Protocol):
    async def create_tenant(self, tenant_id: str, request: Mapping[str, Any]) -> ClientResponse: ...

    async def create_api_key(self, key_id: str, request: Mapping[str, Any]) -> ClientResponse: ...

    async def create_application(self, application_id: str, request: Mapping[str, Any]) -> ClientResponse: ...

    async def register(self, user_id: str, request: Mapping[str, Any]) -> ClientResponse: ...

    async def delete_api_key(self, key_id: str) -> ClientResponse: ...

    async def delete_tenant(self, tenant_id: str) -> ClientResponse: ...


class ClientFactory(Protocol):
    @property
    def default_tenant_id(self) -> str: ...

    def default(self) -> IdentityProviderClient: ...

    def for_tenant(self, tenant_id: str) -> IdentityProviderClient: ...

    def for_api_key(self, api_key: str) -> IdentityProviderClient: ...


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    content_type = response.headers.get("Content-Type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


class FusionAuthClient:
    """Minimal asynchronous FusionAuth REST client built on top of httpx."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        *,
        tenant_id: Optional[str] = None,
        timeout: Optional[float] = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.tenant_id = tenant_id
        self.timeout = timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.api_key:
            headers["Authorization"] = self.api_key
        if self.tenant_id:
            headers[TENANT_HEADER] = self.tenant_id
        return headers

    @staticmethod
    def _path(resource: str, resource_id: str = "") -> str:
        return f"{resource}/{resource_id}" if resource_id else resource

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
    ) -> ClientResponse:
        if not path.startswith("/"):
            path = "/" + path
        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=self._headers(), json=json)
        except httpx.HTTPError as exc:
            logger.warning("FusionAuth %s %s failed: %s", method, path, exc)
            raise FusionAuthError(None, str(exc)) from exc

        result = ClientResponse(status_code=response.status_code, response=_decode(response))
        if not result.was_successful:
            logger.debug("FusionAuth %s %s returned %s", method, path, response.status_code)
            raise FusionAuthError(result.status_code, result.response)
        return result

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def create_tenant(self, tenant_id: str, request: Mapping[str, Any]) -> ClientResponse:
        return await self._request("POST", self._path("/api/tenant", tenant_id), json=dict(request))

    async def create_api_key(self, key_id: str, request: Mapping[str, Any]) -> ClientResponse:
        return await self._request("POST", self._path("/api/api-key", key_id), json=dict(request))

    async def create_application(self, application_id: str, request: Mapping[str, Any]) -> ClientResponse:
        return await self._request(
            "POST", self._path("/api/application", application_id), json=dict(request)
        )

    async def register(self, user_id: str, request: Mapping[str, Any]) -> ClientResponse:
        return await self._request("POST", self._path("/api/user/registration", user_id), json=dict(request))

    async def delete_api_key(self, key_id: str) -> ClientResponse:
        return await self._request("DELETE", f"/api/api-key/{key_id}")

    async def delete_tenant(self, tenant_id: str) -> ClientResponse:
        return await self._request("DELETE", f"/api/tenant/{tenant_id}")


class FusionAuthClientFactory:
    """Builds a fresh FusionAuth client per call site from configuration."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._transport = transport

    @property
    def default_tenant_id(self) -> str:
        return self.settings.FUSIONAUTH_DEFAULT_TENANT_ID

    def _build(self, api_key: str, tenant_id: Optional[str] = None) -> FusionAuthClient:
        return FusionAuthClient(
            api_key,
            self.settings.FUSIONAUTH_BASE_URL,
            tenant_id=tenant_id,
            timeout=self.settings.FUSIONAUTH_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    def default(self) -> FusionAuthClient:
        return self._build(self.settings.FUSIONAUTH_API_KEY)

    def for_tenant(self, tenant_id: str) -> FusionAuthClient:
        return self._build(self.settings.FUSIONAUTH_API_KEY, tenant_id=tenant_id)

    def for_api_key(self, api_key: str) -> FusionAuthClient:
        return self._build(api_key)


def get_client_factory(settings: Optional[Settings] = None) -> ClientFactory:
    """Return the client factory selected by ``IDENTITY_PROVIDER``."""
    settings = settings or get_settings()
    provider_type = settings.IDENTITY_PROVIDER.lower()

    if provider_type == "fusionauth":
        logger.info("Using FusionAuth identity provider at %s", settings.FUSIONAUTH_BASE_URL)
        return FusionAuthClientFactory(settings)

    from .mock_fusionauth import MockFusionAuth

    if provider_type != "mock":
        logger.warning("Unknown IDENTITY_PROVIDER '%s'; defaulting to mock", provider_type)
    else:
        logger.info("Using mock identity provider integration")
    return MockFusionAuth(default_tenant_id=settings.FUSIONAUTH_DEFAULT_TENANT_ID or "default-tenant")
