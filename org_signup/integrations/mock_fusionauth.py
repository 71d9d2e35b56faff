"""In-memory stand-in for FusionAuth used in mock mode and by the test suite."""
from __future__ import annotations

import logging
import secrets
import uuid
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set

from .fusionauth import ClientResponse, FusionAuthError

logger = logging.getLogger(__name__)


@dataclass
class RecordedCall:
    operation: str
    scope: str
    credential: Optional[str]
    payload: Dict[str, Any] = field(default_factory=dict)


class MockFusionAuth:
    """Shared in-memory provider state plus the client factory over it.

    ``fail_on`` maps an operation name to the error it raises, ``empty_on``
    holds operations that answer 200 with no body.
    """

    def __init__(self, default_tenant_id: str = "default-tenant") -> None:
        self._default_tenant_id = default_tenant_id
        self.tenants: Dict[str, Dict[str, Any]] = {
            default_tenant_id: {"id": default_tenant_id, "name": "Default"}
        }
        self.api_keys: Dict[str, Dict[str, Any]] = {}
        self.applications: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self.calls: List[RecordedCall] = []
        self.fail_on: Dict[str, Exception] = {}
        self.empty_on: Set[str] = set()

    @property
    def default_tenant_id(self) -> str:
        return self._default_tenant_id

    def default(self) -> "MockFusionAuthClient":
        return MockFusionAuthClient(self, scope="default")

    def for_tenant(self, tenant_id: str) -> "MockFusionAuthClient":
        return MockFusionAuthClient(self, scope="tenant", credential=tenant_id)

    def for_api_key(self, api_key: str) -> "MockFusionAuthClient":
        return MockFusionAuthClient(self, scope="api_key", credential=api_key)

    def operations(self) -> List[str]:
        return [call.operation for call in self.calls]

    def calls_for(self, operation: str) -> List[RecordedCall]:
        return [call for call in self.calls if call.operation == operation]


class MockFusionAuthClient:
    def __init__(self, backend: MockFusionAuth, scope: str, credential: Optional[str] = None) -> None:
        self.backend = backend
        self.scope = scope
        self.credential = credential

    def _record(self, operation: str, payload: Optional[Mapping[str, Any]] = None) -> Optional[ClientResponse]:
        self.backend.calls.append(
            RecordedCall(operation, self.scope, self.credential, deepcopy(dict(payload or {})))
        )
        error = self.backend.fail_on.get(operation)
        if error is not None:
            raise error
        if operation in self.backend.empty_on:
            return ClientResponse(status_code=200, response=None)
        return None

    def _tenant_scope(self) -> Optional[str]:
        if self.scope == "tenant":
            return self.credential
        if self.scope == "api_key":
            key = next(
                (item for item in self.backend.api_keys.values() if item["key"] == self.credential),
                None,
            )
            if key is None:
                raise FusionAuthError(401, None)
            return key.get("tenantId")
        return None

    async def create_tenant(self, tenant_id: str, request: Mapping[str, Any]) -> ClientResponse:
        short_circuit = self._record("create_tenant", request)
        if short_circuit is not None:
            return short_circuit

        source_id = request.get("sourceTenantId")
        if source_id and source_id not in self.backend.tenants:
            raise FusionAuthError(400, {"fieldErrors": {"sourceTenantId": [{"code": "[invalid]sourceTenantId"}]}})

        tenant = dict(request.get("tenant") or {})
        tenant["id"] = tenant_id or str(uuid.uuid4())
        self.backend.tenants[tenant["id"]] = tenant
        return ClientResponse(status_code=200, response={"tenant": tenant})

    async def create_api_key(self, key_id: str, request: Mapping[str, Any]) -> ClientResponse:
        short_circuit = self._record("create_api_key", request)
        if short_circuit is not None:
            return short_circuit

        api_key = deepcopy(dict(request.get("apiKey") or {}))
        tenant_id = api_key.get("tenantId")
        if tenant_id and tenant_id not in self.backend.tenants:
            raise FusionAuthError(400, {"fieldErrors": {"apiKey.tenantId": [{"code": "[invalid]apiKey.tenantId"}]}})

        api_key["id"] = key_id or str(uuid.uuid4())
        api_key.setdefault("key", secrets.token_urlsafe(32))
        self.backend.api_keys[api_key["id"]] = api_key
        return ClientResponse(status_code=200, response={"apiKey": api_key})

    async def create_application(self, application_id: str, request: Mapping[str, Any]) -> ClientResponse:
        short_circuit = self._record("create_application", request)
        if short_circuit is not None:
            return short_circuit

        application = deepcopy(dict(request.get("application") or {}))
        application["id"] = application_id or str(uuid.uuid4())
        application["tenantId"] = self._tenant_scope() or self.backend.default_tenant_id
        self.backend.applications[application["id"]] = application
        return ClientResponse(status_code=200, response={"application": application})

    async def register(self, user_id: str, request: Mapping[str, Any]) -> ClientResponse:
        short_circuit = self._record("register", request)
        if short_circuit is not None:
            return short_circuit

        tenant_id = self._tenant_scope() or self.backend.default_tenant_id
        registration = dict(request.get("registration") or {})
        application = self.backend.applications.get(registration.get("applicationId", ""))
        if application is None or application["tenantId"] != tenant_id:
            raise FusionAuthError(
                400,
                {"fieldErrors": {"registration.applicationId": [{"code": "[invalid]registration.applicationId"}]}},
            )

        user = deepcopy(dict(request.get("user") or {}))
        email = user.get("email")
        if any(
            existing["tenantId"] == tenant_id and existing.get("email") == email
            for existing in self.backend.users.values()
        ):
            raise FusionAuthError(
                400,
                {
                    "fieldErrors": {
                        "user.email": [
                            {
                                "code": "[duplicate]user.email",
                                "message": f"A User with email = [{email}] already exists.",
                            }
                        ]
                    }
                },
            )

        user.pop("password", None)
        user["id"] = user_id or str(uuid.uuid4())
        user["tenantId"] = tenant_id
        self.backend.users[user["id"]] = user
        return ClientResponse(status_code=200, response={"user": user, "registration": registration})

    async def delete_api_key(self, key_id: str) -> ClientResponse:
        self._record("delete_api_key", {"id": key_id})
        if self.backend.api_keys.pop(key_id, None) is None:
            raise FusionAuthError(404, None)
        return ClientResponse(status_code=200, response=None)

    async def delete_tenant(self, tenant_id: str) -> ClientResponse:
        self._record("delete_tenant", {"id": tenant_id})
        if self.backend.tenants.pop(tenant_id, None) is None:
            raise FusionAuthError(404, None)
        for collection in (self.backend.applications, self.backend.users):
            for entity_id in [key for key, value in collection.items() if value.get("tenantId") == tenant_id]:
                del collection[entity_id]
        logger.debug("Mock tenant %s deleted with its applications and users", tenant_id)
        return ClientResponse(status_code=200, response=None)
