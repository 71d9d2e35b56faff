"""Organization provisioning against FusionAuth.

One sign-up submission runs four dependent provider calls in order:

1. create a tenant for the organization (default client)
2. issue an API key locked to that tenant (default client)
3. create the organization's application with the tenant-locked key
4. register the submitting user in the new tenant

The first failure aborts the chain. Every failure, whether validation, an
empty provider answer or a provider error, comes back as a
``ProvisioningFailure``. Any other exception gets the same cleanup or
orphan logging and is then re-raised.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Tuple, Union

from opentelemetry.trace import get_tracer

from ..config.settings import Settings, get_settings
from ..integrations.fusionauth import ClientFactory, ClientResponse, FusionAuthError
from ..models.organization import (
    CONFIGURED_ROLES,
    ProvisionedOrganization,
    ProvisioningFailure,
    ProvisioningStep,
    SignupSubmission,
)
from .slug import slugify_organization

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

BAD_GATEWAY = 502
GENERIC_FAILURE_MESSAGE = "Organization sign-up failed"

ProvisioningOutcome = Union[ProvisionedOrganization, ProvisioningFailure]


class ProvisioningError(Exception):
    def __init__(
        self,
        step: ProvisioningStep,
        status_code: int,
        message: Any,
        *,
        from_provider: bool = False,
    ) -> None:
        super().__init__(f"{step.value} failed ({status_code}): {message!r}")
        self.step = step
        self.status_code = status_code
        self.message = message
        self.from_provider = from_provider


@dataclass
class _CreatedEntities:
    tenant_id: Optional[str] = None
    api_key_id: Optional[str] = None
    api_key_issued: bool = False
    application_id: Optional[str] = None
    compensated: List[str] = field(default_factory=list)


def _dig(result: Optional[ClientResponse], *keys: str) -> Any:
    value: Any = result.response if result is not None else None
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


class OrganizationProvisioningWorkflow:
    def __init__(self, clients: ClientFactory, settings: Optional[Settings] = None) -> None:
        self.clients = clients
        self.settings = settings or get_settings()

    async def run(self, fields: Mapping[str, Any]) -> ProvisioningOutcome:
        """Provision an organization from submitted sign-up fields."""
        created = _CreatedEntities()
        try:
            submission, organization = self.validate(fields)
            tenant_id = await self.create_tenant(organization)
            created.tenant_id = tenant_id
            api_key_id, api_key = await self.create_api_key(organization, tenant_id)
            created.api_key_id = api_key_id
            created.api_key_issued = True
            application_id = await self.create_application(organization, api_key)
            created.application_id = application_id
            user_id = await self.register_user(tenant_id, submission, application_id)
        except ProvisioningError as exc:
            return await self._fail(exc, created)
        except Exception:
            logger.exception("Organization provisioning aborted unexpectedly")
            await self._release(created)
            raise

        redirect_target = f"{organization}.{self.settings.BASE_DOMAIN}/signin"
        logger.info("Organization %s provisioned in tenant %s", organization, tenant_id)
        return ProvisionedOrganization(
            organization=organization,
            tenant_id=tenant_id,
            application_id=application_id,
            user_id=user_id,
            redirect_target=redirect_target,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def validate(self, fields: Mapping[str, Any]) -> Tuple[SignupSubmission, str]:
        submission = SignupSubmission.from_form(fields)
        if not submission.organization.strip():
            raise ProvisioningError(ProvisioningStep.VALIDATE, 400, "Organization name is required")

        organization = slugify_organization(submission.organization)
        if not organization.strip("-"):
            raise ProvisioningError(
                ProvisioningStep.VALIDATE, 400, "Organization name must contain letters or digits"
            )
        return submission, organization

    async def create_tenant(self, organization: str) -> str:
        request = {
            "sourceTenantId": self.clients.default_tenant_id,
            "tenant": {
                "name": organization,
                "issuer": self.settings.TENANT_ISSUER,
            },
        }
        result = await self._call(ProvisioningStep.CREATE_TENANT, self.clients.default().create_tenant, request)

        tenant_id = _dig(result, "tenant", "id")
        if not tenant_id:
            raise ProvisioningError(
                ProvisioningStep.CREATE_TENANT,
                BAD_GATEWAY,
                "Couldn't create tenant. FusionAuth response was empty!",
            )
        logger.info("Created tenant %s for organization %s", tenant_id, organization)
        return tenant_id

    async def create_api_key(self, organization: str, tenant_id: str) -> Tuple[Optional[str], str]:
        """Issue a key locked to ``tenant_id``; returns its id and secret."""
        request = {
            "apiKey": {
                "metaData": {
                    "attributes": {
                        "description": f"API key for {organization}",
                    },
                },
                "tenantId": tenant_id,
            },
        }
        result = await self._call(ProvisioningStep.CREATE_API_KEY, self.clients.default().create_api_key, request)

        api_key = _dig(result, "apiKey", "key")
        if not api_key:
            raise ProvisioningError(
                ProvisioningStep.CREATE_API_KEY,
                BAD_GATEWAY,
                "FusionAuth API key create call was successful, but no API key was returned!",
            )
        api_key_id = _dig(result, "apiKey", "id")
        logger.info("Issued API key %s locked to tenant %s", api_key_id or "<unknown>", tenant_id)
        return api_key_id, api_key

    async def create_application(self, organization: str, locked_api_key: str) -> str:
        # The tenant-locked key can only act inside the new tenant.
        client = self.clients.for_api_key(locked_api_key)
        roles = [role.to_payload() for role in CONFIGURED_ROLES]
        request = {
            "application": {
                "name": f"{organization} App",
                "roles": roles,
                "loginConfiguration": {
                    "generateRefreshTokens": True,
                },
            },
            "role": roles[0],
        }
        result = await self._call(ProvisioningStep.CREATE_APPLICATION, client.create_application, request)

        application_id = _dig(result, "application", "id")
        if not application_id:
            raise ProvisioningError(
                ProvisioningStep.CREATE_APPLICATION,
                BAD_GATEWAY,
                "An error occurred while creating the FusionAuth application.",
            )
        logger.info("Created application %s for organization %s", application_id, organization)
        return application_id

    async def register_user(
        self,
        tenant_id: str,
        submission: SignupSubmission,
        application_id: str,
    ) -> Optional[str]:
        request = {
            "user": submission.user_payload(),
            "registration": {
                "applicationId": application_id,
            },
        }
        result = await self._call(
            ProvisioningStep.REGISTER_USER, self.clients.for_tenant(tenant_id).register, request
        )
        user_id = _dig(result, "user", "id")
        logger.info("Registered user %s with application %s", user_id or "<unknown>", application_id)
        return user_id

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _call(
        self,
        step: ProvisioningStep,
        operation: Callable[[str, Mapping[str, Any]], Awaitable[ClientResponse]],
        request: Mapping[str, Any],
    ) -> ClientResponse:
        with tracer.start_as_current_span(f"provisioning.{step.value}"):
            try:
                return await operation("", request)
            except FusionAuthError as exc:
                raise ProvisioningError(
                    step,
                    exc.status_code or BAD_GATEWAY,
                    exc.response,
                    from_provider=True,
                ) from exc

    async def _fail(self, exc: ProvisioningError, created: _CreatedEntities) -> ProvisioningFailure:
        logger.warning("Organization provisioning failed at %s: %s", exc.step.value, exc)
        await self._release(created)

        message = exc.message
        if exc.from_provider and not self.settings.EXPOSE_PROVIDER_ERRORS:
            message = GENERIC_FAILURE_MESSAGE

        return ProvisioningFailure(
            step=exc.step,
            status_code=exc.status_code,
            message=message,
            compensated=created.compensated,
        )

    async def _release(self, created: _CreatedEntities) -> None:
        if not created.tenant_id:
            return
        if self.settings.ROLLBACK_ON_FAILURE:
            await self._compensate(created)
            return
        logger.error(
            "Provisioning left tenant %s and API key %s behind; manual cleanup required",
            created.tenant_id,
            created.api_key_id or ("<unknown id>" if created.api_key_issued else "<none>"),
        )

    async def _compensate(self, created: _CreatedEntities) -> None:
        """Best-effort removal of the key and tenant created before the failure."""
        client = self.clients.default()
        if created.api_key_issued and not created.api_key_id:
            logger.warning(
                "API key for tenant %s was issued without an id and cannot be revoked; revoke it manually",
                created.tenant_id,
            )
        if created.api_key_id:
            try:
                await client.delete_api_key(created.api_key_id)
                created.compensated.append(f"delete_api_key:{created.api_key_id}")
            except FusionAuthError as exc:
                logger.warning("Failed to revoke API key %s: %s", created.api_key_id, exc)
        if created.tenant_id:
            try:
                await client.delete_tenant(created.tenant_id)
                created.compensated.append(f"delete_tenant:{created.tenant_id}")
            except FusionAuthError as exc:
                logger.warning("Failed to delete tenant %s: %s", created.tenant_id, exc)
