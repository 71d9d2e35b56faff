from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

from org_signup.config.settings import Settings, get_settings
from org_signup.integrations.fusionauth import ClientFactory, get_client_factory
from org_signup.integrations.mock_fusionauth import MockFusionAuth
from org_signup.provisioning.workflow import OrganizationProvisioningWorkflow


_active_settings: ContextVar[Optional[Settings]] = ContextVar("active_settings", default=None)


@dataclass
class SignupServices:
    settings: Settings
    clients: ClientFactory
    workflow: OrganizationProvisioningWorkflow
    mock_mode: bool


def build_services(settings: Settings, clients: ClientFactory) -> SignupServices:
    return SignupServices(
        settings=settings,
        clients=clients,
        workflow=OrganizationProvisioningWorkflow(clients, settings),
        mock_mode=isinstance(clients, MockFusionAuth),
    )


async def init_services(settings: Optional[Settings] = None) -> SignupServices:
    """Initialise the sign-up services shared by the API routes."""

    settings = settings or get_settings()
    return build_services(settings, get_client_factory(settings))


def bind_settings(settings: Settings):
    """Bind the container's settings to the current request context."""
    return _active_settings.set(settings)


def reset_settings(token) -> None:
    _active_settings.reset(token)


def current_settings() -> Settings:
    return _active_settings.get() or get_settings()
