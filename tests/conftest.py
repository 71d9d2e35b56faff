import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from org_signup.config.settings import Settings  # noqa: E402
from org_signup.integrations.mock_fusionauth import MockFusionAuth  # noqa: E402
from org_signup.provisioning.workflow import OrganizationProvisioningWorkflow  # noqa: E402


def make_settings(**overrides) -> Settings:
    values = {
        "FUSIONAUTH_BASE_URL": "https://auth.example.test",
        "FUSIONAUTH_API_KEY": "default-key",
        "FUSIONAUTH_DEFAULT_TENANT_ID": "default-tenant",
        "IDENTITY_PROVIDER": "mock",
        "BASE_DOMAIN": "saasbp.io",
        "TENANT_ISSUER": "saasbp.io",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fusionauth() -> MockFusionAuth:
    return MockFusionAuth(default_tenant_id="default-tenant")


@pytest.fixture
def workflow(fusionauth, settings) -> OrganizationProvisioningWorkflow:
    return OrganizationProvisioningWorkflow(fusionauth, settings)


@pytest.fixture
def signup_fields():
    return {
        "organization": "acme-corp",
        "email": "owner@acme.example",
        "password": "correct-horse",
    }
