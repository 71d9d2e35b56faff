"""Provision a demo organization against the in-memory provider."""

import asyncio

from org_signup.config.settings import Settings
from org_signup.integrations.mock_fusionauth import MockFusionAuth
from org_signup.provisioning.workflow import OrganizationProvisioningWorkflow


async def main() -> None:
    fusionauth = MockFusionAuth()
    workflow = OrganizationProvisioningWorkflow(fusionauth, Settings(IDENTITY_PROVIDER="mock"))

    print("\n--- Sign-up ---")
    outcome = await workflow.run(
        {
            "organization": "Initech Software",
            "email": "peter@initech.example",
            "password": "tps-report-1",
        }
    )
    print(outcome.model_dump())

    print("\n--- Same organization again (second tenant) ---")
    repeat = await workflow.run({"organization": "Initech Software", "email": "peter@initech.example"})
    print(repeat.model_dump())

    print("\n--- Provider calls ---")
    for call in fusionauth.calls:
        print(f"{call.operation:<20} {call.scope}")


if __name__ == "__main__":
    asyncio.run(main())
