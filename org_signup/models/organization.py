from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field


class RoleDefinition(BaseModel):
    name: str
    description: str
    is_default: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "isDefault": self.is_default,
        }


CONFIGURED_ROLES: List[RoleDefinition] = [
    RoleDefinition(name="admin", description="Admin role inside the organization", is_default=False),
    RoleDefinition(name="member", description="Member role", is_default=True),
]


class ProvisioningStep(str, Enum):
    VALIDATE = "validate"
    CREATE_TENANT = "create_tenant"
    CREATE_API_KEY = "create_api_key"
    CREATE_APPLICATION = "create_application"
    REGISTER_USER = "register_user"


class SignupSubmission(BaseModel):
    """Sign-up form fields; anything beyond the known three is kept in ``extra``."""

    organization: str = ""
    email: Optional[str] = None
    password: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_form(cls, fields: Mapping[str, Any]) -> "SignupSubmission":
        known = {"organization", "email", "password"}
        return cls(
            organization=str(fields.get("organization") or ""),
            email=str(fields["email"]) if "email" in fields else None,
            password=str(fields["password"]) if "password" in fields else None,
            extra={key: value for key, value in fields.items() if key not in known},
        )

    def user_payload(self) -> Dict[str, Any]:
        """Return the user object forwarded verbatim to the registration call."""
        payload: Dict[str, Any] = dict(self.extra)
        if self.email is not None:
            payload["email"] = self.email
        if self.password is not None:
            payload["password"] = self.password
        if self.organization:
            payload["organization"] = self.organization
        return payload


class ProvisionedOrganization(BaseModel):
    ok: bool = True
    organization: str
    tenant_id: str
    application_id: str
    user_id: Optional[str] = None
    redirect_target: str


class ProvisioningFailure(BaseModel):
    ok: bool = False
    step: ProvisioningStep
    status_code: int
    message: Any
    compensated: List[str] = Field(default_factory=list)

    def to_error_body(self) -> Dict[str, Any]:
        return {"error": {"message": self.message}}
