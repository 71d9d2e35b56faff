from org_signup.models.organization import (
    CONFIGURED_ROLES,
    ProvisioningFailure,
    ProvisioningStep,
    SignupSubmission,
)


def test_configured_roles_payload():
    assert [role.to_payload() for role in CONFIGURED_ROLES] == [
        {"name": "admin", "description": "Admin role inside the organization", "isDefault": False},
        {"name": "member", "description": "Member role", "isDefault": True},
    ]


def test_submission_keeps_extra_fields():
    submission = SignupSubmission.from_form(
        {"organization": "acme", "email": "a@b.example", "password": "secret123", "firstName": "Ada"}
    )

    assert submission.extra == {"firstName": "Ada"}
    assert submission.user_payload() == {
        "firstName": "Ada",
        "email": "a@b.example",
        "password": "secret123",
        "organization": "acme",
    }


def test_submission_defaults_missing_fields_to_empty():
    submission = SignupSubmission.from_form({})
    assert submission.organization == ""
    assert submission.email is None
    assert submission.password is None
    assert submission.extra == {}


def test_user_payload_forwards_only_submitted_fields():
    assert SignupSubmission.from_form({"organization": "acme"}).user_payload() == {"organization": "acme"}
    assert SignupSubmission.from_form({"organization": "acme", "email": ""}).user_payload() == {
        "email": "",
        "organization": "acme",
    }


def test_failure_error_body_keeps_json_messages():
    failure = ProvisioningFailure(
        step=ProvisioningStep.CREATE_TENANT,
        status_code=400,
        message={"fieldErrors": {"tenant.name": []}},
    )
    assert failure.to_error_body() == {"error": {"message": {"fieldErrors": {"tenant.name": []}}}}
    assert failure.ok is False
