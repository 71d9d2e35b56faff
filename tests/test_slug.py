import pytest

from org_signup.provisioning.slug import slugify_organization


@pytest.mark.parametrize(
    "name, expected",
    [
        ("acme corp", "acme-corp"),
        ("Acme   Corp  Ltd", "Acme-Corp-Ltd"),
        ("acme-corp", "acme-corp"),
        ("Ünïcode & Co.", "ncode--Co"),
        ("  padded  ", "padded"),
        ("***", ""),
    ],
)
def test_slugify_organization(name, expected):
    assert slugify_organization(name) == expected
