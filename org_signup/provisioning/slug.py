import re

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-zA-Z0-9-]")


def slugify_organization(name: str) -> str:
    """Derive the subdomain slug the sign-up form shows for ``name``.

    Whitespace runs become a single hyphen, then anything outside
    ``[a-zA-Z0-9-]`` is dropped.
    """
    return _DISALLOWED.sub("", _WHITESPACE.sub("-", name.strip()))
