"""
Public URL construction for stored objects.
"""


def build_public_url(access_domain: str, stored_key: str) -> str:
    """Build ``https://{access_domain}/{stored_key}``.

    A key that already starts with "/" is appended as is. A trailing "/" on
    the domain is not doubled, and a domain that already has a scheme keeps it.
    """
    domain = (access_domain or "").rstrip("/")
    if "://" not in domain:
        domain = f"https://{domain}"

    key = stored_key or ""
    if key.startswith("/"):
        return f"{domain}{key}"
    return f"{domain}/{key}"
