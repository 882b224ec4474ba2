"""Authority URL resolution from an audience name, tenant or explicit URL."""

from arr_auth.config import DEFAULT_AUTHORITY, DEFAULT_AUTHORITY_BASE

# Audience names, including the spellings used by MSAL.NET's AadAuthorityAudience
_AUDIENCES = {
    "common": "common",
    "azureadandpersonalmicrosoftaccount": "common",
    "organizations": "organizations",
    "azureadmultipleorgs": "organizations",
    "consumers": "consumers",
    "personalmicrosoftaccount": "consumers",
}


def resolve_authority(authority: str | None = None, tenant_id: str | None = None) -> str:
    """Return the authority URL MSAL should use.

    A tenant id wins over everything else. Otherwise a known audience name maps
    to its well-known path, an absolute URL is used as-is and anything else is
    treated as a tenant path under the default base.
    """
    base = DEFAULT_AUTHORITY_BASE.rstrip("/") + "/"
    if tenant_id and tenant_id.strip():
        return base + tenant_id.strip()

    value = (authority or "").strip() or DEFAULT_AUTHORITY
    audience = _AUDIENCES.get(value.lower())
    if audience:
        return base + audience
    if value.lower().startswith("https://"):
        return value.rstrip("/")
    return base + value.strip("/")
