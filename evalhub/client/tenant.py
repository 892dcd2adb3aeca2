"""
Tenant Resolution

Discovers the default (seeded) tenant of an EvalHub server and enforces the
API-key policy for hosted endpoints.
"""

import logging
import re
from typing import Optional

import httpx

from utils.exceptions import AuthConfigError, TenantDiscoveryError
from utils.retry import AsyncCaller

logger = logging.getLogger(__name__)

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def is_localhost(url: str) -> bool:
    """Whether `url` points at a loopback host.

    Accepts bare hosts ("localhost:1984"), full URLs, and IPv6 in either
    bracketed ("[::1]:8000") or bare ("::1") form.
    """
    stripped = _SCHEME_RE.sub("", url.strip())
    host = stripped.split("/")[0]
    if host.startswith("["):
        host = host[1:].split("]")[0]
    elif host.count(":") <= 1:
        host = host.split(":")[0]
    return host.lower() in LOOPBACK_HOSTS


def normalize_api_url(api_url: str) -> str:
    """Add a scheme to a bare host and drop any trailing slash.

    Loopback hosts default to http, everything else to https.
    """
    url = api_url.strip().rstrip("/")
    if not _SCHEME_RE.match(url):
        if url.count(":") > 1 and not url.startswith("["):
            url = f"[{url}]"
        scheme = "http" if is_localhost(url) else "https"
        url = f"{scheme}://{url}"
    return url


def validate_api_key(api_url: str, api_key: Optional[str]) -> None:
    """Raise AuthConfigError when a hosted endpoint is used without a key."""
    if not is_localhost(api_url) and not api_key:
        raise AuthConfigError(
            f"API key must be provided when using a hosted EvalHub API ({api_url})"
        )


async def resolve_tenant(
    api_url: str,
    api_key: Optional[str] = None,
    caller: Optional[AsyncCaller] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = 30.0,
) -> str:
    """
    Look up the seeded tenant of the server.

    Args:
        api_url: Base URL of the API.
        api_key: Optional bearer token.
        caller: Retrying caller; a default one is created if omitted.
        transport: Optional httpx transport (used by tests).
        timeout: Request timeout in seconds.

    Returns:
        The id of the first tenant the server lists.

    Raises:
        TenantDiscoveryError: On transport failure, non-2xx status, a body
            that is not a list, an empty list, or a first entry without an id.
    """
    caller = caller or AsyncCaller()
    url = f"{normalize_api_url(api_url)}/tenants"
    headers = {"authorization": f"Bearer {api_key}"} if api_key else {}

    async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
        try:
            response = await caller.call(client.get, url, headers=headers)
        except Exception:
            logger.warning("Tenant discovery request to %s failed", url, exc_info=True)
            raise TenantDiscoveryError(
                "Unable to get seeded tenant ID. Please manually provide."
            ) from None

        if not response.is_success:
            raise TenantDiscoveryError(
                f"Failed to fetch seeded tenant ID: {response.status_code} "
                f"{response.reason_phrase}"
            )

        try:
            tenants = response.json()
        except ValueError as e:
            raise TenantDiscoveryError(f"Tenants response is not valid JSON: {e}") from e

    if not isinstance(tenants, list):
        raise TenantDiscoveryError(
            f"Expected tenants GET request to return an array, but got {tenants!r}"
        )
    if not tenants:
        raise TenantDiscoveryError("No seeded tenant found")

    first = tenants[0]
    if not isinstance(first, dict) or "id" not in first:
        raise TenantDiscoveryError(f"Tenant entry has no id: {first!r}")
    tenant_id = first["id"]
    logger.info("Discovered tenant %s at %s", tenant_id, api_url)
    return tenant_id
