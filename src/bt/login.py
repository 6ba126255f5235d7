"""API key login: resolves the organization and the API URL to talk to."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from bt.config import DEFAULT_API_URL, Config
from bt.http import ApiClient, TransportError

logger = logging.getLogger(__name__)


class LoginError(RuntimeError):
    """Credentials are missing or were rejected."""


@dataclass
class LoginContext:
    api_key: str
    org_name: str
    api_url: str
    app_url: str

    def client(self, transport: httpx.AsyncBaseTransport | None = None) -> ApiClient:
        return ApiClient(self.api_url, self.api_key, self.org_name, transport=transport)


def derive_app_url(api_url: str) -> str:
    """``https://api.braintrust.dev`` -> ``https://www.braintrust.dev``."""
    return api_url.replace("api.braintrust", "www.braintrust")


async def login(
    config: Config,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LoginContext:
    """Exchange the configured API key for the organization's connection info."""
    if not config.api_key:
        raise LoginError("no API key. Pass --api-key or set BRAINTRUST_API_KEY")

    app_url = config.app_url or derive_app_url(config.api_url or DEFAULT_API_URL)
    auth = ApiClient(app_url, config.api_key, transport=transport)
    try:
        payload = await auth.post("/api/apikey/login", {})
    except TransportError as e:
        raise LoginError(f"login failed: {e}") from e

    orgs = payload.get("org_info") if isinstance(payload, dict) else None
    if not orgs:
        raise LoginError("login failed: no organizations available for this API key")

    if config.org_name:
        matches = [org for org in orgs if org.get("name") == config.org_name]
        if not matches:
            raise LoginError(f"organization '{config.org_name}' not found for this API key")
        org = matches[0]
    else:
        org = orgs[0]

    api_url = org.get("api_url") or config.api_url or DEFAULT_API_URL
    logger.info("Logged in to %s as org %s", api_url, org.get("name"))
    return LoginContext(
        api_key=config.api_key,
        org_name=org.get("name") or "",
        api_url=api_url,
        app_url=config.app_url or derive_app_url(api_url),
    )
