import httpx
from fastapi import Depends, Request

from src.core.auth.credential import Credential
from src.core.auth.dependencies import get_credential
from src.core.config import settings
from src.integrations.directus.client import DirectusClient


def create_http_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Shared HTTP client for the content API (one per application)."""
    return httpx.AsyncClient(
        base_url=settings.directus_url,
        timeout=settings.directus_timeout_seconds,
        transport=transport,
    )


async def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


async def get_directus_client(
    http: httpx.AsyncClient = Depends(get_http_client),
    credential: Credential = Depends(get_credential),
) -> DirectusClient:
    """Gateway bound to the credential resolved for this request."""
    return DirectusClient(http, credential)
