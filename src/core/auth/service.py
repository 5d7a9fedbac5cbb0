import logging

import httpx

from src.core.auth.credential import Credential
from src.core.config import Settings
from src.core.exceptions import AuthenticationError, UpstreamError

logger = logging.getLogger(__name__)


class AuthService:
    """Acquires the content API credential used by all dashboard views."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def login(self, email: str, password: str) -> Credential:
        """
        Log in against ``POST /auth/login``.

        Raises:
            AuthenticationError: credentials rejected
            UpstreamError: content API unreachable or failing
        """
        try:
            response = await self.http.post(
                "/auth/login", json={"email": email, "password": password}
            )
        except httpx.HTTPError as e:
            raise UpstreamError("auth/login") from e

        if response.status_code in (400, 401, 403):
            raise AuthenticationError("Invalid credentials")
        if response.status_code >= 400:
            raise UpstreamError("auth/login", response.status_code)

        try:
            token = response.json()["data"]["access_token"]
        except (ValueError, KeyError, TypeError):
            raise AuthenticationError("Login response carried no access token")

        logger.info("Logged in to content API as %s", email)
        return Credential(token, source="login")

    async def acquire(self, settings: Settings) -> Credential | None:
        """
        Startup acquisition: static token first, then email/password login.

        Returns None when nothing is configured or login fails; views then
        answer 401 until the service is restarted with working credentials.
        """
        if settings.directus_static_token:
            logger.info("Using static content API token")
            return Credential(settings.directus_static_token, source="static")
        if not settings.has_login:
            logger.warning("No content API credentials configured")
            return None
        try:
            return await self.login(settings.directus_email, settings.directus_password)
        except (AuthenticationError, UpstreamError) as e:
            logger.error("Content API login failed: %s", e.message)
            return None
