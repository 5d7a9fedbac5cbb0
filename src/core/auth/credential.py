import logging
from datetime import datetime, timezone

from src.core.auth.jwt import read_expiry
from src.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class Credential:
    """
    Bearer token for the content API, passed explicitly to the gateway.

    Lifecycle: acquired once (startup login, static token or a request's own
    Authorization header), invalidated when the content API answers 401.
    An invalidated credential is never re-acquired behind the caller's back.
    """

    def __init__(self, token: str, source: str = "static", expires_at: datetime | None = None):
        if not token:
            raise AuthenticationError("No authentication token available")
        self._token = token
        self.source = source
        self.expires_at = expires_at if expires_at is not None else read_expiry(token)
        self.invalidated = False

    @classmethod
    def from_authorization_header(cls, authorization: str) -> "Credential":
        """Build a request-scoped credential from an ``Authorization`` header."""
        if not authorization.startswith("Bearer "):
            raise AuthenticationError("Invalid authorization header format")
        token = authorization[len("Bearer "):].strip()
        return cls(token, source="request")

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    @property
    def is_usable(self) -> bool:
        return not self.invalidated and not self.is_expired()

    def invalidate(self) -> None:
        if not self.invalidated:
            logger.warning("Content API rejected %s credential; invalidating", self.source)
        self.invalidated = True

    def auth_headers(self) -> dict[str, str]:
        """
        Headers for an outgoing request.

        Raises:
            AuthenticationError: credential invalidated or expired
        """
        if self.invalidated:
            raise AuthenticationError("Authentication token was rejected by the content API")
        if self.is_expired():
            raise AuthenticationError("Authentication token expired")
        return {"Authorization": f"Bearer {self._token}"}

    def __repr__(self) -> str:
        return f"Credential(source={self.source!r}, invalidated={self.invalidated})"
