from datetime import datetime, timezone
from typing import Any

from jose import JWTError, jwt


def read_claims(token: str) -> dict[str, Any] | None:
    """
    Read claims of a content API access token without verifying the signature.

    The signing secret belongs to the content API; we only need the expiry.
    Static tokens are opaque strings, not JWTs: returns None for them.
    """
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return None


def read_expiry(token: str) -> datetime | None:
    """Expiry of a JWT access token as aware UTC datetime, None if unknown."""
    claims = read_claims(token)
    if not claims:
        return None
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)) or isinstance(exp, bool):
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)
