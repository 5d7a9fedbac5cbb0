from typing import Annotated

from fastapi import Depends, Header, Request

from src.core.auth.credential import Credential
from src.core.exceptions import AuthenticationError


async def get_credential(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Credential:
    """
    Dependency resolving the credential used for content API calls.

    A request carrying its own bearer token uses it; otherwise the credential
    acquired at startup (``app.state.credential``) is used.

    Usage:
        @router.get("/overview")
        async def overview(credential: Credential = Depends(get_credential)):
            ...
    """
    if authorization:
        return Credential.from_authorization_header(authorization)

    credential: Credential | None = getattr(request.app.state, "credential", None)
    if credential is None:
        raise AuthenticationError("No authentication token available")
    if not credential.is_usable:
        raise AuthenticationError("Authentication token is no longer valid")
    return credential


CurrentCredential = Annotated[Credential, Depends(get_credential)]
