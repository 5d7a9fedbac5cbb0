from src.core.auth.credential import Credential
from src.core.auth.service import AuthService
from src.core.auth.jwt import read_claims, read_expiry
from src.core.auth.dependencies import CurrentCredential, get_credential

__all__ = [
    "Credential",
    "AuthService",
    "read_claims",
    "read_expiry",
    "CurrentCredential",
    "get_credential",
]
