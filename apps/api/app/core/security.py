"""Security utilities for bearer credentials."""

from app.core.exceptions import InvalidCredentialError, NoCredentialError


AUTH_SCHEME = "bearer"


def extract_bearer_token(authorization: str | None) -> str:
    """
    Pull the token out of an Authorization header.

    The scheme is matched case-insensitively; anything other than
    "Bearer <token>" is rejected.

    Raises:
        NoCredentialError: header missing or blank
        InvalidCredentialError: wrong scheme or empty token
    """
    if authorization is None or not authorization.strip():
        raise NoCredentialError("missing Authorization header")

    parts = authorization.strip().split(None, 1)
    if len(parts) != 2 or parts[0].lower() != AUTH_SCHEME:
        raise InvalidCredentialError("Authorization header must use the Bearer scheme")

    token = parts[1].strip()
    if not token or " " in token:
        raise InvalidCredentialError("malformed bearer token")
    return token
