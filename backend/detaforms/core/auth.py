import uuid

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from detaforms.core.config import settings

security = HTTPBearer()


def decode_token(token: str) -> dict:
    """Decode and validate an identity-provider JWT. Raises jwt.PyJWTError on failure."""
    options = {"verify_aud": settings.JWT_AUDIENCE is not None}
    return jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        options=options,
    )


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> uuid.UUID:
    """Extract the authenticated user's id from a Bearer token.

    The token's ``sub`` claim carries the user id assigned by the identity
    provider; no local user table is consulted.
    """
    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    user_id_str = payload.get("sub")
    if user_id_str is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        return uuid.UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )


def get_current_user_email(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str | None:
    """Return the ``email`` claim of the bearer token, if the provider sets one."""
    try:
        payload = decode_token(credentials.credentials)
    except jwt.PyJWTError:
        return None
    return payload.get("email")
