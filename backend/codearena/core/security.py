"""Bearer token helpers.

Login and token issuance live outside the judge; the judge only needs to know
who is calling and whether they hold the admin role.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from codearena.config import settings


def create_access_token(
    user_id: int,
    role: str = "user",
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed access token for ``user_id``

    Args:
        user_id: Subject of the token
        role: Role claim
        expires_delta: Token lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        str: Encoded JWT token
    """
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {
        "sub": str(user_id),
        "role": role,
        "typ": "access",
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify an access token

    Returns:
        Optional[Dict]: Claims, or None if the token is invalid, expired or
        not an access token
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("typ") != "access":
        return None
    return payload
