"""Request-scoped dependencies: who is calling"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from codearena.core.database import get_db
from codearena.core.exceptions import AuthenticationError
from codearena.core.security import decode_access_token
from codearena.models.user import User

# Missing headers are reported through AuthenticationError so every 401 has the same body.
bearer_scheme = HTTPBearer(auto_error=False)


def _subject_id(token: str) -> int:
    claims = decode_access_token(token)
    if not claims:
        raise AuthenticationError("Invalid or expired token")
    subject = str(claims.get("sub") or "")
    if not subject.isdigit():
        raise AuthenticationError("Invalid token payload")
    return int(subject)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user or fail with 401."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    user = db.get(User, _subject_id(credentials.credentials))
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is disabled")
    return user
