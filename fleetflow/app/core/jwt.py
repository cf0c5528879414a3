"""
JWT access tokens for FleetFlow staff.

A token identifies the caller (`sub` email, `user_id`) and carries the
role it was issued with. Authorization never relies on the token alone:
get_current_user reloads the user on every request, so the role and the
DRIVER link (`driver_id`) always come from the database. `driver_id` is
therefore not a claim; relinking or deactivating a user takes effect on
the next request without reissuing tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from fleetflow.app.core.config import settings
from fleetflow.app.models.user import User


def token_claims(user: User) -> Dict[str, Any]:
    """
    Claims for a user's access token.

    Example:
        {"sub": "dispatch@fleet.example.com", "user_id": 12, "role": "DISPATCHER"}
    """
    return {
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
    }


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign `data` (normally token_claims(user)) with `iat` and `exp` added.

    Lifetime defaults to ACCESS_TOKEN_EXPIRE_MINUTES; token_revocation keys
    use the same lifetime as their TTL.
    """
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    return jwt.encode(
        {**data, "iat": issued_at, "exp": expire},
        settings.secret_key,
        algorithm=settings.algorithm
    )


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verified payload, or None for a bad signature, malformed token or expired `exp`."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
