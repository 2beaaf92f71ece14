# parlour_api/auth/jwt_handler.py
# Signs and verifies the bearer tokens used by REST routes and the /ws channel.
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from parlour_api.config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET


def claims_for_user(user) -> Dict[str, Any]:
    """Claims carried by a login token: subject, numeric id, role and display name."""
    return {"sub": str(user.id), "user_id": user.id, "role": user.role, "name": user.name}


def create_access_token(claims: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    """
    Sign `claims` with an added 'exp'.
    Lifetime is JWT_EXPIRE_MINUTES unless `expires_minutes` is given.
    """
    lifetime = timedelta(minutes=JWT_EXPIRE_MINUTES if expires_minutes is None else expires_minutes)
    signed = dict(claims, exp=datetime.now(timezone.utc) + lifetime)
    return jwt.encode(signed, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_jwt(token: str) -> Optional[Dict[str, Any]]:
    # bad signature, expiry and malformed input all come back as None
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
