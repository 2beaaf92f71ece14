# parlour_api/auth/dependencies.py
from dataclasses import dataclass
from typing import Dict, Any, Optional, Callable, Iterable
import logging

from fastapi import Header, Depends

from parlour_api.auth.jwt_handler import decode_jwt
from parlour_api.errors import Unauthenticated, Forbidden

logger = logging.getLogger(__name__)

ADMIN = "admin"
SUPER_ADMIN = "super-admin"
ALL_ROLES = (ADMIN, SUPER_ADMIN)


@dataclass(frozen=True)
class Identity:
    subject_id: int
    role: str
    name: str = ""

    @property
    def is_elevated(self) -> bool:
        return self.role == SUPER_ADMIN


# -------------------------------------------
# Token lookup: "Authorization: Bearer <jwt>"
# -------------------------------------------
def _extract_bearer(auth_header: Optional[str]) -> Optional[str]:
    """
    The JWT from an Authorization header value (REST header or /ws handshake).
    None when the header is absent or not a two-part Bearer value.
    """
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def identity_from_token(token: Optional[str]) -> Identity:
    """
    Verify a JWT and turn its claims into an Identity.
    Raises Unauthenticated for a missing, invalid or expired token.
    """
    if not token:
        raise Unauthenticated("Access denied. No token provided.")

    payload = decode_jwt(token)
    if payload is None:
        raise Unauthenticated("Invalid token. Authentication failed.")

    return _identity_from_payload(payload)


def _identity_from_payload(payload: Dict[str, Any]) -> Identity:
    # payload may contain user_id or sub
    raw_id = payload.get("user_id") or payload.get("sub") or payload.get("id")
    try:
        subject_id = int(raw_id)
    except (TypeError, ValueError):
        logger.warning("Token subject missing or invalid: payload keys=%s", list(payload.keys()))
        raise Unauthenticated("Invalid token payload")

    return Identity(
        subject_id=subject_id,
        role=str(payload.get("role") or ""),
        name=str(payload.get("name") or ""),
    )


# -------------------------------------------
# Route dependencies
# -------------------------------------------
def get_current_identity(authorization: Optional[str] = Header(None)) -> Identity:
    return identity_from_token(_extract_bearer(authorization))


def check_role(identity: Identity, allowed_roles: Iterable[str]) -> Identity:
    allowed = [str(r).lower() for r in allowed_roles]
    if identity.role.lower() not in allowed:
        logger.info("Denied user_id=%s role=%s (needs %s)", identity.subject_id, identity.role, allowed)
        raise Forbidden(f"Access denied. Required role: {' or '.join(allowed)}.")
    return identity


# -------------------------------------------
# Role check that returns the identity
# Usage: Depends(require_role([SUPER_ADMIN])) or Depends(require_role(ALL_ROLES))
# -------------------------------------------
def require_role(allowed_roles: Iterable[str]) -> Callable:
    allowed_roles = tuple(allowed_roles)

    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        return check_role(identity, allowed_roles)
    return dependency


any_role = require_role(ALL_ROLES)
super_admin_only = require_role([SUPER_ADMIN])
