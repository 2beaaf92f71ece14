# parlour_api/auth/login.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash

from parlour_api.database import get_db
from parlour_api.auth.dependencies import Identity, get_current_identity
from parlour_api.auth.jwt_handler import claims_for_user, create_access_token
from parlour_api.auth.models import User
from parlour_api.errors import InvalidArgument, NotFound, Unauthenticated

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/login")
def login_post(body: LoginRequest, db: Session = Depends(get_db)):
    email = (body.email or "").strip().lower()
    if not email or not body.password:
        raise InvalidArgument("Email and password are required")

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise NotFound("User not found")

    if not check_password_hash(user.password_hash or "", body.password):
        logger.info("Failed login for %s", email)
        raise Unauthenticated("Invalid credentials")

    token = create_access_token(claims_for_user(user))
    logger.info("User %s logged in (role=%s)", user.id, user.role)

    return {
        "success": True,
        "token": token,
        "user": {"id": user.id, "name": user.name, "role": user.role},
    }


@router.get("/me")
def read_me(identity: Identity = Depends(get_current_identity)):
    """Return the identity carried by the caller's token."""
    return {
        "success": True,
        "data": {"id": identity.subject_id, "name": identity.name, "role": identity.role},
    }
