# parlour_api/create_users.py
# Seed the two login roles. Run with: python -m parlour_api.create_users
import logging
import os

from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import generate_password_hash

from parlour_api.database import Base, SessionLocal, engine
from parlour_api.models import User

logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    ("Sara Super", "superadmin@parlour.local", os.getenv("SUPERADMIN_PASSWORD", "superpass"), "super-admin"),
    ("Alice Admin", "admin@parlour.local", os.getenv("ADMIN_PASSWORD", "adminpass"), "admin"),
]


def create_users(session_factory=SessionLocal, users=DEFAULT_USERS) -> int:
    Base.metadata.create_all(bind=session_factory.kw.get("bind") or engine)
    db = session_factory()
    created = 0
    try:
        for name, email, password, role in users:
            if db.query(User).filter(User.email == email).first():
                logger.info("Skipping (exists): %s", email)
                continue
            db.add(User(name=name, email=email, password_hash=generate_password_hash(password), role=role))
            created += 1
            logger.info("Inserted: %s (%s)", email, role)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Seeding users failed")
        raise
    finally:
        db.close()
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Created", create_users(), "user(s)")
