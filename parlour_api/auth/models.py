# parlour_api/auth/models.py

from sqlalchemy import Column, Integer, String
from parlour_api.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(150), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="admin")   # 'admin' / 'super-admin'

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
