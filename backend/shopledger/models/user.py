from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, func

from shopledger.db import Base

ROLES = ("admin", "manager", "sales", "warehouse")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(256), unique=True, nullable=False, index=True)
    password_hash = Column(String(128), nullable=False)
    full_name = Column(String(256), nullable=False)
    role = Column(String(32), nullable=False, default="sales")  # ROLES
    permissions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User username={self.username} role={self.role}>"
