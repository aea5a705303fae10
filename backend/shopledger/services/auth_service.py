"""
Authentication helpers: bcrypt password hashing and signed, time-limited
tokens carrying {sub, role}.

Tokens are HS256 JWTs issued and verified with PyJWT, signed with
settings.SECRET_KEY and expiring after settings.TOKEN_TTL_MINUTES.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from sqlalchemy.orm import Session

from shopledger.config import settings
from shopledger.models.user import ROLES, User
from shopledger.utils.log import get_logger

log = get_logger("auth")

TOKEN_ALGORITHM = "HS256"


class AuthException(Exception):
    status_code = 400


class Unauthorized(AuthException):
    status_code = 401


class Forbidden(AuthException):
    status_code = 403


@dataclass(frozen=True)
class Actor:
    """The verified identity behind a request."""

    user_id: int
    role: str

    def has_role(self, *roles: str) -> bool:
        return self.role in roles


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed hash in the DB
        return False


def issue_token(user_id: int, role: str, ttl_minutes: Optional[int] = None) -> str:
    ttl = ttl_minutes if ttl_minutes is not None else settings.TOKEN_TTL_MINUTES
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=ttl),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=TOKEN_ALGORITHM)


def verify_token(token: Optional[str]) -> Optional[Actor]:
    """Return the Actor for a valid, unexpired token, else None."""
    if not token:
        return None
    try:
        claims = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[TOKEN_ALGORITHM],
            options={"require": ["sub", "role", "exp"]},
        )
    except jwt.InvalidTokenError as e:
        log.debug("rejected token: %s", type(e).__name__)
        return None
    try:
        return Actor(user_id=int(claims["sub"]), role=str(claims["role"]))
    except ValueError:
        # signed with our key but carrying a non-numeric subject
        return None


def authenticate(db: Session, email: str, password: str) -> User:
    if not email or not password:
        raise AuthException("Please provide email and password")
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        log.warning("failed login for %s", email)
        raise Unauthorized("Invalid credentials")
    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    full_name: str,
    role: str = "sales",
    permissions=None,
) -> User:
    if role not in ROLES:
        raise AuthException(f"Unknown role: {role}")
    user = User(
        username=username.strip(),
        email=email.strip().lower(),
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
        permissions=list(permissions or []),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
