from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from salesdesk.core import config
from salesdesk.core.errors import AppError, AuthError, ConflictError
from salesdesk.services import queries
from salesdesk.services.passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

USERNAME_NOT_FOUND = "Username not found"
INVALID_PASSWORD = "Invalid password"


@dataclass
class LoginResult:
    authenticated: bool
    message: str

    def to_response(self) -> Dict[str, Any]:
        return {"auth": self.authenticated, "msg": self.message}


# =========================
# JWT
# =========================
def create_access_token(username: str, expires_minutes: Optional[int] = None) -> str:
    now = datetime.now(timezone.utc)
    if expires_minutes is None:
        expires_minutes = config.JWT_EXPIRE_MINUTES
    exp = now + timedelta(minutes=expires_minutes)
    payload: Dict[str, Any] = {
        "sub": str(username),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """Returns the username carried by the token or raises AuthError."""
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except JWTError as exc:
        raise AuthError("Invalid or expired token") from exc

    username = payload.get("sub")
    if not isinstance(username, str) or not username:
        raise AuthError("Invalid token subject")
    return username


# =========================
# REGISTER / LOGIN
# =========================
def normalize_username(username: str) -> str:
    return (username or "").strip()


def register(
    db: Session,
    *,
    username: str,
    firstname: str,
    lastname: str,
    email: str,
    password: str,
) -> int:
    username = normalize_username(username)
    if queries.select_user_by_username(db, username) is not None:
        raise ConflictError("Username already taken")

    user = queries.insert_user(
        db,
        username=username,
        firstname=firstname,
        lastname=lastname,
        email=email,
        password_hash=hash_password(password),
    )
    logger.info("user registered id=%s username=%s", user.id, user.username)
    return user.id


def login(db: Session, *, username: str, password: str) -> LoginResult:
    username = normalize_username(username)
    user = queries.select_user_by_username(db, username)
    if user is None:
        logger.info("login rejected: unknown username")
        return LoginResult(False, USERNAME_NOT_FOUND)

    try:
        matches = verify_password(password, user.password_hash)
    except ValueError as exc:
        logger.error("login failed: stored hash unreadable user_id=%s", user.id)
        raise AppError("Internal server error") from exc

    if not matches:
        logger.info("login rejected: bad password user_id=%s", user.id)
        return LoginResult(False, INVALID_PASSWORD)

    return LoginResult(True, create_access_token(user.username))
