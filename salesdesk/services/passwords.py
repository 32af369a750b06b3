from __future__ import annotations

import bcrypt

from salesdesk.core import config

BCRYPT_MAX_BYTES = 72


def _normalize_password_for_bcrypt(password: str) -> bytes:
    """
    bcrypt only looks at the first 72 bytes; longer input is truncated so
    newer bcrypt releases do not reject it.
    """
    pw = (password or "").encode("utf-8")
    if len(pw) <= BCRYPT_MAX_BYTES:
        return pw
    return pw[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    pw = _normalize_password_for_bcrypt(password)
    salt = bcrypt.gensalt(rounds=rounds or config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw, salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    # Raises ValueError when the stored value is not a bcrypt hash.
    return bcrypt.checkpw(_normalize_password_for_bcrypt(plain_password), password_hash.encode("utf-8"))


def password_looks_hashed(value: str) -> bool:
    return value.startswith(("$2a$", "$2b$", "$2y$"))
