"""
Password hashing (passlib bcrypt).
"""

import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """True when plain_password matches the stored bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def generate_password(length: int = 16) -> str:
    """Random initial password for publisher accounts created without one."""
    return secrets.token_urlsafe(length)[:length]
