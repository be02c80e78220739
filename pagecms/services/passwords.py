# pagecms/services/passwords.py
from __future__ import annotations

from passlib.context import CryptContext

_pwd = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
)

def hash_password(plain: str) -> str:
    """Hash a plaintext password."""
    return _pwd.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    """Verify a plaintext password against a stored bcrypt hash."""
    if not hashed:
        return False
    return _pwd.verify(plain, hashed)
