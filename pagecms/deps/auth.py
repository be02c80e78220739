# pagecms/deps/auth.py
from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from pagecms.db.session import get_db
from pagecms.models.auth import User
from pagecms.security.jwt import decode_token
from pagecms.services.authz import Caller, is_admin

# Reusable HTTP bearer scheme (non-fatal if header is missing)
_bearer = HTTPBearer(auto_error=False)


# -----------------------------
# Helpers
# -----------------------------
def _load_user_from_sub(db: Session, sub: str | int | None) -> Optional[User]:
    try:
        uid = int(sub)
    except (TypeError, ValueError):
        return None
    user = db.get(User, uid)
    if not user or not getattr(user, "is_active", True):
        return None
    return user


def _decode_and_get_caller(db: Session, token: str) -> Caller:
    try:
        payload = decode_token(token)
    except ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = _load_user_from_sub(db, payload.get("sub"))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return Caller.from_user(user)


# -----------------------------
# Public dependencies
# -----------------------------
def get_current_caller(
    db: Session = Depends(get_db),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Caller:
    if not creds or not creds.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized to access this route")
    return _decode_and_get_caller(db, creds.credentials)


def get_optional_caller(
    db: Session = Depends(get_db),
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Optional[Caller]:
    if not creds or not creds.credentials:
        return None
    try:
        return _decode_and_get_caller(db, creds.credentials)
    except HTTPException:
        # Treat bad token as anonymous when optional
        return None


def require_admin(caller: Caller = Depends(get_current_caller)) -> Caller:
    """
    Usage:
        def endpoint(caller: Caller = Depends(require_admin)): ...
    """
    if not is_admin(caller):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"User role {caller.role} is not authorized to access this route",
        )
    return caller
