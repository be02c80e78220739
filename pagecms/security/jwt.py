# pagecms/security/jwt.py
from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import jwt, JWTError
from pagecms.core.settings import settings

ALGO   = settings.JWT_ALGORITHM or "HS256"
SECRET = settings.JWT_SECRET_KEY or "dev-secret"
ACCESS_MIN = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _exp_ts(minutes: int) -> int:
    # exp como entero UNIX (segundos), más compatible
    return int((_utcnow() + timedelta(minutes=minutes)).timestamp())

def _iat_ts() -> int:
    return int(_utcnow().timestamp())

def create_access_token(subject: int | str, extra: Dict[str, Any] | None = None, minutes: int | None = None) -> str:
    payload: Dict[str, Any] = {
        "sub": str(subject),
        "type": "access",
        "iat": _iat_ts(),
        "exp": _exp_ts(ACCESS_MIN if minutes is None else minutes),
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, SECRET, algorithm=ALGO)

def decode_token(token: str) -> Dict[str, Any]:
    # quitamos aud/iss porque no los firmamos; JWTError sube al caller (→ 401)
    return jwt.decode(
        token,
        SECRET,
        algorithms=[ALGO],
        options={"verify_aud": False, "verify_iss": False},
    )

__all__ = ["create_access_token", "decode_token", "JWTError"]
