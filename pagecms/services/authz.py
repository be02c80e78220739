# pagecms/services/authz.py
# ── Identidad resuelta del caller y verificación de rol
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pagecms.core.settings import settings
from pagecms.models.auth import User


@dataclass(frozen=True)
class Caller:
    id: int
    name: str
    email: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(id=int(user.id), name=user.name, email=user.email, role=user.role)


def is_admin(caller: Optional[Caller]) -> bool:
    """
    Retorna True si el caller tiene el rol de administración configurado.
    Un caller anónimo (None) nunca es admin.
    """
    return caller is not None and caller.role == settings.ADMIN_ROLE
