# pagecms/services/audit_service.py
# Audit Logger: puerto de emisión de eventos + sink SQL best-effort + consultas
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Union

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pagecms.core.errors import NotFoundError
from pagecms.core.settings import settings
from pagecms.models.audit import AuditAction, AuditLogEntry, AuditTargetType
from pagecms.services.authz import Caller, is_admin

logger = logging.getLogger(__name__)

DESCRIPTION_MAX = 500


def compute_changed_keys(before: Dict[str, Any] | None, after: Dict[str, Any] | None) -> List[str]:
    """
    Devuelve las claves cuyo valor cambió entre before y after (comparación superficial).
    Si alguna es None, se trata como {} para evitar errores.
    """
    b = before or {}
    a = after or {}
    keys = set(b.keys()) | set(a.keys())
    changed = [k for k in keys if b.get(k) != a.get(k)]
    changed.sort()
    return changed


@dataclass
class AuditEvent:
    caller: Caller
    action: Union[AuditAction, str]
    target_type: Union[AuditTargetType, str]
    page: str
    description: str
    target_id: Optional[int] = None
    section_key: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None:
        ...


def _extract_client(request: Optional[Request]) -> tuple[Optional[str], Optional[str]]:
    if not request:
        return None, None
    ip = request.client.host if request.client else None
    ua = request.headers.get("user-agent")
    return ip, ua


class SqlAuditSink:
    """
    Persiste eventos en `activity_logs`. Se invoca DESPUÉS del commit de la
    mutación principal: si la escritura falla se hace rollback sólo del log
    y se registra en el logger local; el error nunca sube al caller.
    """

    def __init__(self, db: Session, *, ip: Optional[str] = None, user_agent: Optional[str] = None) -> None:
        self.db = db
        self.ip = ip
        self.user_agent = user_agent

    @classmethod
    def for_request(cls, db: Session, request: Optional[Request]) -> "SqlAuditSink":
        ip, ua = _extract_client(request)
        return cls(db, ip=ip, user_agent=ua)

    def record(self, event: AuditEvent) -> None:
        try:
            entry = AuditLogEntry(
                admin_id=event.caller.id,
                admin_name=event.caller.name,
                action=AuditAction(event.action),
                target_type=AuditTargetType(event.target_type),
                target_id=event.target_id,
                page=event.page,
                section_key=event.section_key,
                description=event.description[:DESCRIPTION_MAX],
                details=dict(event.details or {}),
                ip_address=self.ip,
                user_agent=(self.user_agent or "")[:512] or None,
            )
            self.db.add(entry)
            self.db.commit()
        except Exception:
            # Nunca bloquear la mutación auditada
            self.db.rollback()
            logger.exception(
                "Failed to log activity: %s %s on page '%s'",
                getattr(event.action, "value", event.action),
                getattr(event.target_type, "value", event.target_type),
                event.page,
            )


class NullAuditSink:
    def record(self, event: AuditEvent) -> None:
        logger.debug("Audit disabled; dropping event %s", event.action)


def build_audit_sink(db: Session, request: Optional[Request] = None) -> AuditSink:
    if not settings.AUDIT_ENABLED:
        return NullAuditSink()
    return SqlAuditSink.for_request(db, request)


# -----------------------------
# Consultas
# -----------------------------
def _clamp_limit(limit: Optional[int]) -> int:
    if limit is None or limit <= 0:
        return settings.ACTIVITY_DEFAULT_LIMIT
    return min(int(limit), settings.ACTIVITY_MAX_LIMIT)


def serialize_entry(entry: AuditLogEntry) -> Dict[str, Any]:
    admin = entry.admin
    return {
        "id": entry.id,
        "adminId": (
            {"id": admin.id, "name": admin.name, "email": admin.email} if admin else entry.admin_id
        ),
        "adminName": entry.admin_name,
        "action": entry.action.value if isinstance(entry.action, AuditAction) else entry.action,
        "targetType": (
            entry.target_type.value if isinstance(entry.target_type, AuditTargetType) else entry.target_type
        ),
        "targetId": entry.target_id,
        "page": entry.page,
        "sectionKey": entry.section_key,
        "description": entry.description,
        "details": entry.details or {},
        "ipAddress": entry.ip_address,
        "userAgent": entry.user_agent,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None,
    }


def query_activity(
    db: Session,
    *,
    caller: Optional[Caller],
    page: Optional[str] = None,
    action: Optional[str] = None,
    admin_id: Optional[int] = None,
    target_type: Optional[str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Dict[str, Any]:
    """
    Admins: resultados completos paginados (más recientes primero).
    No admins: lista vacía con el mismo envelope (sin error).
    """
    limit = _clamp_limit(limit)
    offset = max(int(offset or 0), 0)

    if not is_admin(caller):
        return {
            "activities": [],
            "pagination": {"total": 0, "limit": limit, "offset": offset, "hasMore": False},
        }

    stmt = select(AuditLogEntry)
    if page and page != "all":
        stmt = stmt.where(AuditLogEntry.page == page)
    if action:
        stmt = stmt.where(AuditLogEntry.action == AuditAction(action))
    if admin_id is not None:
        stmt = stmt.where(AuditLogEntry.admin_id == admin_id)
    if target_type:
        stmt = stmt.where(AuditLogEntry.target_type == AuditTargetType(target_type))

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    rows = db.scalars(
        stmt.order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id.desc()).limit(limit).offset(offset)
    ).unique().all()

    return {
        "activities": [serialize_entry(r) for r in rows],
        "pagination": {
            "total": int(total),
            "limit": limit,
            "offset": offset,
            "hasMore": (offset + limit) < int(total),
        },
    }


def delete_activity(db: Session, *, entry_id: int) -> None:
    entry = db.get(AuditLogEntry, entry_id)
    if not entry:
        raise NotFoundError("Activity", entry_id)
    db.delete(entry)
    db.commit()
