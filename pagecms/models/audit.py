# pagecms/models/audit.py
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any

from sqlalchemy import (
    Integer, String, Enum as SAEnum, DateTime, ForeignKey, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pagecms.db.base import Base, JSONType
from pagecms.models.auth import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditAction(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    DUPLICATE = "duplicate"
    REORDER = "reorder"
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"
    VIEW = "view"


class AuditTargetType(str, Enum):
    CONTENT = "content"
    SECTION = "section"
    PAGE = "page"
    MEDIA = "media"


class AuditLogEntry(Base):
    """
    Registro append-only de mutaciones de administración.
    target_id NO tiene FK: la entrada puede sobrevivir al contenido que describe.
    """
    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    admin_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    admin_name: Mapped[str] = mapped_column(String(160))

    action: Mapped[AuditAction] = mapped_column(
        SAEnum(
            AuditAction,
            name="audit_action",
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
    )
    target_type: Mapped[AuditTargetType] = mapped_column(
        SAEnum(
            AuditTargetType,
            name="audit_target_type",
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
    )
    target_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    page: Mapped[str] = mapped_column(String(64))
    section_key: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[str] = mapped_column(String(500))

    # Detalles libres del evento (nombres de campos cambiados, origen de un duplicado, etc.)
    details: Mapped[Dict[str, Any]] = mapped_column(JSONType, default=dict)

    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    admin: Mapped[Optional[User]] = relationship("User", lazy="joined")

    __table_args__ = (
        Index("ix_activity_logs_page_created", "page", "created_at"),
        Index("ix_activity_logs_admin_created", "admin_id", "created_at"),
        Index("ix_activity_logs_action_created", "action", "created_at"),
    )
