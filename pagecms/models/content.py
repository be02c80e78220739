# pagecms/models/content.py
# Modelo de contenido bilingüe: un bloque (section) dentro de una página
from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy import (
    String, Integer, Boolean, DateTime, ForeignKey, Enum as SAEnum, UniqueConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pagecms.db.base import Base, JSONType
from pagecms.models.auth import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SectionType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    FEATURE_LIST = "feature-list"
    HERO = "hero"
    BANNER = "banner"
    CARDS = "cards"
    CTA = "cta"
    GALLERY = "gallery"
    FORM = "form"
    STATISTICS = "statistics"
    ANNOUNCEMENTS = "announcements"
    NAVIGATION = "navigation"
    FOOTER = "footer"


class Layout(str, Enum):
    FULL_WIDTH = "full-width"
    TWO_COLUMN = "two-column"
    THREE_COLUMN = "three-column"
    GRID = "grid"
    FLEX = "flex"
    CUSTOM = "custom"


class StylePreset(str, Enum):
    DEFAULT = "default"
    MODERN = "modern"
    CLASSIC = "classic"
    MINIMAL = "minimal"
    BOLD = "bold"
    ELEGANT = "elegant"


def _values(enum_cls):
    return [e.value for e in enum_cls]


class ContentItem(Base):
    __tablename__ = "website_content"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    page: Mapped[str] = mapped_column(String(64), index=True)
    section: Mapped[str] = mapped_column(String(100))
    section_key: Mapped[str] = mapped_column(String(100))
    section_type: Mapped[SectionType] = mapped_column(
        SAEnum(SectionType, name="section_type", native_enum=False, values_callable=_values),
        default=SectionType.TEXT,
    )
    layout: Mapped[Layout] = mapped_column(
        SAEnum(Layout, name="section_layout", native_enum=False, values_callable=_values),
        default=Layout.FULL_WIDTH,
    )

    # position = ubicación gruesa; order = desempate fino dentro de la página
    position: Mapped[int] = mapped_column(Integer, default=0)
    order: Mapped[int] = mapped_column("order", Integer, default=0, nullable=False)

    # Campos bilingües {"en": str, "ta": str | null}
    title: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    content: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    subtitle: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    button_text: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    seo_title: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    seo_description: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    seo_keywords: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    button_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    images: Mapped[list[Any]] = mapped_column(JSONType, default=list)
    style_preset: Mapped[StylePreset] = mapped_column(
        SAEnum(StylePreset, name="style_preset", native_enum=False, values_callable=_values),
        default=StylePreset.DEFAULT,
    )
    custom_styles: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    # "metadata" está reservado por Declarative; la columna conserva el nombre
    extra_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSONType, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False)
    has_tamil_translation: Mapped[bool] = mapped_column(Boolean, default=False)

    publish_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expiration_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, default=1)

    created_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    created_by: Mapped[Optional[User]] = relationship("User", foreign_keys=[created_by_id], lazy="joined")
    updated_by: Mapped[Optional[User]] = relationship("User", foreign_keys=[updated_by_id], lazy="joined")
    approved_by: Mapped[Optional[User]] = relationship("User", foreign_keys=[approved_by_id], lazy="joined")

    __table_args__ = (
        UniqueConstraint("page", "section_key", name="uq_website_content_page_section_key"),
        Index("ix_website_content_page_section", "page", "section"),
        Index("ix_website_content_page_order", "page", "order"),
        Index("ix_website_content_active_visible", "is_active", "is_visible"),
    )
