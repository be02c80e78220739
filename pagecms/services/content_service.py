# pagecms/services/content_service.py
# Content Store: CRUD de bloques bilingües + upsert por (page, section) + estadísticas
from __future__ import annotations

import copy
import logging
from datetime import datetime
from itertools import groupby
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic.alias_generators import to_camel
from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pagecms.core.errors import ConflictError, NotFoundError, ValidationError
from pagecms.models.audit import AuditAction, AuditTargetType
from pagecms.models.content import ContentItem
from pagecms.schemas.content import ContentCreate, ContentUpdate, clean_slug
from pagecms.services.audit_service import AuditEvent, AuditSink, compute_changed_keys
from pagecms.services.authz import Caller, is_admin
from pagecms.services.duplication_service import clone_content_data, unique_copy_key
from pagecms.services.language_service import has_tamil_translation, merge_bilingual
from pagecms.services.publish_service import (
    publication_window_clause, to_utc, utcnow, visibility_clause,
)

logger = logging.getLogger(__name__)

# columna → clave bilingüe en la API
BILINGUAL_COLUMNS = {
    "title": "title",
    "content": "content",
    "subtitle": "subtitle",
    "button_text": "buttonText",
    "seo_title": "seoTitle",
    "seo_description": "seoDescription",
    "seo_keywords": "seoKeywords",
}
LIST_COLUMNS = {"seo_keywords"}
# columnas NOT NULL: un null explícito deja el registro vacío en lugar de None
REQUIRED_BILINGUAL = {"title", "content"}
# columnas escalares NOT NULL: un null explícito en el patch se ignora
NON_NULLABLE = {
    "page", "section", "section_key", "section_type", "layout", "position", "order",
    "images", "style_preset", "is_active", "is_visible", "is_required",
}

DEFAULT_SECTION = "main"


# -----------------------------
# Helpers compartidos (Section Registry también los usa)
# -----------------------------
def clean_page(page: Optional[str]) -> str:
    if not page or not page.strip():
        raise ValidationError("Please provide a page")
    try:
        return clean_slug(page)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def api_field_name(column: str) -> str:
    if column == "extra_metadata":
        return "metadata"
    return BILINGUAL_COLUMNS.get(column) or to_camel(column)


def empty_bilingual(column: str) -> Dict[str, Any]:
    return merge_bilingual(None, {}, is_list=column in LIST_COLUMNS)


def apply_changes(item: ContentItem, changes: Dict[str, Any]) -> None:
    """
    Aplica un patch (claves = columnas). Los campos bilingües se mezclan por idioma;
    siempre se asigna un dict NUEVO para que SQLAlchemy detecte el cambio en JSON.
    """
    for key, value in changes.items():
        if value is None and key in NON_NULLABLE:
            continue
        if key in BILINGUAL_COLUMNS:
            if value is None:
                setattr(item, key, empty_bilingual(key) if key in REQUIRED_BILINGUAL else None)
            else:
                setattr(item, key, merge_bilingual(getattr(item, key), value, is_list=key in LIST_COLUMNS))
        else:
            setattr(item, key, value)
    refresh_derived(item)


def refresh_derived(item: ContentItem, *, check_window: bool = True) -> None:
    values = {api: getattr(item, col) for col, api in BILINGUAL_COLUMNS.items()}
    item.has_tamil_translation = has_tamil_translation(values)
    if not check_window:
        return

    start, end = to_utc(item.publish_date), to_utc(item.expiration_date)
    if start and end and end <= start:
        raise ValidationError("Expiration date must be after publish date")


def snapshot(item: ContentItem, keys: Iterable[str]) -> Dict[str, Any]:
    return {k: copy.deepcopy(getattr(item, k, None)) for k in keys}


def changed_field_names(before: Dict[str, Any], after: Dict[str, Any]) -> List[str]:
    """Sólo NOMBRES de campos (API) — nunca valores."""
    return sorted(api_field_name(k) for k in compute_changed_keys(before, after))


def check_version(item: ContentItem, expected: Optional[int]) -> None:
    if expected is not None and expected != item.version:
        raise ConflictError(
            f"Content {item.id} was modified by someone else (version {item.version}, got {expected})"
        )


def commit_or_conflict(db: Session) -> None:
    """Commit; la restricción única de la base es el árbitro final (page, section_key)."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise ConflictError() from exc


def page_lookup_key(page: Optional[str]) -> str:
    """Lecturas por slug: mismo normalizado que las escrituras, sin validar."""
    return (page or "").strip().lower()


def find_by_section_key(db: Session, page: str, section_key: str) -> Optional[ContentItem]:
    return db.scalar(
        select(ContentItem).where(ContentItem.page == page_lookup_key(page), ContentItem.section_key == section_key)
    )


def _emit(audit: AuditSink, caller: Caller, action: AuditAction, item: ContentItem, description: str, **details) -> None:
    audit.record(
        AuditEvent(
            caller=caller,
            action=action,
            target_type=AuditTargetType.CONTENT,
            target_id=item.id,
            page=item.page,
            section_key=item.section_key,
            description=description,
            details=details,
        )
    )


# -----------------------------
# Lecturas
# -----------------------------
def _ordered(stmt):
    return stmt.order_by(ContentItem.order.asc(), ContentItem.created_at.asc(), ContentItem.id.asc())


def list_content(
    db: Session,
    *,
    caller: Optional[Caller],
    page: Optional[str] = None,
    section: Optional[str] = None,
    active: Optional[bool] = None,
    visible: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> List[ContentItem]:
    """
    Público: siempre activo+visible (los flags pedidos se ignoran).
    Admin: los flags filtran sólo si llegan.
    La ventana de publicación aplica siempre.
    """
    now = now or utcnow()
    stmt = select(ContentItem)
    if page:
        stmt = stmt.where(ContentItem.page == page_lookup_key(page))
    if section:
        stmt = stmt.where(ContentItem.section == section)

    if is_admin(caller):
        if active is not None:
            stmt = stmt.where(ContentItem.is_active == active)
        if visible is not None:
            stmt = stmt.where(ContentItem.is_visible == visible)
        stmt = stmt.where(publication_window_clause(now))
    else:
        stmt = stmt.where(visibility_clause(now))

    return list(db.scalars(_ordered(stmt)).unique().all())


def list_page_section_content(
    db: Session, *, page: str, section: str, now: Optional[datetime] = None
) -> List[ContentItem]:
    stmt = select(ContentItem).where(
        ContentItem.page == page_lookup_key(page),
        ContentItem.section == section,
        visibility_clause(now or utcnow()),
    )
    return list(db.scalars(_ordered(stmt)).unique().all())


def get_content_item(db: Session, item_id: int) -> ContentItem:
    item = db.get(ContentItem, item_id)
    if not item:
        raise NotFoundError("Content", item_id)
    return item


def list_pages_distinct(db: Session) -> List[str]:
    return list(db.scalars(select(ContentItem.page).distinct().order_by(ContentItem.page)).all())


def list_sections_distinct(db: Session, page: str) -> List[str]:
    return list(
        db.scalars(
            select(ContentItem.section)
            .where(ContentItem.page == page_lookup_key(page))
            .distinct()
            .order_by(ContentItem.section)
        ).all()
    )


def content_stats(db: Session, *, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()

    def _count(*where) -> int:
        return int(db.scalar(select(func.count(ContentItem.id)).where(*where)) or 0)

    active_case = func.sum(case((ContentItem.is_active == True, 1), else_=0))  # noqa: E712
    page_rows = db.execute(
        select(ContentItem.page, func.count(ContentItem.id).label("count"), active_case.label("active"))
        .group_by(ContentItem.page)
        .order_by(func.count(ContentItem.id).desc(), ContentItem.page.asc())
    ).all()

    section_rows = db.execute(
        select(ContentItem.page, ContentItem.section, func.count(ContentItem.id))
        .group_by(ContentItem.page, ContentItem.section)
        .order_by(ContentItem.page, ContentItem.section)
    ).all()

    section_stats = [
        {"page": page, "sections": [{"section": s, "count": int(c)} for _, s, c in rows]}
        for page, rows in groupby(section_rows, key=lambda r: r[0])
    ]

    return {
        "totalContent": _count(),
        "activeContent": _count(ContentItem.is_active == True),  # noqa: E712
        "draftContent": _count(ContentItem.is_active == False),  # noqa: E712
        "scheduledContent": _count(ContentItem.publish_date > now),
        "expiredContent": _count(ContentItem.expiration_date <= now),
        "pageStats": [
            {"page": p, "count": int(c), "activeCount": int(a or 0)} for p, c, a in page_rows
        ],
        "sectionStats": section_stats,
    }


# -----------------------------
# Mutaciones (admin)
# -----------------------------
def create_or_update_content(
    db: Session,
    payload: ContentCreate,
    *,
    caller: Caller,
    audit: AuditSink,
    page: Optional[str] = None,
) -> Tuple[ContentItem, bool]:
    """
    Upsert por (page, section): si ya existe un bloque se actualiza en sitio
    (sólo con los campos enviados). Devuelve (item, created).
    """
    page = clean_page(page or payload.page)
    changes = payload.changes()
    changes.pop("page", None)
    section = changes.get("section") or DEFAULT_SECTION
    changes["section"] = section

    existing = db.scalars(
        select(ContentItem)
        .where(ContentItem.page == page, ContentItem.section == section)
        .order_by(ContentItem.created_at.asc(), ContentItem.id.asc())
        .limit(1)
    ).first()

    if existing:
        before = snapshot(existing, changes.keys())
        apply_changes(existing, changes)
        existing.updated_by_id = caller.id
        existing.version = (existing.version or 1) + 1
        commit_or_conflict(db)
        _emit(
            audit, caller, AuditAction.EDIT, existing,
            f"Updated content '{section}' on page '{page}'",
            updatedFields=changed_field_names(before, snapshot(existing, changes.keys())),
        )
        return existing, False

    section_key = changes.pop("section_key", None) or section
    if find_by_section_key(db, page, section_key):
        raise ConflictError(f"Section with key '{section_key}' already exists on page '{page}'")

    item = ContentItem(
        page=page,
        section_key=section_key,
        title={"en": f"{page} Content", "ta": None},
        content=empty_bilingual("content"),
        order=1,
        is_active=True,
        is_visible=True,
        created_by_id=caller.id,
        updated_by_id=caller.id,
    )
    apply_changes(item, changes)
    db.add(item)
    commit_or_conflict(db)
    logger.info("Created content %s for page=%s section=%s", item.id, page, section)

    _emit(audit, caller, AuditAction.CREATE, item, f"Created content '{section}' on page '{page}'")
    return item, True


def update_content(
    db: Session,
    item_id: int,
    payload: ContentUpdate,
    *,
    caller: Caller,
    audit: AuditSink,
) -> ContentItem:
    item = get_content_item(db, item_id)
    check_version(item, payload.version)

    changes = payload.changes()
    if changes.get("page") is not None:
        changes["page"] = clean_page(changes["page"])
    was_active = bool(item.is_active)

    # Activación sin fecha de publicación → se publica ahora
    if changes.get("is_active") is True and "publish_date" not in changes and item.publish_date is None:
        changes["publish_date"] = utcnow()

    before = snapshot(item, changes.keys())
    apply_changes(item, changes)
    item.updated_by_id = caller.id
    item.version = (item.version or 1) + 1
    commit_or_conflict(db)

    if not was_active and item.is_active:
        action = AuditAction.PUBLISH
    elif was_active and not item.is_active:
        action = AuditAction.UNPUBLISH
    else:
        action = AuditAction.EDIT
    _emit(
        audit, caller, action, item,
        f"Updated content '{item.section}' on page '{item.page}'",
        updatedFields=changed_field_names(before, snapshot(item, changes.keys())),
    )
    return item


def delete_content(db: Session, item_id: int, *, caller: Caller, audit: AuditSink) -> None:
    item = get_content_item(db, item_id)
    title = copy.deepcopy(item.title)
    event = AuditEvent(
        caller=caller,
        action=AuditAction.DELETE,
        target_type=AuditTargetType.CONTENT,
        target_id=item.id,
        page=item.page,
        section_key=item.section_key,
        description=f"Deleted content '{item.section}' on page '{item.page}'",
        details={"title": title},
    )
    db.delete(item)
    db.commit()
    audit.record(event)


def approve_content(db: Session, item_id: int, *, caller: Caller, audit: AuditSink) -> ContentItem:
    item = get_content_item(db, item_id)
    now = utcnow()
    item.approved_by_id = caller.id
    item.approved_at = now
    item.is_active = True
    item.publish_date = now
    item.updated_by_id = caller.id
    item.version = (item.version or 1) + 1
    # Aprobar publica ya, aunque la expiración guardada haya pasado
    refresh_derived(item, check_window=False)
    db.commit()

    _emit(audit, caller, AuditAction.PUBLISH, item, f"Approved content '{item.section}' on page '{item.page}'")
    return item


def duplicate_content(db: Session, item_id: int, *, caller: Caller, audit: AuditSink) -> ContentItem:
    source = get_content_item(db, item_id)

    data = clone_content_data(source)
    data["section_key"] = unique_copy_key(db, source.page, source.section_key)
    data["created_by_id"] = caller.id
    data["updated_by_id"] = caller.id

    copy_item = ContentItem(**data)
    refresh_derived(copy_item)
    db.add(copy_item)
    commit_or_conflict(db)

    _emit(
        audit, caller, AuditAction.DUPLICATE, copy_item,
        f"Duplicated content '{source.section_key}' on page '{source.page}'",
        sourceId=source.id,
        sourceSectionKey=source.section_key,
    )
    return copy_item
