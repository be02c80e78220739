# pagecms/services/section_service.py
# Section Registry: vista por página con unicidad estricta (page, sectionKey) y orden por página
from __future__ import annotations

import copy
import logging
from datetime import datetime
from itertools import groupby
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from pagecms.core.errors import ConflictError, SectionNotFoundError
from pagecms.models.audit import AuditAction, AuditTargetType
from pagecms.models.content import ContentItem
from pagecms.schemas.content import (
    PageSummary, SectionCreate, SectionDuplicate, SectionSummary, SectionUpdate,
)
from pagecms.services.audit_service import AuditEvent, AuditSink
from pagecms.services.authz import Caller, is_admin
from pagecms.services.content_service import (
    apply_changes, changed_field_names, check_version, clean_page, commit_or_conflict,
    empty_bilingual, find_by_section_key, page_lookup_key, refresh_derived, snapshot,
)
from pagecms.services.duplication_service import clone_content_data
from pagecms.services.ordering_service import next_order
from pagecms.services.publish_service import utcnow, visibility_clause

logger = logging.getLogger(__name__)


def _conflict(page: str, section_key: str) -> ConflictError:
    return ConflictError(f"Section with key '{section_key}' already exists on page '{page}'")


def _registry_order(stmt):
    return stmt.order_by(
        ContentItem.position.asc(), ContentItem.order.asc(), ContentItem.created_at.asc(), ContentItem.id.asc()
    )


def get_section(db: Session, page: str, section_key: str) -> ContentItem:
    item = find_by_section_key(db, page, section_key)
    if not item:
        raise SectionNotFoundError(page, section_key)
    return item


def _record(audit: AuditSink, caller: Caller, action: AuditAction, item: ContentItem, description: str, details: Dict[str, Any]) -> None:
    audit.record(
        AuditEvent(
            caller=caller,
            action=action,
            target_type=AuditTargetType.SECTION,
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
def get_page_sections(
    db: Session,
    page: str,
    *,
    caller: Optional[Caller] = None,
    include_inactive: bool = False,
    now: Optional[datetime] = None,
) -> List[ContentItem]:
    """
    Por defecto sólo lo públicamente visible (activo + visible + ventana).
    `include_inactive` sólo lo honra un admin (edición).
    """
    stmt = select(ContentItem).where(ContentItem.page == page_lookup_key(page))
    if not (include_inactive and is_admin(caller)):
        stmt = stmt.where(visibility_clause(now or utcnow()))
    return list(db.scalars(_registry_order(stmt)).unique().all())


def get_pages(db: Session) -> List[Dict[str, Any]]:
    rows = db.scalars(
        select(ContentItem).order_by(
            ContentItem.page.asc(),
            ContentItem.position.asc(),
            ContentItem.order.asc(),
            ContentItem.created_at.asc(),
            ContentItem.id.asc(),
        )
    ).unique().all()

    pages: List[Dict[str, Any]] = []
    for page, items in groupby(rows, key=lambda r: r.page):
        sections = [
            SectionSummary(
                section_key=i.section_key,
                section=i.section,
                title=i.title,
                order=i.order,
                position=i.position,
                section_type=i.section_type,
                layout=i.layout,
                is_active=i.is_active,
                is_visible=i.is_visible,
            )
            for i in items
        ]
        summary = PageSummary(
            page=page,
            sections=sections,
            total_sections=len(sections),
            active_sections=sum(1 for s in sections if s.is_active),
        )
        pages.append(summary.model_dump(by_alias=True, mode="json"))
    return pages


# -----------------------------
# Mutaciones (admin)
# -----------------------------
def create_page_section(
    db: Session,
    page: str,
    payload: SectionCreate,
    *,
    caller: Caller,
    audit: AuditSink,
) -> ContentItem:
    """Sin upsert: si (page, sectionKey) existe → 400 y el original no se toca."""
    page = clean_page(page)
    changes = payload.changes()
    section_key = changes.pop("section_key")

    if find_by_section_key(db, page, section_key):
        raise _conflict(page, section_key)

    item = ContentItem(
        page=page,
        section=changes.pop("section", None) or section_key,
        section_key=section_key,
        title=empty_bilingual("title"),
        content=empty_bilingual("content"),
        order=next_order(db, page),
        created_by_id=caller.id,
        updated_by_id=caller.id,
    )
    apply_changes(item, changes)
    db.add(item)
    commit_or_conflict(db)
    logger.info("Created section %s/%s (id=%s, order=%s)", page, section_key, item.id, item.order)

    _record(
        audit, caller, AuditAction.CREATE, item,
        f"Created section '{section_key}' on page '{page}'",
        {"sectionType": item.section_type.value, "hasTamilTranslation": item.has_tamil_translation},
    )
    return item


def update_page_section(
    db: Session,
    page: str,
    section_key: str,
    payload: SectionUpdate,
    *,
    caller: Caller,
    audit: AuditSink,
) -> ContentItem:
    page = page_lookup_key(page)
    item = get_section(db, page, section_key)
    check_version(item, payload.version)

    changes = payload.changes()
    before = snapshot(item, changes.keys())
    apply_changes(item, changes)
    item.updated_by_id = caller.id
    item.version = (item.version or 1) + 1
    commit_or_conflict(db)

    _record(
        audit, caller, AuditAction.EDIT, item,
        f"Updated section '{section_key}' on page '{page}'",
        {"updatedFields": changed_field_names(before, snapshot(item, changes.keys()))},
    )
    return item


def delete_page_section(
    db: Session,
    page: str,
    section_key: str,
    *,
    caller: Caller,
    audit: AuditSink,
) -> None:
    page = page_lookup_key(page)
    item = get_section(db, page, section_key)
    event = AuditEvent(
        caller=caller,
        action=AuditAction.DELETE,
        target_type=AuditTargetType.SECTION,
        target_id=item.id,
        page=page,
        section_key=section_key,
        description=f"Deleted section '{section_key}' from page '{page}'",
        details={"deletedTitle": copy.deepcopy(item.title)},
    )
    db.delete(item)
    db.commit()
    audit.record(event)


def duplicate_page_section(
    db: Session,
    page: str,
    section_key: str,
    payload: SectionDuplicate,
    *,
    caller: Caller,
    audit: AuditSink,
) -> ContentItem:
    page = page_lookup_key(page)
    source = get_section(db, page, section_key)
    target_page = payload.target_page or page
    new_key = payload.new_section_key.strip()

    # Lectura-luego-escritura: la carrera la resuelve la restricción única en el commit
    if find_by_section_key(db, target_page, new_key):
        raise _conflict(target_page, new_key)

    data = clone_content_data(source)
    data.update(
        page=target_page,
        section_key=new_key,
        order=next_order(db, target_page),
        created_by_id=caller.id,
        updated_by_id=caller.id,
    )
    if payload.position is not None:
        data["position"] = payload.position

    item = ContentItem(**data)
    refresh_derived(item)
    db.add(item)
    commit_or_conflict(db)

    _record(
        audit, caller, AuditAction.DUPLICATE, item,
        f"Duplicated section '{section_key}' from page '{page}' to '{target_page}' as '{new_key}'",
        {"sourcePage": page, "sourceSectionKey": section_key, "sourceId": source.id},
    )
    return item
