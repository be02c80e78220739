# =============================================================================
# Content Endpoints (lectura pública con proyección de idioma + mutaciones admin)
# pagecms/api/endpoints/content.py
# =============================================================================
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pagecms.db.session import get_db
from pagecms.deps.audit import get_audit_sink
from pagecms.deps.auth import get_optional_caller, require_admin
from pagecms.schemas.common import envelope
from pagecms.schemas.content import ContentCreate, ContentUpdate, ReorderRequest, serialize_item
from pagecms.services import content_service as svc
from pagecms.services.audit_service import AuditSink
from pagecms.services.authz import Caller
from pagecms.services.ordering_service import reorder_content

router = APIRouter()


def _many(items, lang: Optional[str] = None) -> dict:
    data = [serialize_item(i, lang) for i in items]
    return envelope(data, count=len(data))


# -----------------------------
# Lecturas
# -----------------------------
@router.get("")
def get_content(
    page: Optional[str] = Query(None),
    section: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    visible: Optional[bool] = Query(None),
    lang: Optional[str] = Query(None, description="en | ta — colapsa campos bilingües"),
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    items = svc.list_content(db, caller=caller, page=page, section=section, active=active, visible=visible)
    return _many(items, lang)


@router.get("/pages")
def get_content_pages(db: Session = Depends(get_db)):
    pages = svc.list_pages_distinct(db)
    return envelope(pages)


@router.get("/pages/{page}/sections")
def get_content_sections(page: str, db: Session = Depends(get_db)):
    return envelope(svc.list_sections_distinct(db, page))


@router.get("/admin/stats")
def get_content_stats(
    db: Session = Depends(get_db),
    _: Caller = Depends(require_admin),
):
    return envelope(svc.content_stats(db))


@router.get("/item/{item_id}")
def get_content_item(
    item_id: int,
    lang: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: Caller = Depends(require_admin),
):
    return envelope(serialize_item(svc.get_content_item(db, item_id), lang))


# -----------------------------
# Mutaciones (admin)
# -----------------------------
@router.put("/reorder")
def reorder(
    body: ReorderRequest,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    items = reorder_content(db, items=body.items, caller=caller, audit=audit)
    return _many(items)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_content(
    body: ContentCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    # 201 tanto si crea como si actualiza (upsert por page+section)
    item, _created = svc.create_or_update_content(db, body, caller=caller, audit=audit)
    return envelope(serialize_item(item))


@router.post("/page/{page_type}", status_code=status.HTTP_201_CREATED)
def create_page_content(
    page_type: str,
    body: ContentCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    item, _created = svc.create_or_update_content(db, body, caller=caller, audit=audit, page=page_type)
    return envelope(serialize_item(item))


@router.put("/{item_id}")
def update_content(
    item_id: int,
    body: ContentUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    item = svc.update_content(db, item_id, body, caller=caller, audit=audit)
    return envelope(serialize_item(item))


@router.delete("/{item_id}")
def delete_content(
    item_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    svc.delete_content(db, item_id, caller=caller, audit=audit)
    return envelope({})


@router.put("/{item_id}/approve")
def approve_content(
    item_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    item = svc.approve_content(db, item_id, caller=caller, audit=audit)
    return envelope(serialize_item(item))


@router.post("/{item_id}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_content(
    item_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    item = svc.duplicate_content(db, item_id, caller=caller, audit=audit)
    return envelope(serialize_item(item))


# Va al final: /{page}/{section} captura cualquier par de segmentos
@router.get("/{page}/{section}")
def get_content_by_page_section(
    page: str,
    section: str,
    lang: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    items = svc.list_page_section_content(db, page=page, section=section)
    return _many(items, lang)
