# pagecms/api/endpoints/pages.py
# Section Registry sobre HTTP: /pages, /pages/{slug}, /pages/{slug}/sections/...
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pagecms.db.session import get_db
from pagecms.deps.audit import get_audit_sink
from pagecms.deps.auth import get_optional_caller, require_admin
from pagecms.schemas.common import envelope
from pagecms.schemas.content import SectionCreate, SectionDuplicate, SectionUpdate, serialize_item
from pagecms.services import section_service as svc
from pagecms.services.audit_service import AuditSink
from pagecms.services.authz import Caller
from pagecms.services.content_service import page_lookup_key

router = APIRouter()


@router.get("")
def get_pages(db: Session = Depends(get_db)):
    pages = svc.get_pages(db)
    return envelope(pages, count=len(pages))


@router.get("/{slug}")
def get_page_sections(
    slug: str,
    include_inactive: bool = Query(False, alias="includeInactive"),
    lang: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    sections = svc.get_page_sections(db, slug, caller=caller, include_inactive=include_inactive)
    return envelope({"page": page_lookup_key(slug), "sections": [serialize_item(s, lang) for s in sections]})


@router.post("/{slug}/sections", status_code=status.HTTP_201_CREATED)
def create_page_section(
    slug: str,
    body: SectionCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    item = svc.create_page_section(db, slug, body, caller=caller, audit=audit)
    return envelope(serialize_item(item))


@router.patch("/{slug}/sections/{section_key}")
def update_page_section(
    slug: str,
    section_key: str,
    body: SectionUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    item = svc.update_page_section(db, slug, section_key, body, caller=caller, audit=audit)
    return envelope(serialize_item(item))


@router.delete("/{slug}/sections/{section_key}")
def delete_page_section(
    slug: str,
    section_key: str,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    svc.delete_page_section(db, slug, section_key, caller=caller, audit=audit)
    return envelope({})


@router.post("/{slug}/sections/{section_key}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_page_section(
    slug: str,
    section_key: str,
    body: SectionDuplicate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
    audit: AuditSink = Depends(get_audit_sink),
):
    item = svc.duplicate_page_section(db, slug, section_key, body, caller=caller, audit=audit)
    return envelope(serialize_item(item))
