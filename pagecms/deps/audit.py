# pagecms/deps/audit.py
from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from pagecms.db.session import get_db
from pagecms.services.audit_service import AuditSink, build_audit_sink


def get_audit_sink(request: Request, db: Session = Depends(get_db)) -> AuditSink:
    """Sink por request: comparte la sesión y captura ip / user-agent del cliente."""
    return build_audit_sink(db, request)
