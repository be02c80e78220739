# pagecms/api/endpoints/activity.py
# Audit log: admin ve todo (paginado); cualquier otro caller recibe el mismo envelope vacío
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pagecms.db.session import get_db
from pagecms.deps.auth import get_optional_caller, require_admin
from pagecms.models.audit import AuditAction, AuditTargetType
from pagecms.schemas.common import envelope
from pagecms.services.audit_service import delete_activity, query_activity
from pagecms.services.authz import Caller

router = APIRouter()


@router.get("")
def get_activity_log(
    page: Optional[str] = Query(None),
    action: Optional[AuditAction] = Query(None),
    admin_id: Optional[int] = Query(None, alias="adminId"),
    target_type: Optional[AuditTargetType] = Query(None, alias="targetType"),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    caller: Optional[Caller] = Depends(get_optional_caller),
):
    data = query_activity(
        db,
        caller=caller,
        page=page,
        action=action.value if action else None,
        admin_id=admin_id,
        target_type=target_type.value if target_type else None,
        limit=limit,
        offset=offset,
    )
    return envelope(data)


@router.delete("/{entry_id}")
def delete_activity_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    _: Caller = Depends(require_admin),
):
    delete_activity(db, entry_id=entry_id)
    return envelope({})
