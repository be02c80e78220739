# pagecms/services/ordering_service.py
# Orden por página: siguiente `order` libre + reordenamiento en lote (una sola transacción)
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pagecms.core.errors import NotFoundError
from pagecms.models.audit import AuditAction, AuditTargetType
from pagecms.models.content import ContentItem
from pagecms.schemas.content import ReorderItem
from pagecms.services.audit_service import AuditEvent, AuditSink
from pagecms.services.authz import Caller

logger = logging.getLogger(__name__)


def max_order(db: Session, page: str) -> int:
    return db.scalar(select(func.max(ContentItem.order)).where(ContentItem.page == page)) or 0


def next_order(db: Session, page: str) -> int:
    return max_order(db, page) + 1


def reorder_content(
    db: Session,
    *,
    items: Sequence[ReorderItem],
    caller: Caller,
    audit: AuditSink,
) -> List[ContentItem]:
    """
    Aplica pares {id, order} en un único commit.
    Todos los ids se resuelven ANTES de escribir: si falta alguno → 404 y nada cambia.
    Los documentos no listados no se tocan.
    """
    ids = [i.id for i in items]
    rows = db.scalars(select(ContentItem).where(ContentItem.id.in_(ids))).unique().all()
    by_id: Dict[int, ContentItem] = {r.id: r for r in rows}

    missing = [i for i in ids if i not in by_id]
    if missing:
        raise NotFoundError("Content", missing[0])

    per_page: Dict[str, list] = defaultdict(list)
    for it in items:
        row = by_id[it.id]
        per_page[row.page].append({"id": row.id, "sectionKey": row.section_key, "from": row.order, "to": it.order})
        if row.order != it.order:
            row.order = it.order
            row.version = (row.version or 1) + 1
            row.updated_by_id = caller.id

    db.commit()
    logger.info("Reordered %d content items across %d page(s)", len(items), len(per_page))

    for page, moves in per_page.items():
        audit.record(
            AuditEvent(
                caller=caller,
                action=AuditAction.REORDER,
                target_type=AuditTargetType.PAGE,
                page=page,
                description=f"Reordered {len(moves)} content item(s) on page '{page}'",
                details={"items": moves},
            )
        )

    return [by_id[i] for i in ids]
