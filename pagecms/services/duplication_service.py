# pagecms/services/duplication_service.py
# Clonado de bloques de contenido: nueva identidad + estado de publicación reiniciado
from __future__ import annotations

import copy
from typing import Any, Dict, Optional

from sqlalchemy import inspect as sa_inspect, select
from sqlalchemy.orm import Session

from pagecms.models.content import ContentItem

COPY_SUFFIX = " (Copy)"
SECTION_KEY_MAX = 100

# Identidad, auditoría y aprobación nunca viajan a la copia
_STRIPPED = {
    "id",
    "created_at",
    "updated_at",
    "created_by_id",
    "updated_by_id",
    "approved_by_id",
    "approved_at",
}


def _with_copy_suffix(title: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    out = dict(title or {})
    for lang in ("en", "ta"):
        if out.get(lang):
            out[lang] = f"{out[lang]}{COPY_SUFFIX}"
    out.setdefault("en", "")
    out.setdefault("ta", None)
    return out


def clone_content_data(item: ContentItem) -> Dict[str, Any]:
    """
    Copia profunda de las columnas de `item` lista para construir un ContentItem nuevo.
    La copia queda inactiva, oculta, sin fecha de publicación y en version 1;
    los títulos (en/ta) reciben el sufijo " (Copy)".
    """
    data: Dict[str, Any] = {}
    for attr in sa_inspect(ContentItem).column_attrs:
        if attr.key in _STRIPPED:
            continue
        data[attr.key] = copy.deepcopy(getattr(item, attr.key))

    data["is_active"] = False
    data["is_visible"] = False
    data["publish_date"] = None
    data["version"] = 1
    data["title"] = _with_copy_suffix(item.title)
    return data


def section_key_exists(db: Session, page: str, section_key: str) -> bool:
    return (
        db.scalar(
            select(ContentItem.id).where(
                ContentItem.page == page, ContentItem.section_key == section_key
            )
        )
        is not None
    )


def unique_copy_key(db: Session, page: str, section_key: str) -> str:
    """hero → hero-copy → hero-copy-2 → ... (primer hueco libre en la página)."""
    base = f"{section_key}-copy"
    candidate = base[:SECTION_KEY_MAX]
    n = 2
    while section_key_exists(db, page, candidate):
        suffix = f"-{n}"
        candidate = base[: SECTION_KEY_MAX - len(suffix)] + suffix
        n += 1
    return candidate
