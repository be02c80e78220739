# pagecms/services/publish_service.py
# ⟶ Ventana de publicación: predicado puro + su equivalente SQL
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from pagecms.models.content import ContentItem


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Asegura que el datetime sea timezone-aware en UTC.
    - Si viene naive, se asume UTC (no desplaza).
    - Si viene con tz, se convierte a UTC con astimezone.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def in_publication_window(
    publish_date: Optional[datetime],
    expiration_date: Optional[datetime],
    now: Optional[datetime] = None,
) -> bool:
    """[publish_date, expiration_date); límites en None = sin restricción."""
    now = to_utc(now) or utcnow()
    start = to_utc(publish_date)
    end = to_utc(expiration_date)
    if start is not None and start > now:
        return False
    if end is not None and end <= now:
        return False
    return True


def visible_now(item: ContentItem, now: Optional[datetime] = None) -> bool:
    return bool(
        item.is_active
        and item.is_visible
        and in_publication_window(item.publish_date, item.expiration_date, now)
    )


def publication_window_clause(now: datetime) -> ColumnElement[bool]:
    now = to_utc(now)
    return and_(
        or_(ContentItem.publish_date.is_(None), ContentItem.publish_date <= now),
        or_(ContentItem.expiration_date.is_(None), ContentItem.expiration_date > now),
    )


def visibility_clause(now: datetime) -> ColumnElement[bool]:
    return and_(
        ContentItem.is_active == True,  # noqa: E712
        ContentItem.is_visible == True,  # noqa: E712
        publication_window_clause(now),
    )
