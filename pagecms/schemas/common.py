# pagecms/schemas/common.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from pagecms.services.publish_service import to_utc


class CamelModel(BaseModel):
    """Entrada/salida JSON en camelCase; acepta también snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def utc_or_none(value: Optional[datetime]) -> Optional[datetime]:
    return to_utc(value)


def envelope(data: Any, count: Optional[int] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": True}
    if count is not None:
        body["count"] = count
    body["data"] = data
    return body
