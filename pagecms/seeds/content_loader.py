# pagecms/seeds/content_loader.py
# Carga de contenido bilingüe desde JSON: valida con JSON Schema y hace upsert por (page, section)
from __future__ import annotations

import json
import logging
import pathlib
from dataclasses import dataclass
from typing import Any, Dict, Optional

from jsonschema import Draft202012Validator
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pagecms.core.errors import ValidationError
from pagecms.models.auth import User
from pagecms.schemas.content import PAGE_SLUG_PATTERN, ContentCreate
from pagecms.services.audit_service import AuditSink, NullAuditSink
from pagecms.services.authz import Caller
from pagecms.services.content_service import create_or_update_content

logger = logging.getLogger(__name__)

DEFAULT_SEED_FILE = pathlib.Path(__file__).parent / "data" / "bilingual_pages.json"

_BILINGUAL_TEXT = {
    "oneOf": [
        {"type": "string"},
        {
            "type": "object",
            "properties": {
                "en": {"type": "string"},
                "ta": {"type": ["string", "null"]},
            },
            "additionalProperties": False,
        },
    ]
}

SEED_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "BilingualContentSeed",
    "type": "object",
    "required": ["pages"],
    "properties": {
        "pages": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["page", "sections"],
                "properties": {
                    "page": {"type": "string", "pattern": PAGE_SLUG_PATTERN},
                    "sections": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["section"],
                            "properties": {
                                "section": {"type": "string", "minLength": 1, "maxLength": 100},
                                "sectionKey": {"type": "string", "minLength": 1, "maxLength": 100},
                                "title": _BILINGUAL_TEXT,
                                "content": _BILINGUAL_TEXT,
                                "subtitle": _BILINGUAL_TEXT,
                                "buttonText": _BILINGUAL_TEXT,
                                "order": {"type": "integer"},
                                "position": {"type": "integer"},
                            },
                        },
                    },
                },
            },
        }
    },
}


@dataclass(frozen=True)
class SeedResult:
    created: int = 0
    updated: int = 0


def _read_json(path: pathlib.Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path.as_posix()}")
    txt = path.read_bytes().decode("utf-8-sig")  # tolera BOM
    data = json.loads(txt)
    if not isinstance(data, dict):
        raise ValueError(f"Seed file {path.name} must contain a JSON object.")
    return data


def validate_seed(data: dict) -> None:
    validator = Draft202012Validator(SEED_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
    if errors:
        e = errors[0]
        path = ".".join(str(p) for p in e.path)
        raise ValidationError(f"Seed validation error at '{path}': {e.message}")


def caller_for_email(db: Session, email: str) -> Caller:
    user = db.scalar(select(User).where(func.lower(User.email) == email.strip().lower()))
    if not user:
        raise RuntimeError(f"User '{email}' not found.")
    return Caller.from_user(user)


def load_content_seed(
    db: Session,
    data: dict,
    *,
    caller: Caller,
    audit: Optional[AuditSink] = None,
) -> SeedResult:
    """
    Idempotente: cada bloque pasa por el upsert (page, section) del Content Store,
    así que recargar el mismo archivo actualiza en lugar de duplicar.
    """
    validate_seed(data)
    audit = audit or NullAuditSink()

    created = updated = 0
    for page_def in data["pages"]:
        page = page_def["page"]
        for block in page_def["sections"]:
            try:
                payload = ContentCreate.model_validate({**block, "page": page})
            except PydanticValidationError as exc:
                raise ValidationError(
                    [f"{page}/{block.get('section')}: {err['msg'].removeprefix('Value error, ')}" for err in exc.errors()]
                ) from exc
            item, was_created = create_or_update_content(db, payload, caller=caller, audit=audit)
            if was_created:
                created += 1
            else:
                updated += 1
            logger.info("[seed] %s/%s → id=%s (%s)", page, item.section, item.id, "created" if was_created else "updated")

    return SeedResult(created=created, updated=updated)


def load_content_seed_file(
    db: Session,
    path: pathlib.Path | str = DEFAULT_SEED_FILE,
    *,
    caller: Caller,
    audit: Optional[AuditSink] = None,
) -> SeedResult:
    return load_content_seed(db, _read_json(pathlib.Path(path)), caller=caller, audit=audit)
