# pagecms/services/language_service.py
# Frontera única de normalización bilingüe + proyección a un idioma en lecturas
from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from pagecms.core.settings import settings

# Campos bilingües de texto {"en": str, "ta": str | null}
BILINGUAL_TEXT_FIELDS = ("title", "content", "subtitle", "buttonText", "seoTitle", "seoDescription")
# Campos bilingües de listas {"en": [str], "ta": [str] | null}
BILINGUAL_LIST_FIELDS = ("seoKeywords",)
# Campos que colapsa la proyección de lectura
PROJECTED_FIELDS = (
    "title", "content", "description", "subtitle", "buttonText",
    "seoTitle", "seoDescription", "seoKeywords",
)
# Campos que cuentan para hasTamilTranslation
TRANSLATION_FIELDS = ("title", "content", "subtitle", "buttonText")

MAX_LENGTHS = {
    "title": 200,
    "content": 5000,
    "subtitle": 300,
    "buttonText": 50,
    "seoTitle": 60,
    "seoDescription": 160,
}
_LABELS = {
    "buttonText": "button text",
    "seoTitle": "SEO title",
    "seoDescription": "SEO description",
}
_LANG_NAMES = {"en": "English", "ta": "Tamil"}

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


def _clean_text(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value if str(v).strip()]
        return items or None
    return value


def _as_record(value: Any, *, is_list: bool) -> Any:
    if isinstance(value, Mapping):
        return {lang: _clean_text(value[lang]) for lang in ("en", "ta") if lang in value}
    if isinstance(value, str) and not is_list:
        return {"en": value.strip()}
    if isinstance(value, (list, tuple)) and is_list:
        return {"en": [str(v).strip() for v in value if str(v).strip()]}
    # Cualquier otro tipo lo dejamos pasar para que Pydantic reporte el error
    return value


def normalize_bilingual_input(body: Mapping[str, Any]) -> dict[str, Any]:
    """
    Canoniza las dos formas de entrada bilingüe en un único registro:
      - objeto {"en": ..., "ta": ...}
      - texto plano (se toma como inglés)
      - claves planas `titleTamil` / `title_tamil` (y equivalentes)
    El resultado usa siempre la clave camelCase del campo. Un valor tamil vacío
    se guarda como None para que la proyección caiga a inglés.
    Devuelve un dict nuevo; `body` no se modifica.
    """
    data = dict(body)
    for field in BILINGUAL_TEXT_FIELDS + BILINGUAL_LIST_FIELDS:
        snake = _snake(field)
        key = field if field in data else (snake if snake in data else None)
        flat_key = next((k for k in (f"{field}Tamil", f"{snake}_tamil") if k in data), None)
        if key is None and flat_key is None:
            continue

        is_list = field in BILINGUAL_LIST_FIELDS
        raw = data.pop(key) if key is not None else None
        if raw is None and flat_key is None:
            data[field] = None
            continue

        record = _as_record(raw, is_list=is_list) if raw is not None else {}
        if not isinstance(record, dict):
            data[field] = record
            if flat_key is not None:
                data.pop(flat_key)
            continue

        if flat_key is not None:
            record["ta"] = data.pop(flat_key)
        if "ta" in record:
            record["ta"] = _blank_to_none(record["ta"])
        data[field] = record
    return data


def merge_bilingual(
    current: Optional[Mapping[str, Any]],
    patch: Mapping[str, Any],
    *,
    is_list: bool = False,
) -> dict[str, Any]:
    """Merge por idioma: sólo los idiomas presentes en `patch` se sobrescriben."""
    merged = dict(current or {})
    merged.update(patch)
    if merged.get("en") is None:
        merged["en"] = [] if is_list else ""
    merged.setdefault("ta", None)
    return merged


def has_tamil_translation(values: Mapping[str, Any]) -> bool:
    for field in TRANSLATION_FIELDS:
        value = values.get(field)
        if isinstance(value, Mapping):
            ta = value.get("ta")
            if isinstance(ta, str) and ta.strip():
                return True
    return False


def bilingual_length_errors(values: Mapping[str, Any]) -> list[str]:
    errors: list[str] = []
    for field, limit in MAX_LENGTHS.items():
        value = values.get(field)
        if not isinstance(value, Mapping):
            continue
        label = _LABELS.get(field, field)
        for lang in ("en", "ta"):
            text = value.get(lang)
            if isinstance(text, str) and len(text) > limit:
                errors.append(f"{_LANG_NAMES[lang]} {label} cannot exceed {limit} characters")
    return errors


def is_supported_language(lang: Optional[str]) -> bool:
    return bool(lang) and lang in settings.SUPPORTED_LANGUAGES


def project(record: Mapping[str, Any], lang: Optional[str]) -> dict[str, Any]:
    """
    Colapsa cada campo bilingüe al idioma pedido (fallback a DEFAULT_LANGUAGE, inglés).
    Opera sobre una copia superficial: el registro original nunca se toca.
    Sin `lang` (o con un idioma no soportado) los objetos bilingües se devuelven tal cual.
    """
    out = dict(record)
    if not is_supported_language(lang):
        return out
    for field in PROJECTED_FIELDS:
        value = out.get(field)
        if isinstance(value, Mapping):
            chosen = value.get(lang)
            out[field] = chosen if chosen is not None else value.get(settings.DEFAULT_LANGUAGE)
    return out
