# pagecms/schemas/content.py
# Pydantic — requests/responses para contenido bilingüe y secciones de página
from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field, JsonValue,
    field_serializer, field_validator, model_validator,
)

from pagecms.models.content import Layout, SectionType, StylePreset
from pagecms.schemas.common import CamelModel, utc_or_none
from pagecms.services.language_service import (
    bilingual_length_errors, normalize_bilingual_input, project,
)

PAGE_SLUG_PATTERN = r"^[a-z0-9][a-z0-9_-]*$"


# ---------- Bilingual ----------
class BilingualText(BaseModel):
    en: str = ""
    ta: Optional[str] = None


class BilingualTextPatch(BaseModel):
    en: Optional[str] = None
    ta: Optional[str] = None


class BilingualKeywords(BaseModel):
    en: List[str] = Field(default_factory=list)
    ta: Optional[List[str]] = None


class BilingualKeywordsPatch(BaseModel):
    en: Optional[List[str]] = None
    ta: Optional[List[str]] = None


def clean_slug(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    slug = value.strip().lower()
    if not re.match(PAGE_SLUG_PATTERN, slug):
        raise ValueError("Page slug may only contain lowercase letters, digits, '-' and '_'")
    return slug


class _BilingualInput(CamelModel):
    """Base de entrada: normaliza las formas bilingües ANTES de validar tipos."""

    @model_validator(mode="before")
    @classmethod
    def _normalize_bilingual(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return normalize_bilingual_input(data)
        return data

    @model_validator(mode="after")
    def _check_bilingual_lengths(self):
        errors = bilingual_length_errors(self.bilingual_values())
        if errors:
            raise ValueError(", ".join(errors))
        return self

    def bilingual_values(self) -> Dict[str, Any]:
        dumped = self.model_dump(
            by_alias=True,
            exclude_unset=True,
            include={"title", "content", "subtitle", "button_text", "seo_title", "seo_description"},
        )
        return dumped

    def changes(self) -> Dict[str, Any]:
        """Campos enviados explícitamente, con nombres de columna (snake_case)."""
        return self.model_dump(exclude_unset=True, exclude={"version"})


class _ContentFields(_BilingualInput):
    section: Optional[str] = Field(None, min_length=1, max_length=100)
    section_type: Optional[SectionType] = None
    layout: Optional[Layout] = None
    position: Optional[int] = None

    button_url: Optional[str] = Field(None, max_length=500)
    images: Optional[List[Dict[str, JsonValue]]] = None
    style_preset: Optional[StylePreset] = None
    custom_styles: Optional[Dict[str, JsonValue]] = None
    extra_metadata: Optional[Dict[str, JsonValue]] = Field(None, alias="metadata")

    is_visible: Optional[bool] = None
    is_required: Optional[bool] = None
    publish_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None

    @field_validator("publish_date", "expiration_date")
    @classmethod
    def _dates_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return utc_or_none(v)

    @model_validator(mode="after")
    def _check_window(self):
        if self.publish_date and self.expiration_date and self.expiration_date <= self.publish_date:
            raise ValueError("Expiration date must be after publish date")
        return self


# ---------- Content (entry points genéricos) ----------
class ContentCreate(_ContentFields):
    # page puede llegar por path (/content/page/{pageType})
    page: Optional[str] = Field(None, max_length=64)
    section_key: Optional[str] = Field(None, min_length=1, max_length=100)
    order: Optional[int] = None
    is_active: Optional[bool] = None

    title: Optional[BilingualText] = None
    content: Optional[BilingualText] = None
    subtitle: Optional[BilingualText] = None
    button_text: Optional[BilingualText] = None
    seo_title: Optional[BilingualText] = None
    seo_description: Optional[BilingualText] = None
    seo_keywords: Optional[BilingualKeywords] = None

    @field_validator("page")
    @classmethod
    def _clean_page(cls, v: Optional[str]) -> Optional[str]:
        return clean_slug(v)


class ContentUpdate(_ContentFields):
    page: Optional[str] = Field(None, max_length=64)
    section_key: Optional[str] = Field(None, min_length=1, max_length=100)
    order: Optional[int] = None
    is_active: Optional[bool] = None
    # control optimista: si llega y no coincide → conflicto
    version: Optional[int] = Field(None, ge=1)

    title: Optional[BilingualTextPatch] = None
    content: Optional[BilingualTextPatch] = None
    subtitle: Optional[BilingualTextPatch] = None
    button_text: Optional[BilingualTextPatch] = None
    seo_title: Optional[BilingualTextPatch] = None
    seo_description: Optional[BilingualTextPatch] = None
    seo_keywords: Optional[BilingualKeywordsPatch] = None

    @field_validator("page")
    @classmethod
    def _clean_page(cls, v: Optional[str]) -> Optional[str]:
        return clean_slug(v)


# ---------- Section Registry ----------
class SectionCreate(_ContentFields):
    section_key: str = Field(..., min_length=1, max_length=100)

    title: Optional[BilingualText] = None
    content: Optional[BilingualText] = None
    subtitle: Optional[BilingualText] = None
    button_text: Optional[BilingualText] = None
    seo_title: Optional[BilingualText] = None
    seo_description: Optional[BilingualText] = None
    seo_keywords: Optional[BilingualKeywords] = None

    @field_validator("section_key")
    @classmethod
    def _strip_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Section key is required")
        return v


class SectionUpdate(_ContentFields):
    is_active: Optional[bool] = None
    order: Optional[int] = None
    version: Optional[int] = Field(None, ge=1)

    title: Optional[BilingualTextPatch] = None
    content: Optional[BilingualTextPatch] = None
    subtitle: Optional[BilingualTextPatch] = None
    button_text: Optional[BilingualTextPatch] = None
    seo_title: Optional[BilingualTextPatch] = None
    seo_description: Optional[BilingualTextPatch] = None
    seo_keywords: Optional[BilingualKeywordsPatch] = None


class SectionDuplicate(CamelModel):
    target_page: Optional[str] = Field(None, max_length=64)
    new_section_key: str = Field(..., min_length=1, max_length=100)
    position: Optional[int] = None

    @field_validator("target_page")
    @classmethod
    def _clean_target(cls, v: Optional[str]) -> Optional[str]:
        return clean_slug(v)

    @field_validator("new_section_key")
    @classmethod
    def _strip_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("New section key is required")
        return v


# ---------- Reorder ----------
class ReorderItem(CamelModel):
    id: int
    order: int


class ReorderRequest(CamelModel):
    items: List[ReorderItem] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _unique_ids(self):
        ids = [i.id for i in self.items]
        if len(ids) != len(set(ids)):
            raise ValueError("Each content id may appear only once in a reorder batch")
        return self


# ---------- Output ----------
class UserRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    email: str


class ContentOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    page: str
    section: str
    section_key: str
    section_type: SectionType
    layout: Layout
    position: int
    order: int

    title: Optional[Dict[str, Any]] = None
    content: Optional[Dict[str, Any]] = None
    subtitle: Optional[Dict[str, Any]] = None
    button_text: Optional[Dict[str, Any]] = None
    seo_title: Optional[Dict[str, Any]] = None
    seo_description: Optional[Dict[str, Any]] = None
    seo_keywords: Optional[Dict[str, Any]] = None

    button_url: Optional[str] = None
    images: List[Any] = Field(default_factory=list)
    style_preset: StylePreset = StylePreset.DEFAULT
    custom_styles: Optional[Dict[str, Any]] = None
    extra_metadata: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("extra_metadata", "metadata"),
        serialization_alias="metadata",
    )

    is_active: bool
    is_visible: bool
    is_required: bool
    has_tamil_translation: bool
    publish_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    version: int

    created_by: Optional[UserRef] = None
    updated_by: Optional[UserRef] = None
    approved_by: Optional[UserRef] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("publish_date", "expiration_date", "approved_at", "created_at", "updated_at")
    def _ser_dt(self, v: Optional[datetime]):
        # SQLite devuelve naive; todo lo almacenado es UTC
        return utc_or_none(v)


class SectionSummary(CamelModel):
    section_key: str
    section: str
    title: Optional[Dict[str, Any]] = None
    order: int
    position: int
    section_type: SectionType
    layout: Layout
    is_active: bool
    is_visible: bool


class PageSummary(CamelModel):
    page: str
    sections: List[SectionSummary]
    total_sections: int
    active_sections: int


def serialize_item(item, lang: Optional[str] = None) -> Dict[str, Any]:
    data = ContentOut.model_validate(item).model_dump(by_alias=True, mode="json")
    return project(data, lang)
