from pagecms.core.settings import settings
from pagecms.services.language_service import (
    bilingual_length_errors,
    has_tamil_translation,
    merge_bilingual,
    normalize_bilingual_input,
    project,
)


def _record():
    return {
        "id": 7,
        "page": "home",
        "title": {"en": "Welcome", "ta": "வரவேற்கிறோம்"},
        "content": {"en": "Body", "ta": None},
        "subtitle": {"en": "Sub"},
        "seoKeywords": {"en": ["books", "tamil"], "ta": ["நூல்கள்"]},
        "images": [{"url": "/a.png"}],
    }


def test_project_picks_requested_language():
    out = project(_record(), "ta")
    assert out["title"] == "வரவேற்கிறோம்"
    assert out["seoKeywords"] == ["நூல்கள்"]


def test_project_falls_back_to_english_when_tamil_missing():
    out = project(_record(), "ta")
    assert out["content"] == "Body"
    assert out["subtitle"] == "Sub"


def test_project_leaves_non_bilingual_fields_alone():
    out = project(_record(), "en")
    assert out["images"] == [{"url": "/a.png"}]
    assert out["page"] == "home"
    assert out["title"] == "Welcome"


def test_project_without_or_unknown_lang_returns_bilingual_objects():
    rec = _record()
    assert project(rec, None)["title"] == {"en": "Welcome", "ta": "வரவேற்கிறோம்"}
    assert project(rec, "fr")["title"] == {"en": "Welcome", "ta": "வரவேற்கிறோம்"}


def test_project_never_mutates_source():
    rec = _record()
    project(rec, "ta")
    assert rec["title"] == {"en": "Welcome", "ta": "வரவேற்கிறோம்"}


def test_normalize_flat_tamil_keys():
    out = normalize_bilingual_input({"title": "Hello", "titleTamil": "வணக்கம்", "content": "Text"})
    assert out["title"] == {"en": "Hello", "ta": "வணக்கம்"}
    assert out["content"] == {"en": "Text"}
    assert "titleTamil" not in out


def test_normalize_snake_case_flat_keys_and_blank_tamil():
    out = normalize_bilingual_input({"button_text": "Go", "button_text_tamil": "   "})
    assert out["buttonText"] == {"en": "Go", "ta": None}
    assert "button_text" not in out


def test_normalize_object_form_is_kept():
    body = {"subtitle": {"en": " Sub ", "ta": "துணை"}}
    out = normalize_bilingual_input(body)
    assert out["subtitle"] == {"en": "Sub", "ta": "துணை"}
    # el body original no se toca
    assert body["subtitle"]["en"] == " Sub "


def test_normalize_keyword_lists():
    out = normalize_bilingual_input({"seoKeywords": ["a", " b ", ""]})
    assert out["seoKeywords"] == {"en": ["a", "b"]}


def test_merge_bilingual_only_overwrites_present_languages():
    merged = merge_bilingual({"en": "Old", "ta": "பழைய"}, {"en": "New"})
    assert merged == {"en": "New", "ta": "பழைய"}
    assert merge_bilingual(None, {"ta": "x"}) == {"en": "", "ta": "x"}


def test_has_tamil_translation():
    assert has_tamil_translation({"title": {"en": "a", "ta": "b"}})
    assert not has_tamil_translation({"title": {"en": "a", "ta": None}, "content": {"en": "b", "ta": " "}})
    # seoTitle no cuenta para la bandera
    assert not has_tamil_translation({"seoTitle": {"en": "a", "ta": "b"}})


def test_bilingual_length_errors():
    errors = bilingual_length_errors({"title": {"en": "x" * 201, "ta": "y" * 10}, "buttonText": {"ta": "z" * 51}})
    assert "English title cannot exceed 200 characters" in errors
    assert "Tamil button text cannot exceed 50 characters" in errors
    assert len(errors) == 2


def test_project_fallback_follows_default_language(monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_LANGUAGE", "ta")
    out = project({"title": {"en": None, "ta": "தலைப்பு"}}, "en")
    assert out["title"] == "தலைப்பு"
