from sqlalchemy import select

from pagecms.models.audit import AuditAction, AuditLogEntry, AuditTargetType
from pagecms.models.content import ContentItem
from pagecms.services import section_service

BASE = "/api/pages"


def _sections(client, slug, **params):
    r = client.get(f"{BASE}/{slug}", params=params)
    assert r.status_code == 200, r.text
    return r.json()["data"]["sections"]


# ---------- getPageSections ----------
def test_page_sections_ordered_by_order(client, make_item):
    make_item(section_key="second", order=2)
    make_item(section_key="first", order=1)
    sections = _sections(client, "home")
    assert [s["order"] for s in sections] == [1, 2]
    assert [s["sectionKey"] for s in sections] == ["first", "second"]


def test_page_sections_position_before_order(client, make_item):
    make_item(section_key="low", position=1, order=1)
    make_item(section_key="top", position=0, order=9)
    assert [s["sectionKey"] for s in _sections(client, "home")] == ["top", "low"]


def test_page_sections_default_filters(client, make_item):
    make_item(section_key="inactive", is_active=False)
    make_item(section_key="hidden", is_active=True, is_visible=False)
    make_item(section_key="live")
    assert [s["sectionKey"] for s in _sections(client, "home")] == ["live"]


def test_include_inactive_is_admin_only(client, make_item, admin_headers, user_headers):
    make_item(section_key="inactive", is_active=False)
    make_item(section_key="live")

    r = client.get(f"{BASE}/home", params={"includeInactive": "true"}, headers=admin_headers)
    assert len(r.json()["data"]["sections"]) == 2

    r = client.get(f"{BASE}/home", params={"includeInactive": "true"}, headers=user_headers)
    assert [s["sectionKey"] for s in r.json()["data"]["sections"]] == ["live"]


def test_page_sections_lang_projection(client, make_item):
    make_item(section_key="hero", title={"en": "Hi", "ta": "வணக்கம்"})
    r = client.get(f"{BASE}/home", params={"lang": "ta"})
    body = r.json()["data"]
    assert body["page"] == "home"
    assert body["sections"][0]["title"] == "வணக்கம்"


# ---------- getPages ----------
def test_get_pages_aggregation(client, make_item):
    make_item(page="home", section_key="b", position=1, order=1)
    make_item(page="home", section_key="a", position=0, order=5)
    make_item(page="home", section_key="c", position=1, order=0, is_active=False)
    make_item(page="about", section_key="intro")

    r = client.get(BASE)
    assert r.status_code == 200
    pages = r.json()["data"]
    assert [p["page"] for p in pages] == ["about", "home"]

    home = pages[1]
    assert [s["sectionKey"] for s in home["sections"]] == ["a", "c", "b"]
    assert home["totalSections"] == 3
    assert home["activeSections"] == 2
    assert set(home["sections"][0]) == {
        "sectionKey", "section", "title", "order", "position",
        "sectionType", "layout", "isActive", "isVisible",
    }


# ---------- createPageSection ----------
def test_create_section_assigns_next_order(client, make_item, admin_headers):
    make_item(section_key="hero", order=4)
    r = client.post(f"{BASE}/home/sections", json={"sectionKey": "features", "title": "Features"}, headers=admin_headers)
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["order"] == 5
    assert data["page"] == "home"
    assert data["section"] == "features"


def test_create_section_first_on_page_gets_order_one(client, admin_headers):
    r = client.post(f"{BASE}/contact/sections", json={"sectionKey": "form"}, headers=admin_headers)
    assert r.json()["data"]["order"] == 1


def test_create_section_normalizes_flat_tamil(client, db, admin_headers):
    r = client.post(
        f"{BASE}/home/sections",
        json={
            "sectionKey": "hero",
            "title": "Welcome",
            "titleTamil": "வரவேற்கிறோம்",
            "content": {"en": "Body", "ta": ""},
        },
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["title"] == {"en": "Welcome", "ta": "வரவேற்கிறோம்"}
    assert data["content"] == {"en": "Body", "ta": None}
    assert data["hasTamilTranslation"] is True

    entry = db.scalars(select(AuditLogEntry)).one()
    assert entry.action == AuditAction.CREATE
    assert entry.target_type == AuditTargetType.SECTION
    assert entry.section_key == "hero"


def test_create_section_without_tamil(client, admin_headers):
    r = client.post(f"{BASE}/home/sections", json={"sectionKey": "hero", "title": "Only English"}, headers=admin_headers)
    assert r.json()["data"]["hasTamilTranslation"] is False


def test_create_section_strict_uniqueness(client, db, make_item, admin_headers):
    original = make_item(section_key="hero", title={"en": "Original", "ta": "மூலம்"})
    before = {c.key: getattr(original, c.key) for c in ContentItem.__table__.columns if c.key != "metadata"}

    r = client.post(f"{BASE}/home/sections", json={"sectionKey": "hero", "title": "Intruder"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Section with key 'hero' already exists on page 'home'"}

    db.expire_all()
    after = db.get(ContentItem, original.id)
    assert {c.key: getattr(after, c.key) for c in ContentItem.__table__.columns if c.key != "metadata"} == before
    assert db.scalars(select(AuditLogEntry)).all() == []


def test_create_section_requires_key(client, admin_headers):
    r = client.post(f"{BASE}/home/sections", json={"title": "No key"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_create_section_forbidden_for_non_admin(client, user_headers):
    r = client.post(f"{BASE}/home/sections", json={"sectionKey": "hero"}, headers=user_headers)
    assert r.status_code == 403


# ---------- updatePageSection ----------
def test_update_section_partial_merge_and_audit_names_only(client, db, make_item, admin_headers, admin_user):
    make_item(section_key="hero", title={"en": "Hello", "ta": "வணக்கம்"}, content={"en": "Secret body", "ta": None})

    r = client.patch(
        f"{BASE}/home/sections/hero",
        json={"content": {"en": "New secret body"}, "layout": "grid", "title": {"en": "Hello"}},
        headers=admin_headers,
    )
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["title"] == {"en": "Hello", "ta": "வணக்கம்"}
    assert data["content"] == {"en": "New secret body", "ta": None}
    assert data["layout"] == "grid"
    assert data["updatedBy"]["id"] == admin_user.id
    assert data["version"] == 2

    entry = db.scalars(select(AuditLogEntry)).one()
    assert entry.action == AuditAction.EDIT
    # sólo nombres; title no cambió
    assert entry.details == {"updatedFields": ["content", "layout"]}
    assert "New secret body" not in str(entry.details)


def test_update_section_missing(client, admin_headers):
    r = client.patch(f"{BASE}/home/sections/nope", json={"layout": "grid"}, headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["error"] == "Section 'nope' not found on page 'home'"


def test_update_section_tamil_flag_follows_content(client, make_item, admin_headers):
    make_item(section_key="hero", title={"en": "Hello", "ta": "வணக்கம்"}, has_tamil_translation=True)
    r = client.patch(f"{BASE}/home/sections/hero", json={"titleTamil": ""}, headers=admin_headers)
    data = r.json()["data"]
    assert data["title"] == {"en": "Hello", "ta": None}
    assert data["hasTamilTranslation"] is False


# ---------- deletePageSection ----------
def test_delete_section_audits_title_snapshot(client, db, make_item, admin_headers):
    item_id = make_item(section_key="hero", title={"en": "Bye", "ta": None}).id
    r = client.delete(f"{BASE}/home/sections/hero", headers=admin_headers)
    assert r.status_code == 200

    assert db.get(ContentItem, item_id) is None
    entry = db.scalars(select(AuditLogEntry)).one()
    assert entry.action == AuditAction.DELETE
    assert entry.target_id == item_id
    assert entry.details == {"deletedTitle": {"en": "Bye", "ta": None}}


# ---------- duplicatePageSection ----------
def test_duplicate_section_to_other_page(client, db, make_item, admin_headers):
    make_item(section_key="hero", title={"en": "Hero", "ta": "நாயகன்"})
    make_item(page="landing", section_key="existing", order=7)

    r = client.post(
        f"{BASE}/home/sections/hero/duplicate",
        json={"targetPage": "landing", "newSectionKey": "hero", "position": 3},
        headers=admin_headers,
    )
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["page"] == "landing"
    assert data["sectionKey"] == "hero"
    assert data["order"] == 8
    assert data["position"] == 3
    assert data["title"] == {"en": "Hero (Copy)", "ta": "நாயகன் (Copy)"}
    assert data["isActive"] is False

    entry = db.scalars(select(AuditLogEntry)).one()
    assert entry.action == AuditAction.DUPLICATE
    assert entry.page == "landing"
    assert entry.details["sourcePage"] == "home"
    assert entry.details["sourceSectionKey"] == "hero"


def test_duplicate_section_same_page_default(client, make_item, admin_headers):
    make_item(section_key="hero", order=2)
    r = client.post(f"{BASE}/home/sections/hero/duplicate", json={"newSectionKey": "hero-2"}, headers=admin_headers)
    data = r.json()["data"]
    assert data["page"] == "home"
    assert data["order"] == 3


def test_duplicate_section_target_conflict(client, make_item, admin_headers):
    make_item(section_key="hero")
    make_item(section_key="taken")
    r = client.post(f"{BASE}/home/sections/hero/duplicate", json={"newSectionKey": "taken"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["error"] == "Section with key 'taken' already exists on page 'home'"


def test_duplicate_section_rejects_blank_key(client, db, make_item, admin_headers):
    make_item(section_key="hero")
    r = client.post(f"{BASE}/home/sections/hero/duplicate", json={"newSectionKey": "   "}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert [i.section_key for i in db.scalars(select(ContentItem)).all()] == ["hero"]


def test_duplicate_section_unique_constraint_wins_race(client, db, make_item, admin_headers, monkeypatch):
    make_item(section_key="hero")
    taken = make_item(section_key="taken", title={"en": "Keep me", "ta": None})
    taken_id = taken.id

    real_find = section_service.find_by_section_key

    # otro escritor insertó 'taken' entre la comprobación previa y el commit
    def _stale_find(db_, page, section_key):
        if section_key == "taken":
            return None
        return real_find(db_, page, section_key)

    monkeypatch.setattr(section_service, "find_by_section_key", _stale_find)

    r = client.post(f"{BASE}/home/sections/hero/duplicate", json={"newSectionKey": "taken"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Duplicate field value entered"}

    db.expire_all()
    rows = db.scalars(select(ContentItem).where(ContentItem.section_key == "taken")).all()
    assert [row.id for row in rows] == [taken_id]
    assert rows[0].title == {"en": "Keep me", "ta": None}
    assert db.scalars(select(AuditLogEntry)).all() == []


# ---------- slugs ----------
def test_page_reads_normalize_slug_case(client, make_item, admin_headers):
    make_item(section_key="hero")
    r = client.get(f"{BASE}/Home")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["page"] == "home"
    assert [s["sectionKey"] for s in data["sections"]] == ["hero"]

    r = client.patch(f"{BASE}/HOME/sections/hero", json={"subtitle": {"en": "Sub"}}, headers=admin_headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["page"] == "home"
