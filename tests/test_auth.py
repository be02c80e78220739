from pagecms.security.jwt import create_access_token
from pagecms.services.passwords import hash_password, verify_password


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret!", "")


def test_bad_token_is_anonymous_on_public_routes(client, make_item):
    make_item(section_key="draft", is_active=False)
    r = client.get("/api/content", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 200
    assert r.json()["count"] == 0


def test_bad_token_rejected_on_admin_routes(client):
    r = client.post("/api/content", json={"page": "home"}, headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "Invalid token"}


def test_expired_token(client, admin_user):
    token = create_access_token(admin_user.id, minutes=-5)
    r = client.post("/api/content", json={"page": "home"}, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["error"] == "Token expired"


def test_inactive_user_is_rejected(client, db, admin_user):
    admin_user.is_active = False
    db.commit()
    token = create_access_token(admin_user.id)
    r = client.post("/api/content", json={"page": "home"}, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
