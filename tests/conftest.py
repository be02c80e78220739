# tests/conftest.py
from __future__ import annotations

import os

# Antes de importar la app: nada de tocar la BD local de desarrollo
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import timedelta  # noqa: E402
from typing import Any, Dict  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from pagecms.db.base import Base  # noqa: E402
from pagecms.db.session import get_db  # noqa: E402
from pagecms.main import app  # noqa: E402
from pagecms.models.auth import User  # noqa: E402
from pagecms.models.content import ContentItem  # noqa: E402
from pagecms.security.jwt import create_access_token  # noqa: E402
from pagecms.services.authz import Caller  # noqa: E402
from pagecms.services.publish_service import utcnow  # noqa: E402

# Una sola conexión en memoria compartida por todas las sesiones del test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture(scope="function")
def db() -> Session:
    """Schema nuevo por prueba; se destruye al final."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session):
    """Todos los endpoints usan la misma sesión de la prueba en curso."""
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _make_user(db: Session, email: str, name: str, role: str) -> User:
    user = User(email=email, name=name, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db: Session) -> User:
    return _make_user(db, "admin@example.com", "Site Admin", "admin")


@pytest.fixture
def reader_user(db: Session) -> User:
    return _make_user(db, "reader@example.com", "Regular Reader", "user")


@pytest.fixture
def admin_caller(admin_user: User) -> Caller:
    return Caller.from_user(admin_user)


@pytest.fixture
def admin_headers(admin_user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(admin_user.id)}"}


@pytest.fixture
def user_headers(reader_user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(reader_user.id)}"}


@pytest.fixture
def make_item(db: Session):
    """Inserta un ContentItem directo en la BD (sin pasar por la API)."""
    counter = {"n": 0}

    def _make(page: str = "home", section_key: str | None = None, **overrides: Any) -> ContentItem:
        counter["n"] += 1
        key = section_key or f"block-{counter['n']}"
        fields: Dict[str, Any] = {
            "page": page,
            "section": overrides.pop("section", key),
            "section_key": key,
            "title": {"en": f"Title {key}", "ta": None},
            "content": {"en": f"Body {key}", "ta": None},
            "order": counter["n"],
            "is_active": True,
            "is_visible": True,
        }
        fields.update(overrides)
        item = ContentItem(**fields)
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    return _make


@pytest.fixture
def past():
    return utcnow() - timedelta(days=1)


@pytest.fixture
def future():
    return utcnow() + timedelta(days=1)
