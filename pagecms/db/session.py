# pagecms/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from pagecms.core.settings import settings

ENGINE_URL = settings.SQLALCHEMY_DATABASE_URL

_connect_args = {"check_same_thread": False} if ENGINE_URL.startswith("sqlite") else {}

engine = create_engine(
    ENGINE_URL,
    pool_pre_ping=True,
    pool_recycle=1800,  # keep connections fresh on Heroku
    connect_args=_connect_args,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
