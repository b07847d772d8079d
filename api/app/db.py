# api/app/db.py
import logging
from urllib.parse import urlparse

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .settings import settings

log = logging.getLogger(__name__)

LOCAL_HOSTS = {None, "localhost", "127.0.0.1"}


def _connect_args(url: str) -> dict:
    parsed = urlparse(url)
    if parsed.scheme.startswith("sqlite"):
        # request handlers and background mirror tasks share the connection
        return {"check_same_thread": False}
    if not parsed.scheme.startswith("postgres"):
        return {}
    if settings.PGSSLMODE:
        return {"sslmode": settings.PGSSLMODE}
    return {} if parsed.hostname in LOCAL_HOSTS else {"sslmode": "require"}


_url = urlparse(settings.DATABASE_URL)
log.info("Primary store: %s on %s", _url.scheme, _url.hostname or "local")

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
