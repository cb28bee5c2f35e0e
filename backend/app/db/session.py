"""
Engine and session factory for the plots database.

Most deployments point at PostgreSQL through psycopg. A SQLite URL in
DATABASE_URL also works for local demos, minus the connection pool tuning.
"""
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from app.core.settings import settings
from app.logging_config import get_logger

logger = get_logger(__name__)


def _engine_options(url) -> dict:
    if url.get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_size": settings.DB_POOL_SIZE,
    }


def build_engine(database_url: str):
    url = make_url(database_url)
    logger.info(
        "Opening database engine",
        extra={"database": url.render_as_string(hide_password=True)},
    )
    return create_engine(url, echo=settings.DB_ECHO, **_engine_options(url))


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db():
    """Yield one session per request; routers never close it themselves."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
