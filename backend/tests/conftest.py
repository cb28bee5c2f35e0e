"""
Pytest fixtures shared by the unit and API suites.

Every test gets an empty in-memory SQLite schema; the API client routes
``get_db`` to that same session so factories and requests see one database.
"""
import os

# Keep the module-level engine in app.db.session away from PostgreSQL.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.limiter import limiter  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import get_db  # noqa: E402
from app.main import app  # noqa: E402

from tests.factories import create_test_user, reset_sequences  # noqa: E402

limiter.enabled = False

# StaticPool keeps the single in-memory connection alive across sessions
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


def bearer(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def db():
    Base.metadata.create_all(bind=test_engine)
    reset_sequences()
    session = TestSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    """TestClient bound to the test session.

    Not entered as a context manager, so the lifespan hook (table creation
    and the default-status check against the real engine) is skipped.
    """
    def _use_test_session():
        yield db

    app.dependency_overrides[get_db] = _use_test_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db):
    user = create_test_user(db, email="admin@society.test", role="admin")
    db.commit()
    return user


@pytest.fixture
def member_user(db):
    user = create_test_user(db, email="member@society.test", role="user")
    db.commit()
    return user


@pytest.fixture
def admin_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture
def member_headers(member_user):
    return bearer(member_user)
