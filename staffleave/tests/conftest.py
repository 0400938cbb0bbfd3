"""
Pytest configuration and fixtures
"""
import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-staff-leave-service-0123")
os.environ.setdefault("APP_ENV", "local")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from staffleave.main import app  # noqa: E402
from staffleave.db.base import Base  # noqa: E402
from staffleave.core.deps import get_db  # noqa: E402
from staffleave.schemas.actor import Actor  # noqa: E402
from staffleave.services.audit_service import reset_audit_failure_count  # noqa: E402
from staffleave.tests.helpers import make_user  # noqa: E402

# Import all models to ensure they're registered with Base.metadata
import staffleave.models  # noqa: E402,F401


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    reset_audit_failure_count()

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db: Session):
    """ADMIN account (no employment type)"""
    return make_user(db, "admin@school.edu.sg", name="School Admin", role="ADMIN", employment_type=None)


@pytest.fixture
def teacher_user(db: Session):
    """Full-time teacher without approval authority"""
    return make_user(db, "teacher@school.edu.sg", name="Aisyah Rahman", teacher_roles=["FORM"])


@pytest.fixture
def part_time_teacher(db: Session):
    return make_user(db, "parttime@school.edu.sg", name="Farid Osman", employment_type="PART_TIME")


@pytest.fixture
def principal_user(db: Session):
    """Teacher holding the PRINCIPAL capability"""
    return make_user(db, "principal@school.edu.sg", name="Dr Halim", teacher_roles=["PRINCIPAL"])


@pytest.fixture
def teacher_actor(teacher_user):
    return Actor.from_user(teacher_user)


@pytest.fixture
def principal_actor(principal_user):
    return Actor.from_user(principal_user)


@pytest.fixture
def admin_actor(admin_user):
    return Actor.from_user(admin_user)
