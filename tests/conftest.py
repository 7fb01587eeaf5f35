import os
import tempfile
from datetime import date

# Set environment variables BEFORE any imports that might use settings
# Use a temporary directory for test database to avoid permission issues
_test_db_dir = tempfile.mkdtemp()
_test_db_path = os.path.join(_test_db_dir, "test_sara.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-characters-long-for-testing"
os.environ["ALGORITHM"] = "HS256"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["FIRST_ADMIN_EMAIL"] = "admin@test.example.com"
os.environ["FIRST_ADMIN_PASSWORD"] = "AdminTest123!"
# Keep tests independent of a developer's local .env
os.environ["SMTP_HOST"] = ""
os.environ["FRONTEND_URL"] = ""

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker, Session

from sara.main import app
from sara.db.base import build_engine
from sara.core.security import create_access_token, get_password_hash
from sara.db.models.user import User as UserModel
from sara.db.models.role import Role as RoleModel


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test and run migrations."""
    temp_db_dir = tempfile.mkdtemp()
    test_db_path = os.path.join(temp_db_dir, "test.db")
    test_db_url = f"sqlite:///{test_db_path}"

    test_engine = build_engine(test_db_url)

    # Enable WAL mode to reduce locking issues
    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )

    # Run Alembic migrations to set up the database schema and seed data
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        test_engine.dispose()

        try:
            if os.path.exists(test_db_path):
                os.remove(test_db_path)
            for suffix in ["-wal", "-shm"]:
                wal_path = f"{test_db_path}{suffix}"
                if os.path.exists(wal_path):
                    os.remove(wal_path)
            if os.path.exists(temp_db_dir):
                os.rmdir(temp_db_dir)
        except OSError as e:
            print(f"Cleanup failed: {e}")


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    from sara.api.deps import get_db

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session to match test naming conventions."""
    return db_session


@pytest.fixture(scope="function")
def unreachable_smtp(monkeypatch):
    """SMTP configured, but every send fails to connect. Yields the attempted recipients."""
    import aiosmtplib

    from sara.core.config import settings

    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "smtp_port", 587)
    monkeypatch.setattr(settings, "smtp_user", "mailer")
    monkeypatch.setattr(settings, "smtp_password", "secret")
    monkeypatch.setattr(settings, "smtp_from_email", "noreply@example.com")

    attempts = []

    async def refuse(message, **kwargs):
        attempts.append(message["To"])
        raise aiosmtplib.SMTPConnectError("Connection refused")

    monkeypatch.setattr(aiosmtplib, "send", refuse)
    yield attempts


def _create_user(db: Session, role_name: str, email: str, name: str, password: str) -> dict:
    role = db.query(RoleModel).filter(RoleModel.name == role_name).first()
    if not role:
        raise RuntimeError(f"{role_name} role not found")

    user = UserModel(
        email=email,
        name=name,
        password_hash=get_password_hash(password),
        role_id=role.id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    return {
        "id": user.id,
        "email": user.email,
        "name": name,
        "password": password,
        "role_id": user.role_id,
    }


@pytest.fixture(scope="function")
def admin_user(db: Session) -> dict:
    """The admin user seeded by migration 002."""
    from sara.repositories.user import get_user_by_email
    from sara.core.config import settings

    user = get_user_by_email(db, settings.first_admin_email)
    if not user:
        raise RuntimeError("Admin user not found. Check migration 002.")

    return {
        "id": user.id,
        "email": user.email,
        "password": settings.first_admin_password,
        "role_id": user.role_id,
    }


@pytest.fixture(scope="function")
def admin_token(admin_user: dict) -> str:
    return create_access_token(data={"sub": admin_user["id"]})


@pytest.fixture(scope="function")
def landlord_user_dict(db: Session) -> dict:
    return _create_user(db, "landlord", "landlord@example.com", "Test Landlord", "LandlordPass123!")


@pytest.fixture(scope="function")
def landlord_token(landlord_user_dict: dict) -> str:
    return create_access_token(data={"sub": landlord_user_dict["id"]})


@pytest.fixture(scope="function")
def another_landlord_user_dict(db: Session) -> dict:
    return _create_user(db, "landlord", "landlord2@example.com", "Test Landlord 2", "Landlord2Pass123!")


@pytest.fixture(scope="function")
def another_landlord_token(another_landlord_user_dict: dict) -> str:
    return create_access_token(data={"sub": another_landlord_user_dict["id"]})


@pytest.fixture(scope="function")
def tenant_user_dict(db: Session) -> dict:
    return _create_user(db, "tenant", "tenant@example.com", "Test Tenant", "TenantPass123!")


@pytest.fixture(scope="function")
def tenant_token(tenant_user_dict: dict) -> str:
    return create_access_token(data={"sub": tenant_user_dict["id"]})


@pytest.fixture(scope="function")
def another_tenant_user_dict(db: Session) -> dict:
    return _create_user(db, "tenant", "tenant2@example.com", "Test Tenant 2", "Tenant2Pass123!")


@pytest.fixture(scope="function")
def another_tenant_token(another_tenant_user_dict: dict) -> str:
    return create_access_token(data={"sub": another_tenant_user_dict["id"]})


@pytest.fixture(scope="function")
def property_(db: Session, landlord_user_dict: dict):
    """An available property owned by the landlord."""
    from sara.repositories.property import create_property

    return create_property(
        db,
        owner_id=landlord_user_dict["id"],
        code="DEP-101",
        region="Metropolitana",
        comuna="Providencia",
        address="Av. Providencia 1234, depto 101",
        type="apartment",
        status="available",
        price=550000,
        bedrooms=2,
        bathrooms=1,
    )


@pytest.fixture(scope="function")
def draft_contract(db: Session, landlord_user_dict: dict, tenant_user_dict: dict, property_):
    """A draft contract from the landlord to the tenant, not yet signed."""
    from sara.repositories.contract import create_contract

    return create_contract(
        db,
        property_id=property_.id,
        landlord_id=landlord_user_dict["id"],
        tenant_id=None,
        tenant_email=tenant_user_dict["email"],
        tenant_name=tenant_user_dict["name"],
        status="draft",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 12, 31),
        rent_amount=550000,
        rent_payment_day=5,
        property_usage="residential",
        ipc_adjustment=False,
        prohibition_to_sublet=True,
        signature_token="test-signature-token",
        signed_by_tenant=False,
        signed_by_landlord=False,
    )
