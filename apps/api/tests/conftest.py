"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema created per test
- Organization, member and super admin fixtures
- Access token minting for authenticated tests
- HTTPX AsyncClient per role, and a sync transport for the client package
"""
import os
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Generator

# Must be set before the app (and its settings / limiter) is imported
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_PROVIDER"] = "log"
os.environ["SENTRY_DSN"] = ""

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from volunteer_hub.core.deps import get_db
from volunteer_hub.core.security import hash_password
from volunteer_hub.db.base import Base
from volunteer_hub.db.enums import Role
from volunteer_hub.db.models import Organization, SuperAdmin, User, WhitelistedEmail
from volunteer_hub.main import app
from volunteer_hub.services import auth_service

ORG_PASSWORD = "orgpass123"
SUPER_ADMIN_PASSWORD = "superpass123"


# =============================================================================
# Database Fixtures
# =============================================================================

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh schema per test.

    App code commits freely; the tables are dropped afterwards.
    """
    Base.metadata.create_all(test_engine)
    session = TestSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(test_engine)


@pytest.fixture(autouse=True)
def local_storage(tmp_path, monkeypatch):
    """Documents land in a per-test directory."""
    from volunteer_hub.core.config import settings

    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(settings, "LOCAL_STORAGE_PATH", str(tmp_path / "uploads"))
    return tmp_path / "uploads"


def _make_org(db: Session, name: str = "Helping Hands", password: str = ORG_PASSWORD) -> Organization:
    org = Organization(
        id=uuid.uuid4(),
        name=name,
        shared_password_hash=hash_password(password),
    )
    db.add(org)
    db.flush()
    return org


def _make_member(
    db: Session,
    org: Organization,
    email: str,
    role: Role = Role.VOLUNTEER,
    first_name: str | None = None,
    last_name: str | None = None,
) -> User:
    """Whitelist entry plus user record, as after a first login."""
    db.add(WhitelistedEmail(email=email, organization_id=org.id, role=role.value))
    user = User(
        id=uuid.uuid4(),
        email=email,
        organization_id=org.id,
        role=role.value,
        first_name=first_name,
        last_name=last_name,
    )
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def org_factory(db: Session):
    """Create extra organizations: org_factory("Food Bank")."""
    def factory(name: str, password: str = ORG_PASSWORD, is_active: bool = True) -> Organization:
        org = _make_org(db, name, password)
        org.is_active = is_active
        db.commit()
        return org
    return factory


@pytest.fixture
def member_factory(db: Session):
    """Whitelist and create a member: member_factory(org, "a@b.org", Role.VOLUNTEER)."""
    def factory(org: Organization, email: str, role: Role = Role.VOLUNTEER, **names) -> User:
        user = _make_member(db, org, email, role, **names)
        db.commit()
        return user
    return factory


@pytest.fixture(scope="function")
def test_org(db: Session) -> Organization:
    org = _make_org(db)
    db.commit()
    return org


@pytest.fixture(scope="function")
def admin_user(db: Session, test_org: Organization) -> User:
    user = _make_member(db, test_org, "admin@helping.org", Role.NONPROFIT_ADMIN, "Alice", "Admin")
    db.commit()
    return user


@pytest.fixture(scope="function")
def volunteer_user(db: Session, test_org: Organization) -> User:
    user = _make_member(db, test_org, "vol@helping.org", Role.VOLUNTEER, "Victor", "Volunteer")
    db.commit()
    return user


@pytest.fixture(scope="function")
def super_admin(db: Session) -> SuperAdmin:
    admin = SuperAdmin(
        id=uuid.uuid4(),
        email="root@platform.org",
        name="Root",
        password_hash=hash_password(SUPER_ADMIN_PASSWORD),
    )
    db.add(admin)
    db.commit()
    return admin


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    account: User | SuperAdmin
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def token_for(account: User | SuperAdmin) -> str:
    return auth_service.issue_tokens(account).access_token


@pytest.fixture(scope="function")
def admin_auth(admin_user: User) -> TestAuth:
    return TestAuth(account=admin_user, token=token_for(admin_user))


@pytest.fixture(scope="function")
def volunteer_auth(volunteer_user: User) -> TestAuth:
    return TestAuth(account=volunteer_user, token=token_for(volunteer_user))


@pytest.fixture(scope="function")
def super_admin_auth(super_admin: SuperAdmin) -> TestAuth:
    return TestAuth(account=super_admin, token=token_for(super_admin))


# =============================================================================
# Client Fixtures
# =============================================================================

@asynccontextmanager
async def _client(db: Session, headers: dict | None = None) -> AsyncGenerator[AsyncClient, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers=headers or {},
        ) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated AsyncClient for public endpoints."""
    async with _client(db) as c:
        yield c


@pytest.fixture(scope="function")
async def admin_client(db: Session, admin_auth: TestAuth) -> AsyncGenerator[AsyncClient, None]:
    async with _client(db, admin_auth.headers) as c:
        yield c


@pytest.fixture(scope="function")
async def volunteer_client(db: Session, volunteer_auth: TestAuth) -> AsyncGenerator[AsyncClient, None]:
    async with _client(db, volunteer_auth.headers) as c:
        yield c


@pytest.fixture(scope="function")
async def super_admin_client(
    db: Session, super_admin_auth: TestAuth
) -> AsyncGenerator[AsyncClient, None]:
    async with _client(db, super_admin_auth.headers) as c:
        yield c


@pytest.fixture(scope="function")
def app_http(db: Session) -> Generator[TestClient, None, None]:
    """
    Synchronous httpx client bound to the ASGI app.

    Passed as `http=` to the client package's ApiClient so the whole stack
    (gateway, envelopes, routers, services) runs end to end.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
