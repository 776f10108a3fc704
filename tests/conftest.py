"""
Shared fixtures.

Settings are read from the environment when ``app.core.config`` is first
imported, so the test database and a fast bcrypt cost are set up here,
before anything from ``app`` is imported.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from app.auth.models import Role, User
from app.core.database import Base, SessionLocal, engine
from app.core.security import password_hasher, token_service
from app.main import app

DEFAULT_PASSWORD = "Passw0rd1"


@pytest.fixture
def db_session():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db_session):
    """Factory persisting a user with a known password."""
    counter = {"n": 0}

    def _make_user(
        role: Role = Role.EMPLOYEE,
        email: str = None,
        password: str = DEFAULT_PASSWORD,
        is_active: bool = True,
        first_name: str = "Test",
        last_name: str = None
    ) -> User:
        counter["n"] += 1
        user = User(
            first_name=first_name,
            last_name=last_name or f"{role.value.title()}{counter['n']}",
            email=email or f"{role.value.lower()}{counter['n']}@example.com",
            password_hash=password_hasher.hash(password),
            role=role,
            is_active=is_active
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def employee(make_user):
    return make_user(Role.EMPLOYEE)


@pytest.fixture
def manager(make_user):
    return make_user(Role.MANAGER)


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN)


def auth_headers(user: User) -> dict:
    token = token_service.issue(user.email, user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers
