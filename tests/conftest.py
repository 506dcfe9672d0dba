"""
CITT Platform - Test Configuration and Fixtures
"""
import os
from typing import Callable, Generator

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Set testing environment before the app reads its settings
os.environ['DATABASE_URL'] = 'sqlite:///./test_citt.db'
os.environ['JWT_SECRET'] = 'test-jwt-secret-key-for-testing'
os.environ['DEBUG'] = 'false'
os.environ['DEMO_ACCOUNTS'] = 'false'

from backend.main import app
from backend.db.base import Base
from backend.db.session import SessionLocal, engine
from backend.models.user import User
from backend.core.roles import Role
from backend.core.security import hash_password, create_access_token
from backend.services.permission_service import permission_service

fake = Faker()

DEFAULT_PASSWORD = 'testpassword123'


@pytest.fixture(scope='function')
def db() -> Generator[Session, None, None]:
    """Fresh schema and session for each test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """Test client bound to the per-test schema"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seeded_permissions(db: Session) -> int:
    """Default role_permissions rows"""
    return permission_service.seed_defaults(db)


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Factory for users with a given role"""
    def _make_user(role=Role.INNOVATOR, email=None, password=DEFAULT_PASSWORD, **fields) -> User:
        user = User(
            email=email or fake.unique.email(),
            hashed_password=hash_password(password),
            name=fake.name(),
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def super_admin(make_user) -> User:
    return make_user(Role.SUPER_ADMIN)


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user(Role.ADMIN)


@pytest.fixture
def ip_manager(make_user) -> User:
    return make_user(Role.IP_MANAGER)


@pytest.fixture
def innovator(make_user) -> User:
    return make_user(Role.INNOVATOR)


@pytest.fixture
def other_innovator(make_user) -> User:
    return make_user(Role.INNOVATOR)


def token_for(user: User) -> str:
    return create_access_token({'sub': str(user.id), 'email': user.email})


def headers_for(user: User) -> dict:
    """Bearer header for a user"""
    return {'Authorization': f'Bearer {token_for(user)}'}


@pytest.fixture
def auth_headers() -> Callable[[User], dict]:
    return headers_for
