"""Pytest configuration and fixtures"""
import os
import uuid
from typing import Callable, Generator, Tuple

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


def _pem_pair() -> Tuple[str, str]:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


ACCESS_PRIVATE_KEY, ACCESS_PUBLIC_KEY = _pem_pair()
REFRESH_PRIVATE_KEY, REFRESH_PUBLIC_KEY = _pem_pair()

# Settings are read once at import time, so the environment must be ready first
TEST_DATABASE_URL = "sqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ACCESS_TOKEN_PRIVATE_KEY"] = ACCESS_PRIVATE_KEY
os.environ["ACCESS_TOKEN_PUBLIC_KEY"] = ACCESS_PUBLIC_KEY
os.environ["ACCESS_TOKEN_MAXAGE"] = "15"
os.environ["REFRESH_TOKEN_PRIVATE_KEY"] = REFRESH_PRIVATE_KEY
os.environ["REFRESH_TOKEN_PUBLIC_KEY"] = REFRESH_PUBLIC_KEY
os.environ["REFRESH_TOKEN_MAXAGE"] = "60"

from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from athletics_api.database import Base, SessionLocal, engine, get_db  # noqa: E402
from athletics_api.main import app  # noqa: E402
from athletics_api.models.user import User  # noqa: E402
from athletics_api.utils.auth import hash_password  # noqa: E402
from athletics_api.utils.keys import KeyMaterial  # noqa: E402

USER_EMAIL = "jordan@example.com"
USER_PASSWORD = "correct-horse-battery"
OTHER_EMAIL = "sam@example.com"
OTHER_PASSWORD = "another-long-password"


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database session override"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def key_material() -> KeyMaterial:
    """KeyMaterial built from the test keypairs"""
    return KeyMaterial(
        access_private_key=ACCESS_PRIVATE_KEY,
        access_public_key=ACCESS_PUBLIC_KEY,
        access_token_max_age=15,
        refresh_private_key=REFRESH_PRIVATE_KEY,
        refresh_public_key=REFRESH_PUBLIC_KEY,
        refresh_token_max_age=60,
    )


def _make_user(db: Session, email: str, password: str, first_name: str) -> User:
    user = User(
        first_name=first_name,
        last_name="Tester",
        email=email,
        phone=None,
        active=True,
        password=hash_password(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db: Session) -> User:
    """A registered user"""
    return _make_user(db, USER_EMAIL, USER_PASSWORD, "Jordan")


@pytest.fixture
def other_user(db: Session) -> User:
    """A second registered user"""
    return _make_user(db, OTHER_EMAIL, OTHER_PASSWORD, "Sam")


@pytest.fixture
def login(client: TestClient) -> Callable:
    """Log in through the API; returns the response"""

    def _login(email: str = USER_EMAIL, password: str = USER_PASSWORD):
        return client.post("/api/auth/login", json={"email": email, "password": password})

    return _login


def token_uuid_of(token: str) -> uuid.UUID:
    """Read the token_uuid claim without verifying the signature"""
    return uuid.UUID(jwt.get_unverified_claims(token)["token_uuid"])


@pytest.fixture
def uuid_of() -> Callable[[str], uuid.UUID]:
    return token_uuid_of
