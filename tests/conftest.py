from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import user_repo
from app.main import app
from app.models.user import User
from app.services import auth_service, token_service

# Ensure repo root is on sys.path so `import app` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def reset_user_repo() -> None:
    """Every test starts from an empty in-memory credential store."""
    user_repo.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(subject: str = "test-user", role: str = "user") -> str:
    """Create a valid ES256 access token for testing."""
    return token_service.create_access_token(sub=subject, role=role)


def auth(token: str | None) -> dict[str, str]:
    if token is None:
        return {}
    return {"Authorization": f"Bearer {token}"}


def seed_user(
    email: str = "a@x.com",
    *,
    role: str = "user",
    first_name: str = "A",
    last_name: str = "B",
    password: str | None = None,
) -> User:
    """Insert a user straight into the in-memory repo.

    The hash is a placeholder unless a password is given; argon2 is slow
    enough to matter across the whole suite.
    """
    password_hash = auth_service.hash_password(password) if password else "x"
    user = User.new(
        email=email,
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        role=role,
        profile_img="img.jpg",
    )
    asyncio.run(user_repo.add(user))
    return user


def stored(user: User) -> User | None:
    return asyncio.run(user_repo.get_by_id(user.id))


@pytest.fixture
def admin() -> User:
    return seed_user("admin@x.com", role="admin", first_name="Ada")


@pytest.fixture
def alice() -> User:
    return seed_user("alice@x.com", first_name="Alice", last_name="Liddell")


@pytest.fixture
def bob() -> User:
    return seed_user("bob@x.com", first_name="Bob", last_name="Builder")
