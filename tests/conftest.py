"""
Pytest configuration and fixtures for identity service testing.
Provides an in-memory database, wired services and an HTTP client.
"""
import os

# Must be set before club_auth.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, List, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from club_auth.api.deps import get_auth_service, get_notifier
from club_auth.core.database import enable_sqlite_foreign_keys, get_db
from club_auth.core.security import TokenIssuer
from club_auth.main import app
from club_auth.models import Base
from club_auth.models.verification_token import TokenPurpose, VerificationToken
from club_auth.repositories import TokenRepository, UserRepository
from club_auth.services.auth_service import AuthService
from tests.factories import TEST_PASSWORD, test_hasher

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class RecordingNotifier:
    """Notifier double that keeps every message instead of sending it."""

    def __init__(self):
        self.verification: List[Tuple[str, str, str]] = []
        self.password_reset: List[Tuple[str, str, str]] = []

    async def send_verification_email(self, to: str, username: str, token: str) -> bool:
        self.verification.append((to, username, token))
        return True

    async def send_password_reset_email(self, to: str, username: str, token: str) -> bool:
        self.password_reset.append((to, username, token))
        return True


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def user_repository():
    return UserRepository()


@pytest.fixture
def token_repository():
    return TokenRepository()


@pytest.fixture
def auth_service(user_repository, token_repository):
    """AuthService wired to the SQLAlchemy repositories."""
    return AuthService(
        user_repository=user_repository,
        token_repository=token_repository,
        hasher=test_hasher,
        token_issuer=TokenIssuer(),
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest_asyncio.fixture
async def unverified_user(auth_service, db_session):
    """Registered user who has not confirmed their email yet."""
    return await auth_service.create_user(db_session, "alice@example.com", TEST_PASSWORD, "Alice")


@pytest_asyncio.fixture
async def verified_user(auth_service, db_session):
    """Registered user whose email has been confirmed."""
    user = await auth_service.create_user(db_session, "bob@example.com", TEST_PASSWORD, "bob")
    token = await auth_service.generate_verification_token(db_session, user.id)
    return await auth_service.verify_token(db_session, token)


async def store_expired_token(
    db_session: AsyncSession,
    user_id: str,
    purpose: TokenPurpose = TokenPurpose.EMAIL_VERIFICATION,
    token: str = "e" * 64
) -> str:
    """Persist a token whose expiry is already in the past."""
    db_session.add(VerificationToken(
        user_id=user_id,
        token=token,
        purpose=purpose,
        expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
    ))
    await db_session.commit()
    return token


@pytest_asyncio.fixture
async def async_client(db_session, auth_service, notifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with database and notifier overridden."""
    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
