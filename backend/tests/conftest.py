"""Pytest configuration and fixtures for backend tests.

Every test gets its own SQLite database file (aiosqlite) with the full
schema created, so tests never share rows.
"""

import os
import tempfile
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set test environment variables before importing app modules
os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'socialhub-test.db')}"
)
os.environ["JWT_ACCESS_SECRET_USER"] = "u" * 24 + "-access-user-secret"
os.environ["JWT_REFRESH_SECRET_USER"] = "u" * 24 + "-refresh-user-secret"
os.environ["JWT_ACCESS_SECRET_ADMIN"] = "a" * 24 + "-access-admin-secret"
os.environ["JWT_REFRESH_SECRET_ADMIN"] = "a" * 24 + "-refresh-admin-secret"
# Cheap argon2 parameters keep the suite fast
os.environ["PASSWORD_HASH_TIME_COST"] = "1"
os.environ["PASSWORD_HASH_MEMORY_COST"] = "8"
os.environ["PASSWORD_HASH_PARALLELISM"] = "1"
os.environ["AUTO_CREATE_SCHEMA"] = "false"

TEST_PASSWORD = "correct-horse-battery"


class RecordingMailer:
    """Mailer that keeps every message so tests can read the OTP."""

    def __init__(self):
        self.messages = []

    async def send_otp(self, message) -> None:
        self.messages.append(message)

    def last_otp_for(self, email: str) -> str:
        for message in reversed(self.messages):
            if message.to == email:
                return message.otp
        raise AssertionError(f"No OTP sent to {email}")


# --- Rate Limiter Reset Fixture ---


@pytest.fixture(autouse=True)
def reset_login_rate_limiter():
    """Clear failed-login bookkeeping so tests don't throttle each other."""
    from socialhub.api.auth import reset_login_attempts

    reset_login_attempts()
    yield
    reset_login_attempts()


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a throwaway SQLite database with all tables."""
    import socialhub.models  # noqa: F401
    from socialhub.core.database import Base, enable_sqlite_foreign_keys

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest_asyncio.fixture(scope="function")
async def async_client(
    db_session: AsyncSession, mailer: RecordingMailer
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database and mailer overrides."""
    from socialhub.core.database import get_db
    from socialhub.main import app
    from socialhub.services.mailer import get_mailer

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up
    app.dependency_overrides.clear()
    app.state.connections.clear()


# --- Test Factories ---


@pytest.fixture
def user_factory(db_session):
    """Factory for creating confirmed system-provider users."""
    from socialhub.models.user import Provider, Role, User
    from socialhub.services.hashing import hash_secret

    counter = {"n": 0}

    async def _create_user(
        first_name: str = "Test",
        last_name: str = "User",
        email: str | None = None,
        password: str = TEST_PASSWORD,
        role: str = Role.USER,
        confirmed: bool = True,
        frozen: bool = False,
        **kwargs,
    ) -> User:
        counter["n"] += 1
        now = datetime.now(UTC)
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email or f"user{counter['n']}@socialhub.app",
            password_hash=await hash_secret(password),
            provider=Provider.SYSTEM,
            role=role,
            confirmed_at=now if confirmed else None,
            frozen_at=now if frozen else None,
            friends=[],
            blocked=[],
            **kwargs,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _create_user


@pytest.fixture
def make_friends(db_session):
    """Link two users as friends (both directions)."""

    async def _make_friends(first, second) -> None:
        first.friends.append(second)
        second.friends.append(first)
        await db_session.commit()

    return _make_friends


@pytest.fixture
def post_factory(db_session):
    """Factory for creating posts directly in the database."""
    from socialhub.models.post import AllowComment, Availability, Post

    async def _create_post(
        author,
        content: str = "Hello world",
        availability: str = Availability.PUBLIC,
        allow_comment: str = AllowComment.ALLOW,
        tags=None,
        specific_friends=None,
        **kwargs,
    ) -> Post:
        post = Post(
            author_id=author.id,
            content=content,
            availability=availability,
            allow_comment=allow_comment,
            tags=list(tags or []),
            specific_friends=list(specific_friends or []),
            likes=[],
            **kwargs,
        )
        db_session.add(post)
        await db_session.commit()
        return post

    return _create_post


def auth_headers(credentials) -> dict[str, str]:
    """Authorization header for a CredentialPair's access token."""
    return {"Authorization": f"{credentials.token_type} {credentials.access_token}"}


def refresh_headers(credentials) -> dict[str, str]:
    return {"Authorization": f"{credentials.token_type} {credentials.refresh_token}"}


@pytest.fixture
def login_headers():
    """Issue a fresh token pair for a user and return its access header."""
    from socialhub.services.tokens import issue_credential_pair

    def _login_headers(user) -> dict[str, str]:
        return auth_headers(issue_credential_pair(user))

    return _login_headers
