# tests/conftest.py
import os
import tempfile

# Set up test environment variables BEFORE any other imports
os.environ["ENVIRONMENT"] = "testing"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("JWT_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="issue-log-uploads-"))
os.environ.setdefault("BCRYPT_ROUNDS", "4")
# Rate limits are exercised explicitly; keep them out of the way elsewhere
os.environ.setdefault("AUTH_RATE_LIMIT_ATTEMPTS", "1000")
os.environ.setdefault("REFRESH_RATE_LIMIT_ATTEMPTS", "1000")

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.config import settings
from app.core.rate_limit import reset_rate_limiters
from app.core.security import TokenService, hash_password
from app.database import Database
from app.main import create_app
from models import Comment, File, Issue, User


@pytest.fixture(autouse=True)
def _isolate_process_state(tmp_path, monkeypatch):
    """Fresh upload directory and rate-limit counters for every test."""
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    monkeypatch.setattr(settings, "upload_dir", str(upload_dir))
    reset_rate_limiters()
    yield
    reset_rate_limiters()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest_asyncio.fixture
async def database(tmp_path):
    """A connected database on a throwaway SQLite file."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.connect(create_schema=True)
    yield db
    await db.disconnect()


@pytest_asyncio.fixture
async def test_db(database):
    """Create a test database session."""
    async with database.session() as session:
        yield session


@pytest.fixture
def app(database):
    return create_app(database)


@pytest_asyncio.fixture
async def client(app):
    """HTTP client bound to the app in-process."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def token_service():
    return TokenService()


# User fixtures
@pytest.fixture
def make_user(test_db):
    """Factory creating users directly in the database."""

    async def _make_user(
        email: str | None = None,
        password: str = "password123",
        first_name: str = "Test",
        last_name: str = "User",
    ) -> User:
        user = User(
            email=(email or f"user-{uuid.uuid4().hex[:8]}@example.com").lower(),
            password_hash=hash_password(password, rounds=4),
            first_name=first_name,
            last_name=last_name,
        )
        test_db.add(user)
        await test_db.commit()
        await test_db.refresh(user)
        return user

    return _make_user


@pytest_asyncio.fixture
async def test_user(make_user):
    """Create a test user."""
    return await make_user(email="test@example.com", first_name="Alice", last_name="Author")


@pytest_asyncio.fixture
async def test_user_2(make_user):
    """Create a second test user."""
    return await make_user(email="test2@example.com", first_name="Bob", last_name="Builder")


@pytest.fixture
def auth_headers_for(token_service):
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {token_service.create_access_token(user.id, user.email)}"}

    return _headers


@pytest.fixture
def auth_headers(test_user, auth_headers_for):
    return auth_headers_for(test_user)


@pytest.fixture
def auth_headers_2(test_user_2, auth_headers_for):
    return auth_headers_for(test_user_2)


# Issue fixtures
@pytest.fixture
def make_issue(test_db):
    """Factory creating issues directly in the database."""

    async def _make_issue(
        creator: User,
        title: str = "Login button broken",
        description: str = "Clicking login does nothing",
        priority: str = "medium",
        status: str = "pending",
        assignee: User | None = None,
    ) -> Issue:
        issue = Issue(
            title=title,
            description=description,
            priority=priority,
            status=status,
            created_by=creator.id,
            assigned_to=assignee.id if assignee else None,
        )
        test_db.add(issue)
        await test_db.commit()
        await test_db.refresh(issue)
        return issue

    return _make_issue


@pytest_asyncio.fixture
async def test_issue(make_issue, test_user):
    """Create a test issue owned by ``test_user``."""
    return await make_issue(test_user)


@pytest.fixture
def make_comment(test_db):
    async def _make_comment(issue: Issue, author: User, content: str = "Looking into it") -> Comment:
        comment = Comment(content=content, issue_id=issue.id, user_id=author.id)
        test_db.add(comment)
        await test_db.commit()
        await test_db.refresh(comment)
        return comment

    return _make_comment


@pytest.fixture
def make_file(test_db, upload_dir):
    """Factory creating a file record with a real blob on disk."""

    async def _make_file(
        issue: Issue,
        uploader: User,
        name: str = "notes.txt",
        content: bytes = b"hello world",
        mime_type: str = "text/plain",
    ) -> File:
        stored_name = f"{uuid.uuid4().hex}_{name}"
        blob = upload_dir / stored_name
        blob.write_bytes(content)
        file = File(
            stored_name=stored_name,
            original_name=name,
            mime_type=mime_type,
            size_bytes=len(content),
            blob_path=str(blob),
            issue_id=issue.id,
            uploaded_by=uploader.id,
        )
        test_db.add(file)
        await test_db.commit()
        await test_db.refresh(file)
        return file

    return _make_file
