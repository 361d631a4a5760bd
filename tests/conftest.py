"""Pytest fixtures and configuration for Aurora tests."""

import os
import tempfile

# Point the app at throwaway storage before any aurora module reads the environment.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="aurora-uploads-")

import pytest
from datetime import datetime
from typing import List, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from aurora.database.database import Base, get_db
from aurora.database import models  # noqa: F401
from aurora.database.user_repository import UserRepository
from aurora.database.conversation_repository import ConversationRepository
from aurora.database.experience_repository import ExperienceRepository
from aurora.auth.passwords import hash_password
from aurora.integrations.completion import CompletionClient
from aurora.integrations.email_sender import EmailSender
from aurora.integrations.photo_storage import PhotoStorage
from aurora.models.conversation import Message
from aurora.models.user import User


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "correct-horse-battery"
TEST_JWT_SECRET = "test-jwt-secret"


class FakeCompletionClient(CompletionClient):
    """Completion client double that records prompts and returns a canned reply."""

    def __init__(self, reply: Optional[str] = "Hello there."):
        self.reply = reply
        self.calls: List[dict] = []

    def complete(self, prompt: str, history: Optional[List[Message]] = None) -> Optional[str]:
        self.calls.append({"prompt": prompt, "history": history})
        return self.reply


class RecordingEmailSender(EmailSender):
    """EmailSender that keeps outgoing mail in memory instead of talking SMTP."""

    def __init__(self, fail: bool = False):
        super().__init__(user="noreply@example.com", password="app-password", app_name="Aurora Test")
        self.fail = fail
        self.sent: List[dict] = []

    def send(self, to: str, subject: str, text: str) -> None:
        if self.fail:
            raise ConnectionRefusedError("SMTP relay unavailable")
        self.sent.append({"to": to, "subject": subject, "text": text})


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    """Every test runs with a configured signing secret unless it removes it."""
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    return TEST_JWT_SECRET


@pytest.fixture
def test_password():
    """Plaintext password of both seeded users."""
    return TEST_PASSWORD


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def other_user_id():
    """A second user who must never see the first user's data."""
    return "other-user-456"


@pytest.fixture(scope="function")
def db_session(test_user_id, other_user_id):
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    Also creates two users in the database.
    """
    from aurora.database.models import UserDB

    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    now = datetime.utcnow()
    password_hash = hash_password(TEST_PASSWORD)
    session.add_all([
        UserDB(
            id=test_user_id,
            name="Test User",
            email="test@example.com",
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        ),
        UserDB(
            id=other_user_id,
            name="Other User",
            email="other@example.com",
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        ),
    ])
    session.commit()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user_repository(db_session: Session):
    return UserRepository(db_session)


@pytest.fixture
def conversation_repository(db_session: Session):
    return ConversationRepository(db_session)


@pytest.fixture
def experience_repository(db_session: Session):
    return ExperienceRepository(db_session)


@pytest.fixture
def test_user(user_repository, test_user_id) -> User:
    """The seeded test user as the app sees it."""
    return user_repository.get(test_user_id)


@pytest.fixture
def other_user(user_repository, other_user_id) -> User:
    return user_repository.get(other_user_id)


@pytest.fixture
def completion_client():
    return FakeCompletionClient()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def failing_email_sender():
    return RecordingEmailSender(fail=True)


@pytest.fixture
def photo_storage(tmp_path):
    return PhotoStorage(upload_dir=str(tmp_path / "uploads"), temp_dir=str(tmp_path / "tmp"))


def _override_services(app, db_session, completion_client, email_sender, photo_storage):
    from aurora.api.dependencies import get_completion_client, get_email_sender, get_photo_storage

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_completion_client] = lambda: completion_client
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_photo_storage] = lambda: photo_storage


@pytest.fixture
def test_client(db_session: Session, test_user, completion_client, email_sender, photo_storage):
    """FastAPI test client with database, services and authentication overridden."""
    from aurora.api.app import app
    from aurora.auth.dependencies import get_current_user

    _override_services(app, db_session, completion_client, email_sender, photo_storage)
    app.dependency_overrides[get_current_user] = lambda: test_user

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(db_session: Session, completion_client, email_sender, photo_storage):
    """FastAPI test client that goes through real token authentication."""
    from aurora.api.app import app

    _override_services(app, db_session, completion_client, email_sender, photo_storage)

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(test_user_id):
    """Authorization header carrying a valid token for the test user."""
    from aurora.auth.jwt import TokenService

    token = TokenService(TEST_JWT_SECRET).issue(test_user_id)
    return {"Authorization": f"Bearer {token}"}
