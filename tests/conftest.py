"""Pytest configuration and fixtures for testing."""

from datetime import UTC, date, datetime, timedelta
from uuid import UUID, uuid4

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from backend.app.adapters.openrouter.types import AIResponse
from backend.app.api.deps import get_db_session
from backend.app.config import Settings
from backend.app.db.base import Base
from backend.app.db.models import Note, Profile
from backend.app.db.session import build_engine
from backend.app.main import create_app
from backend.app.models.common import TravelStyle

TEST_JWT_SECRET = "test-jwt-secret"

PLAN_MARKDOWN = "# Lisbon in 5 days\n\n## Day 1\n- Alfama walk\n"


class FakePlanProvider:
    """Plan provider that returns canned content or raises a given error."""

    def __init__(self, content: str = PLAN_MARKDOWN, error: Exception | None = None):
        self.content = content
        self.error = error
        self.prompts: list[str] = []

    async def generate_plan(self, prompt: str) -> AIResponse:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return AIResponse(
            content=self.content,
            model="openai/gpt-4o-mini",
            prompt_tokens=412,
            completion_tokens=958,
            request_id="req-test",
        )

    async def aclose(self) -> None:
        pass


def make_token(
    user_id: UUID,
    *,
    secret: str = TEST_JWT_SECRET,
    audience: str = "authenticated",
    expires_in: timedelta = timedelta(hours=1),
    email: str | None = "traveler@example.com",
) -> str:
    """Sign an access token the way the auth backend does."""
    payload = {
        "sub": str(user_id),
        "aud": audience,
        "exp": datetime.now(UTC) + expires_in,
        "email": email,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture(scope="function")
def test_db_engine():
    """Create a test database engine with in-memory SQLite."""
    engine = build_engine("sqlite:///:memory:")

    # Create all tables
    Base.metadata.create_all(engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_db_engine):
    """Session factory bound to the test engine."""
    return sessionmaker(bind=test_db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def test_session(session_factory):
    """Create a test database session."""
    session = session_factory()

    yield session

    session.close()


@pytest.fixture
def user_id() -> UUID:
    """Identity of the caller in a test."""
    return uuid4()


@pytest.fixture
def profile(test_session: Session, user_id: UUID) -> Profile:
    """Complete profile with an unused quota window."""
    profile = Profile(
        id=user_id,
        travel_style=TravelStyle.cultural,
        interests=["food", "history"],
        daily_budget=100.0,
        generation_count=0,
        generation_limit_reset_at=datetime.now(UTC) + timedelta(days=20),
    )
    test_session.add(profile)
    test_session.commit()
    return profile


@pytest.fixture
def note(test_session: Session, user_id: UUID) -> Note:
    """Five-day Lisbon trip owned by the test user."""
    note = Note(
        user_id=user_id,
        destination="Lisbon",
        start_date=date(2025, 6, 1),
        end_date=date(2025, 6, 5),
        total_budget=800.0,
        additional_notes="Prefer walking tours",
    )
    test_session.add(note)
    test_session.commit()
    return note


@pytest.fixture
def fake_provider() -> FakePlanProvider:
    """Provider returning a canned itinerary."""
    return FakePlanProvider()


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the developer's .env file."""
    return Settings(
        _env_file=None,
        database_url="sqlite:///:memory:",
        auth_jwt_secret=TEST_JWT_SECRET,
        auth_enforced=True,
        session_cookie_secure=False,
        openrouter_api_key="test-openrouter-key",
    )


@pytest.fixture
def app(test_settings, session_factory, fake_provider):
    """Application wired to the test database and the fake provider."""
    app = create_app(settings=test_settings, provider_client=fake_provider)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = override_get_db

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    """Create test client with dependency overrides."""
    return TestClient(app)


@pytest.fixture
def auth_headers(user_id: UUID) -> dict[str, str]:
    """Bearer header for the test user."""
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def token_factory():
    """Access token signer for tests that need custom claims."""
    return make_token
