"""
Exam Cell Question Bank - Pytest Configuration and Fixtures
Shared fixtures for all test modules
"""
import asyncio
import os
from typing import Any, Dict, List, Optional

import pytest

# Set test environment before importing settings - use in-memory DB
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["IMAGE_HOST_CLOUD_NAME"] = "demo"
os.environ["DEBUG"] = "false"

from src.question_bank.errors import ImageUploadError
from src.question_bank.models import BankSelection


# ================== Configuration Payloads ==================

@pytest.fixture
def configuration_payload() -> Dict[str, Any]:
    """Two modules, two section rules (2 marks x 5, 10 marks x 2)."""
    return {
        "modules_info": [{"module_no": 1}, {"module_no": 2}],
        "sections_rules": [
            {"section_name": "A", "marks": 2, "min_questions_count": 5},
            {"section_name": "B", "marks": 10, "min_questions_count": 2},
        ],
    }


# ================== Fake Collaborators ==================

class FakeConfigurationProvider:
    """
    Records every request; returns the payload or raises the configured error.
    With a gate set, the response waits for that event.
    """

    def __init__(self, payload: Any = None, error: Optional[Exception] = None):
        self.payload = payload
        self.error = error
        self.gate: Optional[asyncio.Event] = None
        self.requests: List[BankSelection] = []

    async def fetch_configuration(self, selection: BankSelection) -> Any:
        self.requests.append(selection)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.payload


class FakeImageHost:
    """
    In-memory image host. Uploads for a filename listed in `gates` wait for
    that event; filenames in `failures` raise ImageUploadError.
    """

    def __init__(self):
        self.calls: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}
        self.failures: set = set()

    def gate(self, filename: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[filename] = event
        return event

    async def upload(self, filename: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        self.calls.append(filename)
        gate = self.gates.get(filename)
        if gate is not None:
            await gate.wait()
        if filename in self.failures:
            raise ImageUploadError(f"Image upload failed ({filename})")
        return f"https://img.example/{filename}"


@pytest.fixture
def make_provider():
    """Factory for providers with a custom payload or error."""
    return FakeConfigurationProvider


@pytest.fixture
def fake_provider(configuration_payload):
    return FakeConfigurationProvider(payload=configuration_payload)


@pytest.fixture
def fake_image_host():
    return FakeImageHost()


# ================== Builder Fixtures ==================

@pytest.fixture
def builder():
    from src.question_bank.builder import QuestionBankBuilder
    return QuestionBankBuilder()


@pytest.fixture
def confirmed_category(builder):
    """Scenario: 2 modules, module 1 has one confirmed category (5 marks x 3 questions)."""
    modules = builder.init_modules(2)
    category = builder.add_categories(modules[0].id, 1)[0]
    builder.set_category_field(modules[0].id, category.id, "marks", "5")
    builder.set_category_field(modules[0].id, category.id, "numberOfQuestions", "3")
    builder.confirm_category(modules[0].id, category.id)
    return modules[0], category


# ================== Database Fixtures ==================

@pytest.fixture
def test_db_session():
    """
    Create a test database session with isolated SQLite.
    StaticPool keeps the single in-memory connection alive for the whole test.
    """
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker
    from sqlalchemy.pool import StaticPool
    from src.database.models import Base

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


# ================== Auth Fixtures ==================

def make_token(user_id: str, role: str, name: Optional[str] = None) -> str:
    from api.auth.utils import issue_user_token
    return issue_user_token(user_id, role, name=name)


@pytest.fixture
def faculty_headers():
    return {"Authorization": f"Bearer {make_token('faculty-1', 'faculty', 'Dr. Rao')}"}


@pytest.fixture
def other_faculty_headers():
    return {"Authorization": f"Bearer {make_token('faculty-2', 'faculty')}"}


@pytest.fixture
def exam_cell_headers():
    return {"Authorization": f"Bearer {make_token('exam-cell-1', 'exam_cell')}"}


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token('admin-1', 'admin')}"}


# ================== FastAPI Test Client Fixtures ==================

@pytest.fixture
def session_store():
    from api.sessions import SessionStore
    store = SessionStore(ttl_seconds=3600, max_size=50)
    yield store
    store.clear()


@pytest.fixture
def test_client(test_db_session, session_store, fake_provider, fake_image_host):
    """
    FastAPI TestClient with the database, session store and external
    collaborators replaced. Lifespan is not run.
    """
    from fastapi.testclient import TestClient
    from api.limiter import limiter
    from api.main import app
    from api.routes.question_banks import get_configuration_provider, get_image_host
    from api.sessions import get_session_store
    from src.database.db import get_db

    def override_get_db():
        yield test_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_configuration_provider] = lambda: fake_provider
    app.dependency_overrides[get_image_host] = lambda: fake_image_host
    limiter.reset()

    client = TestClient(app, raise_server_exceptions=False)
    yield client

    app.dependency_overrides.clear()
