"""Shared test fixtures and configuration."""
import pytest
import os
from pathlib import Path
from unittest.mock import Mock, AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from salesnote.main import app
from salesnote.db.database import get_db
from salesnote.db.models import Base
from salesnote.core.config import Settings
from salesnote.core.dependencies import (
    get_catalog_repository,
    get_completion_service,
    get_ledger,
    get_transcription_service,
)
from salesnote.services.catalog.in_memory_catalog import InMemoryCatalogProvider
from salesnote.services.catalog.repository import CatalogRepository
from salesnote.services.draft.manager import reset_sessions


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_ORGANIZATION = "org-1"

WELL_FORMED_RESPONSE = """**Customer**: Acme Corp
**Quote / Order**:
| Product Name | Quantity | Unit Price | Discount | Validation Status |
|---|---|---|---|---|
| Widget A | 10 | $12.00 | | OK |
| Widget B | 2 | $19.00 | 5% | OK |
**Note**:
> Deliver Friday
**Task**:
> Call back about the spring catalog
**Ambiguities (if any)**:
> none"""


@pytest.fixture
def test_settings():
    """Override settings for testing."""
    return Settings(
        openai_api_key="test-key",
        database_url=TEST_DATABASE_URL,
    )


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def test_catalog_path():
    """Return path to test catalog YAML file."""
    return Path(__file__).parent / "fixtures" / "test_catalog.yaml"


@pytest.fixture
def test_catalog_repository(test_catalog_path):
    """Create catalog repository with test data."""
    provider = InMemoryCatalogProvider(catalog_file=str(test_catalog_path))
    return CatalogRepository(provider)


@pytest.fixture
async def catalog_snapshot(test_catalog_repository):
    """Snapshot of the test organization's catalog."""
    return await test_catalog_repository.get_snapshot(TEST_ORGANIZATION)


@pytest.fixture
def well_formed_response():
    """A completion that follows the prompt's output format."""
    return WELL_FORMED_RESPONSE


@pytest.fixture
def mock_openai():
    """Mock OpenAI API client."""
    mock_client = Mock()
    mock_completion = Mock()
    mock_completion.choices = [Mock(message=Mock(content=WELL_FORMED_RESPONSE))]
    mock_client.chat.completions.create = AsyncMock(return_value=mock_completion)
    mock_client.audio.transcriptions.create = AsyncMock(
        return_value=Mock(text="  Widget A, 10, $12  ")
    )
    return mock_client


@pytest.fixture
def mock_completion_service():
    """Completion service stub returning the well-formed response."""
    service = Mock()
    service.complete = AsyncMock(return_value=WELL_FORMED_RESPONSE)
    return service


@pytest.fixture
def mock_transcription_service():
    """Transcription service stub."""
    service = Mock()
    service.transcribe_audio = AsyncMock(return_value="Acme Corp")
    return service


@pytest.fixture
def mock_ledger():
    """Ledger stub whose writes succeed with increasing ids."""
    ledger = Mock()
    ledger.create_order = AsyncMock(return_value=Mock(id=1))
    ledger.create_task = AsyncMock(return_value=Mock(id=7))
    ledger.list_orders = AsyncMock(return_value=[])
    ledger.list_tasks = AsyncMock(return_value=[])
    return ledger


@pytest.fixture
def test_client(
    test_catalog_repository,
    mock_completion_service,
    mock_transcription_service,
    mock_ledger,
):
    """Create FastAPI test client with overrides."""
    async def _override_get_db():
        db = Mock()
        db.execute = AsyncMock()
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_catalog_repository] = lambda: test_catalog_repository
    app.dependency_overrides[get_completion_service] = lambda: mock_completion_service
    app.dependency_overrides[get_transcription_service] = lambda: mock_transcription_service
    app.dependency_overrides[get_ledger] = lambda: mock_ledger

    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clean_draft_sessions():
    """Clean up draft sessions before and after tests."""
    reset_sessions()
    yield
    reset_sessions()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test"
    )
