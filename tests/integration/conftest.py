import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain  # noqa: F401  registers every table on SQLModel.metadata
from config import ApplicationConfig
from src.adapter.repositories import SqlAlchemyApiKeyRepository, SqlAlchemyClientRepository
from src.adapter.services.settlement_lock import InProcessSettlementLock
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.clients import IssueApiKey
from src.depends import (
    get_client_notifier,
    get_config,
    get_session,
    get_settlement_lock,
    get_verification_gateway,
)
from tests.fixtures import vendor
from tests.fixtures.seed import seed_client

ADMIN_TOKEN = "admin-test-token"


class IntegrationConfig(ApplicationConfig):
    AUTH_DISABLED = False
    ADMIN_API_TOKEN = ADMIN_TOKEN
    ENABLE_LOGGING_MIDDLEWARE = False
    CORS_ORIGINS = []
    PUBLIC_BASE_URL = "http://testserver"
    INNOVATIF_API_KEY = vendor.API_KEY
    INNOVATIF_PACKAGE_NAME = vendor.PACKAGE_NAME
    INNOVATIF_MD5_KEY = vendor.MD5_KEY
    INNOVATIF_CIPHERTEXT = vendor.CIPHERTEXT
    WEBHOOK_MAX_SKEW_SECONDS = 600
    OUTBOUND_WEBHOOK_SECRET = ""


@pytest.fixture
def test_config():
    return IntegrationConfig


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite database, recreated for every test"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'billing_test.db'}"
    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def settlement_lock():
    return InProcessSettlementLock()


@pytest.fixture
def fake_vendor():
    return vendor.FakeInnovatif(vendor.make_codec())


@pytest.fixture
def notifier():
    return vendor.RecordingNotifier()


@pytest_asyncio.fixture
async def client(db_session, test_config, fake_vendor, notifier, settlement_lock):
    """Create test client with database, vendor and notifier overrides"""
    from src.api.app import create_app

    app = create_app(test_config)

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_config] = lambda: test_config
    app.dependency_overrides[get_verification_gateway] = lambda: fake_vendor.gateway(test_config.PUBLIC_BASE_URL)
    app.dependency_overrides[get_client_notifier] = lambda: notifier
    app.dependency_overrides[get_settlement_lock] = lambda: settlement_lock

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest_asyncio.fixture
async def acme(db_session):
    """Active client ACME with a client webhook"""
    return await seed_client(db_session, code="ACME", webhook_url="https://acme.example/kyc-events")


@pytest_asyncio.fixture
async def acme_headers(db_session, acme):
    """Bearer API key headers for ACME"""
    use_case = IssueApiKey(
        SqlAlchemyUnitOfWork(db_session),
        SqlAlchemyClientRepository(db_session),
        SqlAlchemyApiKeyRepository(db_session),
    )
    result = await use_case.execute(acme.id)
    return {"Authorization": f"Bearer {result.value.api_key}"}
