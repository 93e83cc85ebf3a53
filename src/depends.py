from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.settlement_lock import InProcessSettlementLock
from src.adapter.services.innovatif_gateway import create_verification_gateway
from src.adapter.services.client_webhook_notifier import create_client_notifier
from src.app.services.client_notifier import ClientNotifier
from src.app.services.settlement_lock import SettlementLock
from src.app.services.verification_gateway import VerificationGateway

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# One lock registry per process so every request shares the same keys
settlement_lock = InProcessSettlementLock()


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_settlement_lock() -> SettlementLock:
    return settlement_lock


def get_verification_gateway() -> VerificationGateway:
    return create_verification_gateway(ApplicationConfig)


def get_client_notifier() -> ClientNotifier:
    return create_client_notifier(ApplicationConfig)


def get_config():
    return ApplicationConfig
