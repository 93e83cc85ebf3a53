"""SQLAlchemy Webhook Log Repository Implementation"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.webhook_log_repository import WebhookLogRepository
from src.domain.webhook_log import WebhookLog


class SqlAlchemyWebhookLogRepository(WebhookLogRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_hash(self, payload_hash: str) -> Optional[WebhookLog]:
        statement = select(WebhookLog).where(WebhookLog.payload_hash == payload_hash)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def create(self, log: WebhookLog) -> WebhookLog:
        self.session.add(log)
        await self.session.flush()
        await self.session.refresh(log)
        return log

    async def update(self, log: WebhookLog) -> WebhookLog:
        self.session.add(log)
        await self.session.flush()
        await self.session.refresh(log)
        return log
