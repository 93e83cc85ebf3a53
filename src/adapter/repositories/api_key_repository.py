"""SQLAlchemy API Key Repository Implementation"""

from datetime import datetime
from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.api_key_repository import ApiKeyRepository
from src.domain.client_api_key import ApiKeyStatus, ClientApiKey


class SqlAlchemyApiKeyRepository(ApiKeyRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_by_hash(self, key_hash: str) -> Optional[ClientApiKey]:
        statement = select(ClientApiKey).where(
            ClientApiKey.key_hash == key_hash,
            ClientApiKey.status == ApiKeyStatus.ACTIVE,
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def create(self, api_key: ClientApiKey) -> ClientApiKey:
        self.session.add(api_key)
        await self.session.flush()
        await self.session.refresh(api_key)
        return api_key

    async def touch(self, api_key: ClientApiKey) -> None:
        api_key.last_used_at = datetime.utcnow()
        self.session.add(api_key)
        await self.session.flush()
