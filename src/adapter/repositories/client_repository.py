"""SQLAlchemy Client Repository Implementation"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.client_repository import ClientRepository
from src.domain.client import Client, ClientProductConfig, ClientStatus


class SqlAlchemyClientRepository(ClientRepository):
    """SQLAlchemy implementation of ClientRepository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, client_id: str) -> Optional[Client]:
        statement = select(Client).where(Client.id == client_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_code(self, code: str) -> Optional[Client]:
        statement = select(Client).where(Client.code == code)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def create(self, client: Client) -> Client:
        self.session.add(client)
        await self.session.flush()
        await self.session.refresh(client)
        return client

    async def list_active(self) -> List[Client]:
        statement = (
            select(Client)
            .where(Client.status == ClientStatus.ACTIVE)
            .order_by(Client.created_at.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_product_config(
        self, client_id: str, product_id: str
    ) -> Optional[ClientProductConfig]:
        statement = select(ClientProductConfig).where(
            ClientProductConfig.client_id == client_id,
            ClientProductConfig.product_id == product_id,
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def save_product_config(self, config: ClientProductConfig) -> ClientProductConfig:
        config.updated_at = datetime.utcnow()
        self.session.add(config)
        await self.session.flush()
        await self.session.refresh(config)
        return config
