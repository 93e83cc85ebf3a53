"""CreateClient Use Case"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.domain.client import Client, ClientProductConfig, ClientStatus
from src.domain.credit_account import CreditAccount
from .dtos import ClientDTO, CreateClientCommandDTO

logger = logging.getLogger(__name__)


class CreateClient:
    """
    Use Case: Register a client

    Creates the client, its product configuration and an empty credit
    account in one transaction. Codes are unique (CLIENT_CODE_EXISTS).
    """

    def __init__(
        self,
        uow: UnitOfWork,
        client_repo: ClientRepository,
        account_repo: CreditAccountRepository,
    ):
        self.uow = uow
        self.client_repo = client_repo
        self.account_repo = account_repo

    async def execute(self, command: CreateClientCommandDTO) -> Result[ClientDTO]:
        code = command.code.strip()
        try:
            if await self.client_repo.get_by_code(code):
                return Return.err(
                    Error(code="CLIENT_CODE_EXISTS", message=f"Client code {code} is already in use")
                )

            client = await self.client_repo.create(
                Client(
                    name=command.name.strip(),
                    code=code,
                    status=ClientStatus.ACTIVE,
                    contact_email=command.contact_email,
                )
            )
            config = await self.client_repo.save_product_config(
                ClientProductConfig(
                    client_id=client.id,
                    product_id=command.product_id,
                    enabled=True,
                    allow_overdraft=command.allow_overdraft,
                    webhook_url=command.webhook_url,
                )
            )
            await self.account_repo.create(
                CreditAccount(client_id=client.id, product_id=command.product_id, balance=0)
            )
            await self.uow.commit()

            logger.info(f"Created client {client.id} ({client.code})")
            return Return.ok(
                ClientDTO(
                    id=client.id,
                    name=client.name,
                    code=client.code,
                    status=ClientStatus(client.status).value,
                    contact_email=client.contact_email,
                    product_id=config.product_id,
                    product_enabled=config.enabled,
                    allow_overdraft=config.allow_overdraft,
                    webhook_url=config.webhook_url,
                    created_at=client.created_at,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to create client {code}: {e}")
            return Return.err(
                Error(
                    code="CREATE_CLIENT_FAILED",
                    message="Failed to create client",
                    reason=str(e),
                )
            )
