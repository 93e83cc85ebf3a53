"""Get Balance Use Case

Reads a client's current credit balance.
"""

from libs.result import Result, Return, Error
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from .dtos import BalanceResponseDTO


class GetBalance:
    """
    Use case: View credit balance

    The balance is SUM(amount) of the ledger, read without the ledger lock.
    """

    def __init__(self, client_repo: ClientRepository, ledger_repo: CreditLedgerRepository):
        self.client_repo = client_repo
        self.ledger_repo = ledger_repo

    async def execute(self, client_id: str, product_id: str) -> Result[BalanceResponseDTO]:
        """
        Get balance for a (client, product)

        Args:
            client_id: Client identifier
            product_id: Product identifier

        Returns:
            Result[BalanceResponseDTO]: Balance or CLIENT_NOT_FOUND
        """
        client = await self.client_repo.get_by_id(client_id)
        if not client:
            return Return.err(Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found"))

        config = await self.client_repo.get_product_config(client_id, product_id)
        balance = await self.ledger_repo.get_balance(client_id, product_id)
        latest = await self.ledger_repo.get_latest(client_id, product_id)

        return Return.ok(
            BalanceResponseDTO(
                client_id=client_id,
                product_id=product_id,
                balance=balance,
                allow_overdraft=bool(config and config.allow_overdraft),
                last_entry_at=latest.created_at if latest else None,
            )
        )
