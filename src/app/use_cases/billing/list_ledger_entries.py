"""
List Ledger Entries Use Case

Retrieves credit ledger history for a client with pagination.
"""
from libs.result import Result, Return, Error
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from .add_credits import to_entry_dto
from .dtos import LedgerPageDTO


class ListLedgerEntries:
    """
    Use case: View credit ledger

    Entries are ordered newest first; the page carries the current balance.
    """

    def __init__(self, client_repo: ClientRepository, ledger_repo: CreditLedgerRepository):
        self.client_repo = client_repo
        self.ledger_repo = ledger_repo

    async def execute(
        self, client_id: str, product_id: str, limit: int = 50, offset: int = 0
    ) -> Result[LedgerPageDTO]:
        """
        List entries with pagination.

        Args:
            client_id: Client identifier
            product_id: Product identifier
            limit: Maximum number of entries to return (default 50)
            offset: Number of entries to skip (default 0)

        Returns:
            Result[LedgerPageDTO]: Paginated entry list
        """
        client = await self.client_repo.get_by_id(client_id)
        if not client:
            return Return.err(Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found"))

        entries, total = await self.ledger_repo.list_entries(
            client_id, product_id, limit=limit, offset=offset
        )
        balance = await self.ledger_repo.get_balance(client_id, product_id)

        return Return.ok(
            LedgerPageDTO(
                client_id=client_id,
                product_id=product_id,
                balance=balance,
                entries=[to_entry_dto(entry) for entry in entries],
                total=total,
                limit=limit,
                offset=offset,
            )
        )
