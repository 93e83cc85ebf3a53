"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from src.domain.invoice import Invoice, InvoiceStatus


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Provides access to invoice data for billing operations.
    """

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice
        """
        pass

    @abstractmethod
    async def get_by_id(self, invoice_id: str, for_update: bool = False) -> Optional[Invoice]:
        """
        Retrieve invoice by ID

        Args:
            invoice_id: Invoice ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_by_client(
        self,
        client_id: str,
        status: Optional[InvoiceStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Invoice]:
        """
        Retrieve invoices of a client, newest first

        Args:
            client_id: Client identifier
            status: Optional filter by status
            limit: Maximum number of invoices to return
            offset: Offset for pagination

        Returns:
            List of invoices
        """
        pass

    @abstractmethod
    async def list_pending(self, client_id: str) -> List[Invoice]:
        """Retrieve invoices of a client stuck in PENDING"""
        pass

    @abstractmethod
    async def list_unpaid(self, client_id: str) -> List[Invoice]:
        """
        Retrieve GENERATED/PARTIAL invoices with an unpaid remainder

        Args:
            client_id: Client identifier

        Returns:
            List of invoices ordered by period_end ascending
        """
        pass

    @abstractmethod
    async def get_last_completed(self, client_id: str) -> Optional[Invoice]:
        """Retrieve the non-pending invoice with the latest period_end, or None"""
        pass

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        """
        Update an existing invoice

        Args:
            invoice: Invoice entity with updated values

        Returns:
            Updated Invoice
        """
        pass

    @abstractmethod
    async def delete(self, invoice: Invoice) -> None:
        """Delete an invoice (only PENDING invoices are ever deleted)"""
        pass

    @abstractmethod
    async def next_invoice_number(self, now: datetime) -> str:
        """
        Generate the next invoice number for the month of ``now``

        Format: INV-YYYY-MM-NNN (e.g., INV-2024-02-001)
        """
        pass
