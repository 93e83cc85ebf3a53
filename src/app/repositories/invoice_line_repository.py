"""Invoice Line Item Repository Interface

Defines the contract for invoice line item persistence.
"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.invoice_line import InvoiceLineItem


class InvoiceLineRepository(ABC):
    """Repository interface for InvoiceLineItem persistence"""

    @abstractmethod
    async def create_many(self, lines: List[InvoiceLineItem]) -> List[InvoiceLineItem]:
        """
        Persist several line items

        Args:
            lines: Line items to persist

        Returns:
            Created line items with generated IDs
        """
        pass

    @abstractmethod
    async def list_by_invoice(self, invoice_id: str) -> List[InvoiceLineItem]:
        """Retrieve the line items of an invoice"""
        pass
