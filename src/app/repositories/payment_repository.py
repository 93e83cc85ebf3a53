"""Payment Repository Interface

Defines the contract for payment persistence.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from src.domain.payment import Payment


class PaymentRepository(ABC):
    """Repository interface for Payment persistence"""

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        """
        Create a new payment

        Args:
            payment: Payment entity to persist

        Returns:
            Created Payment
        """
        pass

    @abstractmethod
    async def list_by_invoice(self, invoice_id: str) -> List[Payment]:
        """Retrieve the payments recorded against an invoice, newest first"""
        pass

    @abstractmethod
    async def list_advance(self, client_id: str) -> List[Payment]:
        """Retrieve the payments of a client not tied to any invoice, newest first"""
        pass

    @abstractmethod
    async def count_by_invoice(self, invoice_id: str) -> int:
        """Count payments recorded against an invoice"""
        pass

    @abstractmethod
    async def next_receipt_number(self, now: datetime) -> str:
        """
        Generate the next receipt number for the month of ``now``

        Format: RCP-YYYY-MM-NNN (e.g., RCP-2024-02-001)
        """
        pass
