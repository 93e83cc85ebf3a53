"""Unit tests for CleanupStuckInvoices use case"""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.invoicing.cleanup_stuck_invoices import CleanupStuckInvoices
from src.domain.client import Client
from src.domain.invoice import Invoice, InvoiceStatus


def pending_invoice(invoice_id, number, generated_at):
    return Invoice(
        id=invoice_id,
        client_id="client_1",
        invoice_number=number,
        period_start=datetime(2024, 1, 31, 16, 0),
        period_end=datetime(2024, 2, 29, 15, 59, 59, 999999),
        due_date=date(2024, 3, 15),
        sst_rate=Decimal("0.08"),
        status=InvoiceStatus.PENDING,
        generated_at=generated_at,
    )


@pytest.fixture
def repos():
    client_repo = MagicMock()
    client_repo.get_by_id = AsyncMock(return_value=Client(id="client_1", name="Acme Lending", code="ACME"))

    now = datetime.utcnow()
    invoice_repo = MagicMock()
    invoice_repo.list_pending = AsyncMock(
        return_value=[
            pending_invoice("inv_old", "INV-2024-03-001", now - timedelta(hours=2)),
            pending_invoice("inv_new", "INV-2024-03-002", now - timedelta(minutes=1)),
        ]
    )
    invoice_repo.delete = AsyncMock()

    payment_repo = MagicMock()
    payment_repo.count_by_invoice = AsyncMock(return_value=0)
    return client_repo, invoice_repo, payment_repo


@pytest.mark.asyncio
class TestCleanupStuckInvoices:
    async def test_deletes_all_pending(self, mock_uow, repos):
        """
        Given: Two pending invoices without payments
        When: Cleanup runs without an age limit
        Then: Both are deleted and the change is committed
        """
        # Arrange
        client_repo, invoice_repo, payment_repo = repos
        use_case = CleanupStuckInvoices(mock_uow, client_repo, invoice_repo, payment_repo)

        # Act
        result = await use_case.execute("client_1")

        # Assert
        assert result.is_ok()
        assert result.value.deleted_count == 2
        assert result.value.invoice_numbers == ["INV-2024-03-001", "INV-2024-03-002"]
        assert invoice_repo.delete.await_count == 2
        mock_uow.commit.assert_awaited_once()

    async def test_age_limit_keeps_recent_invoices(self, mock_uow, repos):
        client_repo, invoice_repo, payment_repo = repos
        use_case = CleanupStuckInvoices(mock_uow, client_repo, invoice_repo, payment_repo)

        result = await use_case.execute("client_1", older_than=timedelta(minutes=30))

        assert result.value.invoice_numbers == ["INV-2024-03-001"]

    async def test_invoice_with_payments_is_kept(self, mock_uow, repos):
        client_repo, invoice_repo, payment_repo = repos
        payment_repo.count_by_invoice.side_effect = lambda invoice_id: 1 if invoice_id == "inv_old" else 0
        use_case = CleanupStuckInvoices(mock_uow, client_repo, invoice_repo, payment_repo)

        result = await use_case.execute("client_1")

        assert result.value.invoice_numbers == ["INV-2024-03-002"]
        invoice_repo.delete.assert_awaited_once()

    async def test_unknown_client(self, mock_uow, repos):
        client_repo, invoice_repo, payment_repo = repos
        client_repo.get_by_id.return_value = None

        result = await CleanupStuckInvoices(mock_uow, client_repo, invoice_repo, payment_repo).execute("missing")

        assert result.error.code == "CLIENT_NOT_FOUND"
        invoice_repo.list_pending.assert_not_awaited()

    async def test_delete_failure_rolls_back(self, mock_uow, repos):
        client_repo, invoice_repo, payment_repo = repos
        invoice_repo.delete.side_effect = Exception("locked")

        result = await CleanupStuckInvoices(mock_uow, client_repo, invoice_repo, payment_repo).execute("client_1")

        assert result.error.code == "CLEANUP_INVOICES_FAILED"
        mock_uow.rollback.assert_awaited_once()
