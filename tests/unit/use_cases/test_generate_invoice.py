"""Unit tests for PreviewInvoice and GenerateInvoice use cases

Tests cover:
- Preview of usage plus carried unpaid balance
- Generation guards (pending invoice, nothing to invoice)
- Superseding unpaid invoices on generation
- Discarding the pending row when assembly fails
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.invoicing.dtos import GenerateInvoiceCommandDTO
from src.app.use_cases.invoicing.generate_invoice import GenerateInvoice
from src.app.use_cases.invoicing.preview_invoice import PreviewInvoice
from src.domain.client import Client
from src.domain.credit_ledger import CreditLedgerEntry, LedgerEntryType
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_line import InvoiceLineType


def usage_entry(amount=-50, tier_name="Tier 1") -> CreditLedgerEntry:
    return CreditLedgerEntry(
        client_id="client_1",
        product_id="true_identity",
        amount=amount,
        balance_after=0,
        type=LedgerEntryType.USAGE,
        tier_name=tier_name,
        created_at=datetime(2024, 2, 10, 4, 0),
    )


def invoice(invoice_id="inv_prev", number="INV-2024-02-001", due=120, paid=0, status=InvoiceStatus.GENERATED):
    return Invoice(
        id=invoice_id,
        client_id="client_1",
        invoice_number=number,
        period_start=datetime(2023, 12, 31, 16, 0),
        period_end=datetime(2024, 1, 31, 15, 59, 59, 999999),
        due_date=date(2024, 2, 15),
        total_usage_credits=due,
        amount_due_credits=due,
        amount_paid_credits=paid,
        sst_rate=Decimal("0.08"),
        status=status,
    )


@pytest.fixture
def client():
    return Client(id="client_1", name="Acme Lending", code="ACME", created_at=datetime(2023, 12, 1))


@pytest.fixture
def previous_invoice():
    return invoice()


@pytest.fixture
def repos(client, previous_invoice):
    client_repo = MagicMock()
    client_repo.get_by_id = AsyncMock(return_value=client)

    invoice_repo = MagicMock()
    invoice_repo.list_pending = AsyncMock(return_value=[])
    invoice_repo.get_last_completed = AsyncMock(return_value=previous_invoice)
    invoice_repo.list_unpaid = AsyncMock(return_value=[previous_invoice])
    invoice_repo.next_invoice_number = AsyncMock(return_value="INV-2024-03-001")
    invoice_repo.create = AsyncMock(side_effect=lambda inv: inv)
    invoice_repo.update = AsyncMock(side_effect=lambda inv: inv)
    invoice_repo.delete = AsyncMock()

    line_repo = MagicMock()
    line_repo.create_many = AsyncMock(side_effect=lambda lines: lines)

    ledger_repo = MagicMock()
    ledger_repo.get_balance = AsyncMock(return_value=-380)
    ledger_repo.list_usage_between = AsyncMock(return_value=[usage_entry() for _ in range(10)])
    return client_repo, invoice_repo, line_repo, ledger_repo


@pytest.fixture
def generate_use_case(mock_uow, repos):
    client_repo, invoice_repo, line_repo, ledger_repo = repos
    return GenerateInvoice(
        uow=mock_uow,
        client_repo=client_repo,
        invoice_repo=invoice_repo,
        line_repo=line_repo,
        ledger_repo=ledger_repo,
    )


@pytest.fixture
def preview_use_case(repos):
    client_repo, invoice_repo, _, ledger_repo = repos
    return PreviewInvoice(client_repo=client_repo, invoice_repo=invoice_repo, ledger_repo=ledger_repo)


def wire_invoice_lookup(invoice_repo, previous_invoice):
    """get_by_id returns the invoice created by the use case or the previous one"""
    def lookup(invoice_id, for_update=False):
        if invoice_id == previous_invoice.id:
            return previous_invoice
        return invoice_repo.create.call_args[0][0]
    invoice_repo.get_by_id = AsyncMock(side_effect=lookup)


@pytest.mark.asyncio
class TestPreviewInvoice:
    async def test_preview_includes_usage_and_unpaid_balance(self, preview_use_case):
        """
        Given: 10 sessions at 50 credits in February and an unpaid 120-credit invoice
        When: The next invoice is previewed
        Then: Amount due is 620 credits (RM 62.00) plus 8% SST
        """
        # Act
        result = await preview_use_case.execute("client_1", end_date=date(2024, 2, 29))

        # Assert
        assert result.is_ok()
        preview = result.value
        assert preview.can_generate is True
        assert preview.period_start == date(2024, 2, 1)
        assert preview.period_end == date(2024, 2, 29)
        assert preview.total_usage_credits == 500
        assert preview.previous_balance_credits == 120
        assert preview.amount_due_credits == 620
        assert preview.amount_due == Decimal("62.00")
        assert preview.sst_amount == Decimal("4.96")
        assert preview.total_with_sst == Decimal("66.96")
        assert preview.usage[0].session_count == 10
        assert preview.unpaid_invoices[0].invoice_number == "INV-2024-02-001"

    async def test_preview_blocked_by_pending_invoice(self, preview_use_case, repos):
        _, invoice_repo, _, _ = repos
        invoice_repo.list_pending.return_value = [invoice("inv_pending", "INV-2024-03-001", status=InvoiceStatus.PENDING)]

        result = await preview_use_case.execute("client_1")

        assert result.is_ok()
        assert result.value.can_generate is False
        assert "INV-2024-03-001" in result.value.reason

    async def test_preview_of_empty_period(self, preview_use_case):
        result = await preview_use_case.execute("client_1", end_date=date(2024, 1, 15))

        assert result.is_ok()
        assert result.value.can_generate is False
        assert "Start date is after end date" in result.value.reason


@pytest.mark.asyncio
class TestGenerateInvoice:
    async def test_generates_and_supersedes_unpaid_invoice(
        self, generate_use_case, repos, previous_invoice, mock_uow
    ):
        """
        Given: 500 credits of usage and a 120-credit unpaid invoice
        When: An invoice is generated
        Then: The new invoice is due 620, carries a previous-balance line and supersedes the old one
        """
        # Arrange
        _, invoice_repo, line_repo, _ = repos
        wire_invoice_lookup(invoice_repo, previous_invoice)

        # Act
        result = await generate_use_case.execute(
            GenerateInvoiceCommandDTO(client_id="client_1", end_date=date(2024, 2, 29))
        )

        # Assert
        assert result.is_ok()
        generated = result.value
        assert generated.invoice_number == "INV-2024-03-001"
        assert generated.status == "generated"
        assert generated.total_usage_credits == 500
        assert generated.previous_balance_credits == 120
        assert generated.amount_due_credits == 620
        assert generated.credit_balance_at_generation == -380

        assert previous_invoice.status == InvoiceStatus.SUPERSEDED
        assert previous_invoice.superseded_by_invoice_id == generated.id

        lines = line_repo.create_many.call_args[0][0]
        assert [line.line_type for line in lines] == [InvoiceLineType.USAGE, InvoiceLineType.PREVIOUS_BALANCE]
        assert lines[0].total_credits == 500
        assert lines[1].reference_invoice_number == "INV-2024-02-001"
        assert lines[1].total_credits == 120
        assert mock_uow.commit.call_count == 2

    async def test_pending_invoice_blocks_generation(self, generate_use_case, repos):
        _, invoice_repo, _, _ = repos
        invoice_repo.list_pending.return_value = [invoice("inv_pending", "INV-2024-03-001", status=InvoiceStatus.PENDING)]

        result = await generate_use_case.execute(GenerateInvoiceCommandDTO(client_id="client_1"))

        assert result.is_err()
        assert result.error.code == "INVOICE_PENDING"
        invoice_repo.create.assert_not_called()

    async def test_nothing_to_invoice(self, generate_use_case, repos):
        """
        Given: No usage in the period and no unpaid invoices
        When: Generation is requested
        Then: NOTHING_TO_INVOICE and nothing is written
        """
        # Arrange
        _, invoice_repo, _, ledger_repo = repos
        ledger_repo.list_usage_between.return_value = []
        invoice_repo.list_unpaid.return_value = []

        # Act
        result = await generate_use_case.execute(
            GenerateInvoiceCommandDTO(client_id="client_1", end_date=date(2024, 2, 29))
        )

        # Assert
        assert result.is_err()
        assert result.error.code == "NOTHING_TO_INVOICE"
        invoice_repo.create.assert_not_called()

    async def test_unknown_client(self, generate_use_case, repos):
        repos[0].get_by_id.return_value = None

        result = await generate_use_case.execute(GenerateInvoiceCommandDTO(client_id="missing"))

        assert result.error.code == "CLIENT_NOT_FOUND"

    async def test_assembly_failure_discards_pending_invoice(
        self, generate_use_case, repos, previous_invoice, mock_uow
    ):
        """
        Given: Writing the invoice lines fails after the pending row was committed
        When: Generation runs
        Then: The pending row is deleted and GENERATE_INVOICE_FAILED returned
        """
        # Arrange
        _, invoice_repo, line_repo, _ = repos
        wire_invoice_lookup(invoice_repo, previous_invoice)
        line_repo.create_many.side_effect = Exception("constraint violation")

        # Act
        result = await generate_use_case.execute(
            GenerateInvoiceCommandDTO(client_id="client_1", end_date=date(2024, 2, 29))
        )

        # Assert
        assert result.is_err()
        assert result.error.code == "GENERATE_INVOICE_FAILED"
        mock_uow.rollback.assert_called_once()
        deleted = invoice_repo.delete.call_args[0][0]
        assert deleted.invoice_number == "INV-2024-03-001"
