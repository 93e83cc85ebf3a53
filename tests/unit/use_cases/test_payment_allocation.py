"""Unit tests for payment allocation

Tests cover:
- Exact payment of an invoice (no residual)
- Partial and excess payments
- Advance payments without an invoice
- Half-up rounding of credits and the recorded residual
"""

from decimal import Decimal
import pytest

from src.app.use_cases.invoicing.payment_allocation import allocate_payment, credits_to_currency
from src.domain.invoice import InvoiceStatus


class TestAllocatePayment:
    def test_exact_payment_pays_invoice(self):
        """
        Given: an invoice with 1000 credits remaining and SST at 8%
        When: RM 108.00 is paid
        Then: 1000 credits are applied, nothing is excess and the residual is zero
        """
        # Act
        allocation = allocate_payment(Decimal("108.00"), Decimal("0.08"), 1000, 10)

        # Assert
        assert allocation.credits == 1000
        assert allocation.base_amount == Decimal("100.00")
        assert allocation.sst_amount == Decimal("8.00")
        assert allocation.rounding_residual == Decimal("0.00")
        assert allocation.invoice_portion == 1000
        assert allocation.excess == 0
        assert allocation.invoice_status == InvoiceStatus.PAID

    def test_partial_payment(self):
        allocation = allocate_payment(Decimal("54.00"), Decimal("0.08"), 1000, 10)

        assert allocation.credits == 500
        assert allocation.invoice_portion == 500
        assert allocation.excess == 0
        assert allocation.invoice_status == InvoiceStatus.PARTIAL

    def test_over_payment_splits_excess(self):
        """
        Given: an invoice with 620 credits remaining
        When: RM 108.00 (1000 credits) is paid
        Then: 620 credits are applied and 380 are excess
        """
        allocation = allocate_payment(Decimal("108.00"), Decimal("0.08"), 620, 10)

        assert allocation.invoice_portion == 620
        assert allocation.excess == 380
        assert allocation.invoice_portion + allocation.excess == allocation.credits
        assert allocation.invoice_status == InvoiceStatus.PAID

    def test_advance_payment_is_all_excess(self):
        allocation = allocate_payment(Decimal("216.00"), Decimal("0.08"), None, 10)

        assert allocation.credits == 2000
        assert allocation.invoice_portion == 0
        assert allocation.excess == 2000
        assert allocation.invoice_status is None

    def test_rounding_residual_is_recorded(self):
        """
        Given: SST at 8%
        When: RM 100.00 is paid (base 92.5925..., 925.925... credits)
        Then: 926 credits are granted and the unrepresentable cents are the residual
        """
        allocation = allocate_payment(Decimal("100.00"), Decimal("0.08"), None, 10)

        assert allocation.credits == 926
        assert allocation.base_amount == Decimal("92.60")
        assert allocation.sst_amount == Decimal("7.41")
        assert allocation.rounding_residual == Decimal("-0.01")
        assert allocation.actual_total + allocation.rounding_residual == Decimal("100.00")

    def test_credits_round_half_up(self):
        # 0.27 / 1.08 * 10 = 2.5 -> 3; 0.06 / 1.08 * 10 = 0.56 -> 1
        assert allocate_payment(Decimal("0.27"), Decimal("0.08"), None, 10).credits == 3
        assert allocate_payment(Decimal("0.54"), Decimal("0.08"), None, 10).credits == 5
        assert allocate_payment(Decimal("0.06"), Decimal("0.08"), None, 10).credits == 1


class TestAllocationInvariants:
    @pytest.mark.parametrize("sst_rate", [Decimal("0"), Decimal("0.06"), Decimal("0.08")])
    @pytest.mark.parametrize("remaining", [None, 0, 500, 10000])
    def test_sweep_of_totals(self, sst_rate, remaining):
        """
        Given: Totals from RM 0.00 to RM 2000.00
        When: Each is allocated
        Then: The recomputed total is within one credit of the payment and every credit is placed once
        """
        one_credit = (Decimal("1") + sst_rate) / 10

        for cents in range(0, 200001, 37):
            total = Decimal(cents) / 100
            allocation = allocate_payment(total, sst_rate, remaining, 10)

            assert abs(allocation.actual_total - total) <= one_credit, total
            assert allocation.actual_total + allocation.rounding_residual == total
            assert allocation.invoice_portion + allocation.excess == allocation.credits
            assert allocation.credits >= 0
            if remaining is not None:
                assert allocation.invoice_portion <= remaining


class TestCreditsToCurrency:
    def test_conversion(self):
        assert credits_to_currency(620) == Decimal("62.00")
        assert credits_to_currency(5) == Decimal("0.50")
        assert credits_to_currency(1, 3) == Decimal("0.33")
