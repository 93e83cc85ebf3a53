from .dtos import (
    UsageLineDTO,
    UnpaidInvoiceDTO,
    InvoicePreviewDTO,
    GenerateInvoiceCommandDTO,
    InvoiceLineItemDTO,
    InvoiceDTO,
    PaymentDTO,
    InvoiceDetailDTO,
    CleanupResultDTO,
    RecordPaymentCommandDTO,
    PaymentResultDTO,
    MonthlyInvoicingResultDTO,
)
from .payment_allocation import PaymentAllocation, allocate_payment, credits_to_currency
from .preview_invoice import PreviewInvoice
from .generate_invoice import GenerateInvoice
from .cleanup_stuck_invoices import CleanupStuckInvoices
from .record_payment import RecordPayment
from .query_invoices import ListInvoices, GetInvoice, ListInvoicePayments, ListAdvancePayments

__all__ = [
    "UsageLineDTO",
    "UnpaidInvoiceDTO",
    "InvoicePreviewDTO",
    "GenerateInvoiceCommandDTO",
    "InvoiceLineItemDTO",
    "InvoiceDTO",
    "PaymentDTO",
    "InvoiceDetailDTO",
    "CleanupResultDTO",
    "RecordPaymentCommandDTO",
    "PaymentResultDTO",
    "MonthlyInvoicingResultDTO",
    "PaymentAllocation",
    "allocate_payment",
    "credits_to_currency",
    "PreviewInvoice",
    "GenerateInvoice",
    "CleanupStuckInvoices",
    "RecordPayment",
    "ListInvoices",
    "GetInvoice",
    "ListInvoicePayments",
    "ListAdvancePayments",
]
