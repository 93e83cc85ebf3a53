"""Background workers for billing service"""
from .ledger_reconciler import LedgerReconcilerWorker
from .monthly_invoicing import MonthlyInvoicingWorker

__all__ = ["LedgerReconcilerWorker", "MonthlyInvoicingWorker"]
