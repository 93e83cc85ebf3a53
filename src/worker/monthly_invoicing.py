"""Monthly Invoicing Background Worker

Generates invoices for every active client, with the billing period ending
on the last day of the previous month (billing timezone).
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
import time
from datetime import date, datetime, timedelta
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyClientRepository,
    SqlAlchemyCreditLedgerRepository,
    SqlAlchemyInvoiceLineRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.billing.billing_clock import last_day_of_previous_month, to_local
from src.app.use_cases.invoicing import (
    CleanupStuckInvoices,
    GenerateInvoice,
    GenerateInvoiceCommandDTO,
    MonthlyInvoicingResultDTO,
)

logger = logging.getLogger(__name__)

# Expected refusals; the client simply has no invoice this month
SKIP_CODES = ("NOTHING_TO_INVOICE", "INVOICE_PENDING")


class MonthlyInvoicingWorker:
    """
    Background worker for monthly invoice generation

    Features:
    - Period ends on the last day of the previous month
    - Stale pending invoices (older than STUCK_INVOICE_MINUTES) are cleaned
      up before generating
    - Each client runs in its own database session; one failure does not
      stop the others
    - Idempotent: a client already invoiced up to the period end has
      nothing to invoice

    Usage:
        worker = MonthlyInvoicingWorker()
        result = await worker.run_once()

        await worker.run_forever()
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        config=ApplicationConfig,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to config.DB_URI)
            config: ApplicationConfig (or any object with the same attributes)
        """
        self.config = config
        self.db_uri = db_uri or config.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("MonthlyInvoicingWorker initialized")

    async def _invoice_client(self, client_id: str, period_end: date):
        async with self.async_session_factory() as session:
            uow = SqlAlchemyUnitOfWork(session)
            client_repo = SqlAlchemyClientRepository(session)
            invoice_repo = SqlAlchemyInvoiceRepository(session)

            cleanup = CleanupStuckInvoices(uow, client_repo, invoice_repo, SqlAlchemyPaymentRepository(session))
            cleaned = await cleanup.execute(
                client_id, older_than=timedelta(minutes=self.config.STUCK_INVOICE_MINUTES)
            )
            if cleaned.is_err():
                logger.warning(f"Stuck invoice cleanup failed for client {client_id}: {cleaned.error.message}")

            generate = GenerateInvoice(
                uow=uow,
                client_repo=client_repo,
                invoice_repo=invoice_repo,
                line_repo=SqlAlchemyInvoiceLineRepository(session),
                ledger_repo=SqlAlchemyCreditLedgerRepository(session),
                product_id=self.config.DEFAULT_PRODUCT_ID,
                sst_rate=self.config.SST_RATE,
                credits_per_currency_unit=self.config.CREDITS_PER_CURRENCY_UNIT,
                payment_terms_days=self.config.PAYMENT_TERMS_DAYS,
                utc_offset_hours=self.config.BILLING_UTC_OFFSET_HOURS,
            )
            return await generate.execute(
                GenerateInvoiceCommandDTO(client_id=client_id, end_date=period_end, generated_by=None)
            )

    async def run_once(self, period_end: Optional[date] = None) -> MonthlyInvoicingResultDTO:
        """
        Generate invoices for all active clients

        Args:
            period_end: Last day invoiced (defaults to the last day of the previous month)

        Returns:
            MonthlyInvoicingResultDTO with summary
        """
        start_time = time.time()
        period_end = period_end or last_day_of_previous_month(self.config.BILLING_UTC_OFFSET_HOURS)

        if not self.config.INVOICING_ENABLED:
            logger.info("Monthly invoicing is disabled, skipping")
            return MonthlyInvoicingResultDTO(
                period_end=period_end, total_clients=0, invoices_generated=0,
                skipped=0, failed=0, errors=[], execution_time_ms=0,
            )

        logger.info(f"Starting monthly invoicing for period ending {period_end.isoformat()}")

        async with self.async_session_factory() as session:
            clients = await SqlAlchemyClientRepository(session).list_active()
            client_ids = [client.id for client in clients]

        generated = skipped = failed = 0
        errors = []

        for client_id in client_ids:
            try:
                result = await self._invoice_client(client_id, period_end)
            except Exception as e:
                logger.error(f"Unexpected error invoicing client {client_id}: {e}")
                failed += 1
                errors.append({"client_id": client_id, "error": str(e)})
                continue

            if result.is_ok():
                generated += 1
                logger.info(f"Generated invoice {result.value.invoice_number} for client {client_id}")
            elif result.error.code in SKIP_CODES:
                skipped += 1
                logger.info(f"No invoice for client {client_id}: {result.error.message}")
            else:
                failed += 1
                errors.append({"client_id": client_id, "error": result.error.message})
                logger.error(f"Failed to invoice client {client_id}: {result.error.message}")

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Monthly invoicing complete: {generated}/{len(client_ids)} generated, "
            f"{skipped} skipped, {failed} failed, {execution_time_ms}ms"
        )

        return MonthlyInvoicingResultDTO(
            period_end=period_end,
            total_clients=len(client_ids),
            invoices_generated=generated,
            skipped=skipped,
            failed=failed,
            errors=errors,
            execution_time_ms=execution_time_ms,
        )

    async def run_forever(self, check_interval_seconds: int = 86400):
        """
        Run continuously, invoicing once per month on its first day

        Args:
            check_interval_seconds: Seconds between checks (default: 24 hours)
        """
        logger.info(f"Starting continuous monthly invoicing with {check_interval_seconds}s interval")

        last_processed_month = None

        while True:
            try:
                today = to_local(datetime.utcnow(), self.config.BILLING_UTC_OFFSET_HOURS).date()
                current_month = (today.year, today.month)

                if today.day <= 3 and last_processed_month != current_month:
                    result = await self.run_once()
                    last_processed_month = current_month
                    logger.info(f"Processed monthly invoicing: {result.invoices_generated} generated")
                else:
                    logger.debug("Skipping invoicing check - not first 3 days or already processed")

            except Exception as e:
                logger.error(f"Invoicing cycle failed: {e}")

            await asyncio.sleep(check_interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("MonthlyInvoicingWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Invoice up to the end of the previous month
        python -m src.worker.monthly_invoicing

        # Invoice up to a specific day
        python -m src.worker.monthly_invoicing --end-date 2024-01-31

        # Run continuously
        python -m src.worker.monthly_invoicing --continuous
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Monthly Invoicing Worker")
    parser.add_argument("--end-date", type=date.fromisoformat, help="Last day invoiced (YYYY-MM-DD)")
    parser.add_argument("--continuous", action="store_true", help="Run continuously")
    args = parser.parse_args()

    worker = MonthlyInvoicingWorker()

    try:
        if args.continuous:
            await worker.run_forever()
        else:
            result = await worker.run_once(period_end=args.end_date)
            print("Invoicing complete:")
            print(f"  Active clients: {result.total_clients}")
            print(f"  Invoices generated: {result.invoices_generated}")
            print(f"  Skipped: {result.skipped}")
            print(f"  Failed: {result.failed}")
            print(f"  Execution time: {result.execution_time_ms}ms")
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
