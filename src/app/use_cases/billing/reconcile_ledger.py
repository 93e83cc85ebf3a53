"""ReconcileLedger Use Case

Checks every credit account's balance counter against its ledger.
"""

import logging
import time
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.repositories.credit_account_repository import CreditAccountRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from .dtos import LedgerDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcileLedger:
    """
    Use Case: Reconcile credit accounts against the ledger

    Business Rules:
    1. For each account, ledger_sum = SUM(amount) of its entries
    2. The account counter must equal ledger_sum
    3. The newest entry's balance_after must equal ledger_sum
    4. Does NOT modify any data (read-only reconciliation)

    Flow:
    1. Get all accounts
    2. For each account compare counter, sum and newest balance_after
    3. Return reconciliation result with all discrepancies
    """

    def __init__(
        self,
        account_repo: CreditAccountRepository,
        ledger_repo: CreditLedgerRepository,
    ):
        self.account_repo = account_repo
        self.ledger_repo = ledger_repo

    async def execute(self) -> Result[ReconciliationResultDTO]:
        """
        Execute ledger reconciliation

        Returns:
            Result[ReconciliationResultDTO]: Reconciliation result with any discrepancies
        """
        start_time = time.time()
        reconciliation_time = datetime.utcnow()

        try:
            logger.info("Starting credit ledger reconciliation")

            # Step 1: Get all accounts
            accounts = await self.account_repo.get_all()
            total_accounts = len(accounts)

            # Step 2: Check each account
            discrepancies: list[LedgerDiscrepancyDTO] = []

            for account in accounts:
                ledger_sum = await self.ledger_repo.get_balance(account.client_id, account.product_id)
                latest = await self.ledger_repo.get_latest(account.client_id, account.product_id)
                latest_balance = latest.balance_after if latest else 0

                if account.balance == ledger_sum and latest_balance == ledger_sum:
                    continue

                discrepancies.append(
                    LedgerDiscrepancyDTO(
                        client_id=account.client_id,
                        product_id=account.product_id,
                        account_id=account.id,
                        account_balance=account.balance,
                        ledger_sum=ledger_sum,
                        latest_balance_after=latest.balance_after if latest else None,
                        discrepancy=account.balance - ledger_sum,
                    )
                )

                logger.warning(
                    f"Discrepancy found for client {account.client_id}/{account.product_id} "
                    f"(account_id={account.id}): "
                    f"account_balance={account.balance}, "
                    f"ledger_sum={ledger_sum}, "
                    f"latest_balance_after={latest_balance}"
                )

            # Step 3: Build response
            execution_time_ms = int((time.time() - start_time) * 1000)

            response = ReconciliationResultDTO(
                total_accounts_checked=total_accounts,
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {total_accounts} accounts in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {total_accounts} accounts balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            logger.error(f"Ledger reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile credit ledger",
                    reason=str(e),
                )
            )
