"""CreateSession Use Case

Starts a verification session with the vendor for an API client.
"""

import logging
import secrets
import time
from datetime import datetime, timedelta
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.verification_gateway import GatewayError, TransactionRequest, VerificationGateway
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.repositories.pricing_tier_repository import PricingTierRepository
from src.app.repositories.verification_session_repository import VerificationSessionRepository
from src.app.use_cases.billing.billing_clock import month_window
from src.app.use_cases.billing.pricing import PricingResolver
from src.domain.client import ClientStatus
from src.domain.verification_session import VerificationSession, SessionStatus
from .dtos import CreateSessionCommandDTO, CreateSessionResultDTO

logger = logging.getLogger(__name__)

REF_ID_MAX_LENGTH = 32
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    digits = ""
    while number:
        number, remainder = divmod(number, 36)
        digits = _BASE36[remainder] + digits
    return digits or "0"


def generate_ref_id(client_code: str) -> str:
    """
    Vendor reference for a new session

    Format {code[:8]}_{base36 epoch ms}_{8 hex}, at most 32 characters.
    """
    ref_id = f"{client_code[:8]}_{_base36(int(time.time() * 1000))}_{secrets.token_hex(4)}"
    return ref_id[:REF_ID_MAX_LENGTH]


class CreateSession:
    """
    Use Case: Create a verification session

    Business Rules:
    1. document_name and document_number are required
    2. The client must be active and the product enabled for it
    3. Unless overdraft is allowed, the balance must cover the rate the next
       settlement would charge (advisory; nothing is deducted here)
    4. A vendor failure marks the session expired and answers GATEWAY_ERROR

    Flow:
    1. Validate input, client and product config
    2. Credit check
    3. Insert session (pending), commit
    4. Create vendor transaction, store onboarding id and URL, commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        client_repo: ClientRepository,
        session_repo: VerificationSessionRepository,
        ledger_repo: CreditLedgerRepository,
        tier_repo: PricingTierRepository,
        gateway: VerificationGateway,
        default_credits_per_session: int = 50,
        session_expiry_hours: int = 24,
        utc_offset_hours: int = 8,
    ):
        self.uow = uow
        self.client_repo = client_repo
        self.session_repo = session_repo
        self.ledger_repo = ledger_repo
        self.gateway = gateway
        self.pricing = PricingResolver(tier_repo, default_credits_per_session)
        self.session_expiry_hours = session_expiry_hours
        self.utc_offset_hours = utc_offset_hours

    async def execute(self, command: CreateSessionCommandDTO) -> Result[CreateSessionResultDTO]:
        """
        Execute session creation

        Args:
            command: CreateSessionCommandDTO

        Returns:
            Result[CreateSessionResultDTO]: Onboarding URL or error
        """
        if not command.document_name.strip() or not command.document_number.strip():
            return Return.err(
                Error(code="VALIDATION_ERROR", message="document_name and document_number are required")
            )

        try:
            # Step 1: Client and product
            client = await self.client_repo.get_by_id(command.client_id)
            if not client:
                return Return.err(
                    Error(code="CLIENT_NOT_FOUND", message=f"Client {command.client_id} not found")
                )
            if client.status != ClientStatus.ACTIVE:
                return Return.err(Error(code="CLIENT_NOT_ACTIVE", message="Client is not active"))

            config = await self.client_repo.get_product_config(client.id, command.product_id)
            if not config or not config.enabled:
                return Return.err(
                    Error(
                        code="PRODUCT_NOT_ENABLED",
                        message=f"Product {command.product_id} is not enabled for this client",
                    )
                )

            # Step 2: Credit check
            now = datetime.utcnow()
            balance = await self.ledger_repo.get_balance(client.id, command.product_id)
            month_start, month_end = month_window(now, self.utc_offset_hours)
            billed = await self.session_repo.count_billed_between(
                client.id, command.product_id, month_start, month_end
            )
            rate = await self.pricing.resolve_rate(client.id, command.product_id, billed + 1)

            if balance < rate.credits_per_session and not config.allow_overdraft:
                logger.warning(
                    f"Session refused for client {client.id}: balance {balance} < rate {rate.credits_per_session}"
                )
                return Return.err(
                    Error(
                        code="INSUFFICIENT_CREDITS",
                        message="Client credit balance exhausted",
                        reason=f"Need {rate.credits_per_session} credits, have {balance}",
                    )
                )

            # Step 3: Insert session
            session = VerificationSession(
                client_id=client.id,
                product_id=command.product_id,
                ref_id=generate_ref_id(client.code),
                document_name=command.document_name.strip(),
                document_number=command.document_number.strip(),
                document_type=command.document_type or "1",
                client_metadata=command.metadata,
                webhook_url=command.webhook_url or config.webhook_url,
                expires_at=now + timedelta(hours=self.session_expiry_hours),
                created_at=now,
                updated_at=now,
            )
            session = await self.session_repo.create(session)
            await self.uow.commit()

            # Step 4: Vendor transaction
            try:
                transaction = await self.gateway.create_transaction(
                    TransactionRequest(
                        session_id=session.id,
                        ref_id=session.ref_id,
                        document_name=session.document_name,
                        document_number=session.document_number,
                        document_type=session.document_type,
                    )
                )
            except GatewayError as e:
                session.status = SessionStatus.EXPIRED
                session.reject_message = str(e)
                await self.session_repo.update(session)
                await self.uow.commit()
                logger.error(f"Vendor transaction failed for session {session.id}: {e}")
                return Return.err(
                    Error(code="GATEWAY_ERROR", message="Failed to initiate KYC session", reason=str(e))
                )

            session.onboarding_id = transaction.onboarding_id
            session.onboarding_url = transaction.onboarding_url
            await self.session_repo.update(session)
            await self.uow.commit()

            logger.info(f"Created session {session.id} for client {client.id}: ref_id={session.ref_id}")
            return Return.ok(
                CreateSessionResultDTO(
                    id=session.id,
                    ref_id=session.ref_id,
                    onboarding_url=transaction.onboarding_url,
                    expires_at=session.expires_at,
                    status=SessionStatus(session.status).value,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to create session for client {command.client_id}: {e}")
            return Return.err(
                Error(
                    code="CREATE_SESSION_FAILED",
                    message="Failed to create verification session",
                    reason=str(e),
                )
            )
