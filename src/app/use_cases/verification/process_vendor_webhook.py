"""ProcessVendorWebhook Use Case

Handles an inbound vendor callback exactly once: verify, deduplicate,
apply the status, settle, relay.
"""

import hashlib
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.verification_gateway import (
    InvalidCallbackError,
    VendorCallback,
    VerificationGateway,
)
from src.app.repositories.verification_session_repository import VerificationSessionRepository
from src.app.repositories.webhook_log_repository import WebhookLogRepository
from src.app.use_cases.billing.dtos import SettleSessionCommandDTO
from src.app.use_cases.billing.settle_session import SettleSession
from src.domain.verification_session import (
    VerificationSession,
    SessionStatus,
    is_billable,
    map_vendor_status,
)
from src.domain.webhook_log import WebhookLog
from .dtos import WebhookResultDTO
from .relay_client_webhook import RelayClientWebhook
from .session_view import sanitize_vendor_data

logger = logging.getLogger(__name__)


def payload_hash(callback: VendorCallback) -> str:
    """
    Identity of a callback's content

    sha256 over the canonical (sorted-key, compact) JSON of ref_id,
    onboarding_id, status and result.
    """
    identity = {
        "ref_id": callback.ref_id,
        "onboarding_id": callback.onboarding_id,
        "status": callback.status,
        "result": callback.result,
    }
    canonical = json.dumps(identity, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ProcessVendorWebhook:
    """
    Use Case: Process a vendor eKYC callback

    Business Rules:
    1. Undecodable body or missing ref_id/onboarding_id -> INVALID_PAYLOAD
    2. Bad signature or stale request_time -> INVALID_SIGNATURE, nothing logged
    3. A callback whose hash is already processed is a duplicate: no effects
    4. Unknown session -> SESSION_NOT_FOUND, nothing logged
    5. The log row is marked processed only after status and settlement
       have committed, so a vendor retry can finish interrupted work

    Flow:
    1. Decode and validate
    2. Verify signature and freshness
    3. Deduplicate by payload hash
    4. Resolve the session (exact, prefix-stripped, then suffix match)
    5. Record the log row and apply the status transition, commit
    6. Settle if billable and unbilled
    7. Mark the log row processed, commit
    8. Relay to the client if the status changed
    """

    def __init__(
        self,
        uow: UnitOfWork,
        session_repo: VerificationSessionRepository,
        webhook_log_repo: WebhookLogRepository,
        gateway: VerificationGateway,
        settle: SettleSession,
        relay: RelayClientWebhook,
    ):
        self.uow = uow
        self.session_repo = session_repo
        self.webhook_log_repo = webhook_log_repo
        self.gateway = gateway
        self.settle = settle
        self.relay = relay

    def _candidates(self, ref_id: str) -> List[str]:
        stripped = self.gateway.strip_ref_prefix(ref_id)
        return [ref_id] if stripped == ref_id else [ref_id, stripped]

    async def _resolve_session(self, ref_id: str) -> Optional[VerificationSession]:
        for candidate in self._candidates(ref_id):
            session = await self.session_repo.get_by_ref_id(candidate)
            if session:
                return session
        return await self.session_repo.find_by_ref_suffix(ref_id)

    async def execute(self, body: Dict[str, Any]) -> Result[WebhookResultDTO]:
        """
        Execute webhook processing

        Args:
            body: Parsed JSON body of the vendor request

        Returns:
            Result[WebhookResultDTO]: success (possibly duplicate) or error
        """
        # Step 1: Decode
        try:
            callback = self.gateway.decode_callback(body)
        except InvalidCallbackError as e:
            logger.warning(f"Rejected vendor webhook: {e}")
            return Return.err(Error(code="INVALID_PAYLOAD", message="Invalid webhook payload", reason=str(e)))

        if not callback.ref_id or not callback.onboarding_id:
            logger.warning("Rejected vendor webhook: missing ref_id or onboarding_id")
            return Return.err(
                Error(code="INVALID_PAYLOAD", message="Missing required fields: ref_id, onboarding_id")
            )

        # Step 2: Authenticate
        if not self.gateway.verify_callback(callback, self._candidates(callback.ref_id), datetime.utcnow()):
            logger.warning(f"Rejected vendor webhook for ref_id={callback.ref_id}: invalid signature")
            return Return.err(Error(code="INVALID_SIGNATURE", message="Invalid webhook signature"))

        digest = payload_hash(callback)
        try:
            # Step 3: Deduplicate
            log = await self.webhook_log_repo.get_by_hash(digest)
            if log and log.processed:
                logger.info(f"Duplicate vendor webhook for ref_id={callback.ref_id} ignored")
                return Return.ok(WebhookResultDTO(success=True, duplicate=True, session_id=log.session_id))

            # Step 4: Resolve session
            session = await self._resolve_session(callback.ref_id)
            if not session:
                logger.warning(f"Vendor webhook for unknown ref_id={callback.ref_id}")
                return Return.err(
                    Error(code="SESSION_NOT_FOUND", message=f"Session not found for ref_id {callback.ref_id}")
                )

            # Step 5: Log and apply status
            if log is None:
                log = await self.webhook_log_repo.create(
                    WebhookLog(payload_hash=digest, source="innovatif", session_id=session.id)
                )

            status, result = map_vendor_status(callback.status, callback.result)
            changed = session.apply_vendor_status(status, result, callback.reject_message)
            if not session.onboarding_id:
                session.onboarding_id = callback.onboarding_id
            if changed:
                session.vendor_response = sanitize_vendor_data(callback.data)
            await self.session_repo.update(session)
            await self.uow.commit()

            session_id = session.id
            current_status = SessionStatus(session.status)
            logger.info(
                f"Vendor webhook for session {session_id}: vendor status={callback.status} "
                f"-> {current_status.value} (changed={changed})"
            )

            # Step 6: Settle
            if is_billable(current_status) and not session.billed:
                settled = await self.settle.execute(
                    SettleSessionCommandDTO(session_id=session_id, trigger="webhook")
                )
                if settled.is_err():
                    logger.error(
                        f"Settlement from webhook failed for session {session_id}: {settled.error.message}"
                    )
                    return Return.err(settled.error)
                # Settlement shares this database session and may have rolled it back
                log = await self.webhook_log_repo.get_by_hash(digest)

            # Step 7: Mark processed
            log.processed = True
            log.processed_at = datetime.utcnow()
            await self.webhook_log_repo.update(log)
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Vendor webhook processing failed for ref_id={callback.ref_id}: {e}")
            return Return.err(
                Error(
                    code="WEBHOOK_PROCESSING_FAILED",
                    message="Failed to process webhook",
                    reason=str(e),
                )
            )

        # Step 8: Relay (outcome recorded on the session, never fails the webhook)
        if changed:
            relayed = await self.relay.execute(session_id)
            if relayed.is_err():
                logger.error(f"Relay after webhook failed for session {session_id}: {relayed.error.message}")

        return Return.ok(
            WebhookResultDTO(success=True, duplicate=False, session_id=session_id, status=current_status.value)
        )
