"""RefreshSessionStatus Use Case

Client-initiated status pull from the vendor. Races the vendor webhook;
settlement guarantees a single charge either way.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.verification_gateway import GatewayError, VerificationGateway
from src.app.repositories.verification_session_repository import VerificationSessionRepository
from src.app.use_cases.billing.dtos import SettleSessionCommandDTO
from src.app.use_cases.billing.settle_session import SettleSession
from src.domain.verification_session import (
    VerificationSession,
    SessionResult,
    SessionStatus,
    is_billable,
    map_vendor_status,
)
from .dtos import RefreshResultDTO
from .relay_client_webhook import RelayClientWebhook
from .session_view import sanitize_vendor_data

logger = logging.getLogger(__name__)


def _result_dto(session: VerificationSession, refreshed: bool, message=None, error=None) -> RefreshResultDTO:
    return RefreshResultDTO(
        id=session.id,
        status=SessionStatus(session.status).value,
        result=SessionResult(session.result).value if session.result else None,
        refreshed=refreshed,
        message=message,
        error=error,
        billed=session.billed,
    )


class RefreshSessionStatus:
    """
    Use Case: Refresh a session from the vendor

    Business Rules:
    1. Only the owning client may refresh (FORBIDDEN otherwise)
    2. Terminal sessions are served from storage without a vendor call;
       an unbilled billable session is settled as a safety net
    3. Missing onboarding id or a vendor failure leaves state untouched and
       answers refreshed=False with the error
    4. A billable terminal status observed here is settled here
    """

    def __init__(
        self,
        uow: UnitOfWork,
        session_repo: VerificationSessionRepository,
        gateway: VerificationGateway,
        settle: SettleSession,
        relay: RelayClientWebhook,
    ):
        self.uow = uow
        self.session_repo = session_repo
        self.gateway = gateway
        self.settle = settle
        self.relay = relay

    async def _settle_if_due(self, session: VerificationSession) -> Result[VerificationSession]:
        """Settle if due and return the session as stored afterwards"""
        if not is_billable(session.status) or session.billed:
            return Return.ok(session)

        session_id = session.id
        settled = await self.settle.execute(SettleSessionCommandDTO(session_id=session_id, trigger="refresh"))
        if settled.is_err():
            return settled

        # Settlement shares this database session and may have rolled it back
        session = await self.session_repo.get_by_id(session_id)
        if settled.value.settled or settled.value.already_billed:
            session.billed = True
        return Return.ok(session)

    async def execute(self, client_id: str, session_id: str) -> Result[RefreshResultDTO]:
        """
        Execute refresh

        Args:
            client_id: Authenticated client
            session_id: Verification session ID

        Returns:
            Result[RefreshResultDTO]: Current state and whether it was refreshed
        """
        try:
            session = await self.session_repo.get_by_id(session_id)
            if not session:
                return Return.err(
                    Error(code="SESSION_NOT_FOUND", message=f"Verification session {session_id} not found")
                )
            if session.client_id != client_id:
                return Return.err(
                    Error(code="FORBIDDEN", message="Session does not belong to this client")
                )

            # Terminal: stored view
            if session.is_terminal:
                settled = await self._settle_if_due(session)
                if settled.is_err():
                    return Return.err(settled.error)
                return Return.ok(_result_dto(settled.value, refreshed=False, message="Session already finalized"))

            if not session.onboarding_id:
                return Return.ok(
                    _result_dto(
                        session,
                        refreshed=False,
                        error="Session missing vendor onboarding ID; cannot refresh from provider",
                    )
                )

            try:
                vendor = await self.gateway.get_status(session.ref_id, session.onboarding_id)
            except GatewayError as e:
                logger.warning(f"Vendor status pull failed for session {session_id}: {e}")
                return Return.ok(_result_dto(session, refreshed=False, error=str(e)))

            status, result = map_vendor_status(vendor.status, vendor.result)
            reject_message = vendor.reject_message
            changed = session.apply_vendor_status(status, result, reject_message)
            if changed and vendor.data:
                session.vendor_response = sanitize_vendor_data(vendor.data)
            await self.session_repo.update(session)
            await self.uow.commit()

            logger.info(
                f"Refreshed session {session_id}: vendor status={vendor.status} "
                f"-> {SessionStatus(session.status).value} (changed={changed})"
            )

            settled = await self._settle_if_due(session)
            if settled.is_err():
                return Return.err(settled.error)
            session = settled.value

            if changed:
                relayed = await self.relay.execute(session_id)
                if relayed.is_err():
                    logger.error(f"Relay after refresh failed for session {session_id}: {relayed.error.message}")

            return Return.ok(_result_dto(session, refreshed=True))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Refresh failed for session {session_id}: {e}")
            return Return.err(
                Error(
                    code="REFRESH_SESSION_FAILED",
                    message="Failed to refresh session status",
                    reason=str(e),
                )
            )
