"""RelayClientWebhook Use Case

Forwards a session status change to the client's webhook and records the
delivery outcome on the session.
"""

import logging
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.client_notifier import ClientNotifier
from src.app.repositories.verification_session_repository import VerificationSessionRepository
from .dtos import RelayResultDTO
from .session_view import build_event_payload, event_for_status

logger = logging.getLogger(__name__)


class RelayClientWebhook:
    """
    Use Case: Relay a session event to the client

    Business Rules:
    1. One delivery attempt per call; no retry scheduling
    2. webhook_attempts always increments; webhook_delivered_at is set only
       on a 2xx answer; webhook_last_error holds the latest failure
    3. Sessions without a webhook_url are skipped without an attempt
    """

    def __init__(
        self,
        uow: UnitOfWork,
        session_repo: VerificationSessionRepository,
        notifier: ClientNotifier,
    ):
        self.uow = uow
        self.session_repo = session_repo
        self.notifier = notifier

    async def execute(self, session_id: str) -> Result[RelayResultDTO]:
        """
        Execute relay

        Args:
            session_id: Verification session ID

        Returns:
            Result[RelayResultDTO]: Delivery outcome or error
        """
        try:
            session = await self.session_repo.get_by_id(session_id)
            if not session:
                return Return.err(
                    Error(code="SESSION_NOT_FOUND", message=f"Verification session {session_id} not found")
                )

            event = event_for_status(session.status)
            if not session.webhook_url:
                logger.warning(f"Session {session_id} has no webhook_url; {event} not relayed")
                return Return.ok(
                    RelayResultDTO(
                        session_id=session_id,
                        event=event,
                        delivered=False,
                        attempts=session.webhook_attempts,
                        error="No webhook URL configured",
                    )
                )

            now = datetime.utcnow()
            payload = build_event_payload(session, event, now)
            outcome = await self.notifier.deliver(session.webhook_url, event, payload)

            session.webhook_attempts = (session.webhook_attempts or 0) + 1
            session.webhook_delivered = outcome.delivered
            if outcome.delivered:
                session.webhook_delivered_at = now
                session.webhook_last_error = None
            else:
                session.webhook_last_error = outcome.error
            await self.session_repo.update(session)
            await self.uow.commit()

            if outcome.delivered:
                logger.info(f"Relayed {event} for session {session_id}")
            else:
                logger.warning(f"Relay of {event} for session {session_id} failed: {outcome.error}")

            return Return.ok(
                RelayResultDTO(
                    session_id=session_id,
                    event=event,
                    delivered=outcome.delivered,
                    attempts=session.webhook_attempts,
                    error=outcome.error,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Relay failed for session {session_id}: {e}")
            return Return.err(
                Error(
                    code="RELAY_WEBHOOK_FAILED",
                    message="Failed to relay session event",
                    reason=str(e),
                )
            )
