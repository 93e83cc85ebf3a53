"""GetSession Use Case"""

from libs.result import Result, Return, Error
from src.app.repositories.verification_session_repository import VerificationSessionRepository
from .dtos import SessionViewDTO
from .session_view import to_session_view


class GetSession:
    """
    Use case: stored view of a client's session

    Never calls the vendor. OCR fields are included once completed.
    """

    def __init__(self, session_repo: VerificationSessionRepository):
        self.session_repo = session_repo

    async def execute(self, client_id: str, session_id: str) -> Result[SessionViewDTO]:
        session = await self.session_repo.get_by_id(session_id)
        if not session:
            return Return.err(
                Error(code="SESSION_NOT_FOUND", message=f"Verification session {session_id} not found")
            )
        if session.client_id != client_id:
            return Return.err(Error(code="FORBIDDEN", message="Session does not belong to this client"))
        return Return.ok(to_session_view(session))
