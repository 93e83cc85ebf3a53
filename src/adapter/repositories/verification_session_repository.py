"""SQLAlchemy Verification Session Repository Implementation"""

from datetime import datetime
from typing import Optional
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.verification_session_repository import VerificationSessionRepository
from src.domain.verification_session import VerificationSession


class SqlAlchemyVerificationSessionRepository(VerificationSessionRepository):
    """
    SQLAlchemy implementation of VerificationSessionRepository

    Locked reads (for_update=True) reload the row so the billed flag is
    re-checked against committed state.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, session: VerificationSession) -> VerificationSession:
        self.session.add(session)
        await self.session.flush()
        await self.session.refresh(session)
        return session

    async def get_by_id(
        self, session_id: str, for_update: bool = False
    ) -> Optional[VerificationSession]:
        """
        Retrieve session by ID with optional row-level locking

        Args:
            session_id: Session identifier
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            VerificationSession if found, None otherwise
        """
        stmt = select(VerificationSession).where(VerificationSession.id == session_id)

        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_ref_id(self, ref_id: str) -> Optional[VerificationSession]:
        stmt = select(VerificationSession).where(VerificationSession.ref_id == ref_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_ref_suffix(self, raw_ref_id: str) -> Optional[VerificationSession]:
        """
        Retrieve the session whose ref_id ends raw_ref_id

        Args:
            raw_ref_id: ref_id exactly as received from the vendor

        Returns:
            The longest matching session, None otherwise
        """
        stmt = (
            select(VerificationSession)
            .where(func.length(VerificationSession.ref_id) <= len(raw_ref_id))
            .where(
                func.substr(
                    raw_ref_id,
                    len(raw_ref_id) - func.length(VerificationSession.ref_id) + 1,
                ) == VerificationSession.ref_id
            )
            .order_by(func.length(VerificationSession.ref_id).desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, session: VerificationSession) -> VerificationSession:
        session.updated_at = datetime.utcnow()
        self.session.add(session)
        await self.session.flush()
        await self.session.refresh(session)
        return session

    async def count_billed_between(
        self, client_id: str, product_id: str, start: datetime, end: datetime
    ) -> int:
        """
        Count sessions billed within [start, end)

        Args:
            client_id: Client identifier
            product_id: Product identifier
            start: Window start (inclusive)
            end: Window end (exclusive)

        Returns:
            Number of billed sessions
        """
        stmt = select(func.count(VerificationSession.id)).where(
            VerificationSession.client_id == client_id,
            VerificationSession.product_id == product_id,
            VerificationSession.billed == True,  # noqa: E712
            VerificationSession.billed_at >= start,
            VerificationSession.billed_at < end,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()
