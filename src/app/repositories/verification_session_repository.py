"""Verification Session Repository Interface

Defines the contract for verification session persistence.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from src.domain.verification_session import VerificationSession


class VerificationSessionRepository(ABC):
    """Repository interface for VerificationSession persistence"""

    @abstractmethod
    async def create(self, session: VerificationSession) -> VerificationSession:
        """
        Create a new verification session

        Args:
            session: VerificationSession entity to persist

        Returns:
            Created VerificationSession
        """
        pass

    @abstractmethod
    async def get_by_id(
        self, session_id: str, for_update: bool = False
    ) -> Optional[VerificationSession]:
        """
        Retrieve session by ID

        Args:
            session_id: Session identifier
            for_update: If True, lock the row and reload it from the database

        Returns:
            VerificationSession if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_ref_id(self, ref_id: str) -> Optional[VerificationSession]:
        """Retrieve session by its exact external ref_id"""
        pass

    @abstractmethod
    async def find_by_ref_suffix(self, raw_ref_id: str) -> Optional[VerificationSession]:
        """
        Retrieve the session whose stored ref_id is a suffix of raw_ref_id

        The vendor may prepend a transformed package name to the ref_id it
        echoes back in callbacks.

        Args:
            raw_ref_id: ref_id exactly as received from the vendor

        Returns:
            VerificationSession if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, session: VerificationSession) -> VerificationSession:
        """Persist changes to an existing session"""
        pass

    @abstractmethod
    async def count_billed_between(
        self, client_id: str, product_id: str, start: datetime, end: datetime
    ) -> int:
        """
        Count sessions billed within [start, end)

        Args:
            client_id: Client identifier
            product_id: Product identifier
            start: Window start (inclusive, UTC)
            end: Window end (exclusive, UTC)

        Returns:
            Number of billed sessions whose billed_at falls in the window
        """
        pass
