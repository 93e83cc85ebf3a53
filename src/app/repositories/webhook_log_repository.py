"""Webhook Log Repository Interface

Defines the contract for the inbound webhook deduplication log.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.webhook_log import WebhookLog


class WebhookLogRepository(ABC):
    """Repository interface for WebhookLog persistence"""

    @abstractmethod
    async def get_by_hash(self, payload_hash: str) -> Optional[WebhookLog]:
        """
        Retrieve the log row of a payload hash

        Args:
            payload_hash: Hex sha256 of the callback's identifying fields

        Returns:
            WebhookLog if the content was seen before, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, log: WebhookLog) -> WebhookLog:
        """Persist a new log row"""
        pass

    @abstractmethod
    async def update(self, log: WebhookLog) -> WebhookLog:
        """Persist changes to a log row"""
        pass
