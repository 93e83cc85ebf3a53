"""Client Notifier Interface

Defines the contract for relaying session events to client webhooks.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class DeliveryOutcome:
    """Result of one delivery attempt"""
    delivered: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


class ClientNotifier(ABC):
    """
    Abstract client webhook relay

    A single attempt is made per event; retry scheduling is out of scope.
    Implementations must not raise for delivery failures.
    """

    @abstractmethod
    async def deliver(self, url: str, event: str, payload: Dict[str, Any]) -> DeliveryOutcome:
        """
        POST an event payload to a client URL

        Args:
            url: Client webhook URL
            event: Event name (e.g., kyc.session.completed)
            payload: JSON-serializable event body

        Returns:
            DeliveryOutcome describing the attempt
        """
        pass
