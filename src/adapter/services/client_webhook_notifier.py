"""Client Webhook Notifier

Relays verification session events to the webhook URL a client registered.
"""

import base64
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, Optional
import httpx
from src.app.services.client_notifier import ClientNotifier, DeliveryOutcome

logger = logging.getLogger(__name__)

EVENT_HEADER = "X-TrueStack-Event"
SIGNATURE_HEADER = "x-trueidentity-signature"
TIMESTAMP_HEADER = "x-trueidentity-timestamp"


def sign_payload(secret: str, timestamp: str, raw_body: str) -> str:
    """
    Sign a webhook body

    Args:
        secret: Shared signing secret
        timestamp: Unix epoch milliseconds, as sent in the timestamp header
        raw_body: Exact JSON body sent

    Returns:
        Base64 HMAC-SHA256 of "{timestamp}.{raw_body}"
    """
    digest = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{raw_body}".encode("utf-8"),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


class WebhookClientNotifier(ClientNotifier):
    """
    ClientNotifier that POSTs JSON events over HTTP

    Sends the event name in X-TrueStack-Event and, when a secret is
    configured, an HMAC signature with its timestamp.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize webhook notifier

        Args:
            secret: Optional signing secret
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.secret = secret
        self.timeout = timeout
        self.transport = transport

    def build_headers(self, event: str, raw_body: str) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            EVENT_HEADER: event,
        }
        if self.secret:
            timestamp = str(int(time.time() * 1000))
            headers[TIMESTAMP_HEADER] = timestamp
            headers[SIGNATURE_HEADER] = sign_payload(self.secret, timestamp, raw_body)
        return headers

    async def deliver(self, url: str, event: str, payload: Dict[str, Any]) -> DeliveryOutcome:
        """
        Send event payload via webhook

        Args:
            url: Client webhook URL
            event: Event name
            payload: Event body

        Returns:
            DeliveryOutcome; delivered is True only for 2xx responses
        """
        raw_body = json.dumps(payload, default=str)
        headers = self.build_headers(event, raw_body)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, content=raw_body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Failed to deliver {event} to {url}: {e}")
            return DeliveryOutcome(delivered=False, error=str(e) or type(e).__name__)

        if response.is_success:
            logger.info(f"Delivered {event} to {url} (HTTP {response.status_code})")
            return DeliveryOutcome(delivered=True, status_code=response.status_code)

        logger.warning(f"Client webhook {url} answered HTTP {response.status_code} for {event}")
        return DeliveryOutcome(
            delivered=False,
            status_code=response.status_code,
            error=f"HTTP {response.status_code}",
        )


def create_client_notifier(config, transport: Optional[httpx.AsyncBaseTransport] = None) -> ClientNotifier:
    """
    Factory function to create the client notifier from ApplicationConfig

    Args:
        config: ApplicationConfig
        transport: Optional httpx transport override

    Returns:
        Configured ClientNotifier
    """
    return WebhookClientNotifier(
        secret=config.OUTBOUND_WEBHOOK_SECRET or None,
        timeout=config.CLIENT_WEBHOOK_TIMEOUT_SECONDS,
        transport=transport,
    )
