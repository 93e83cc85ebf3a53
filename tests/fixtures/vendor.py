"""In-memory Innovatif gateway for integration tests

Answers create-transaction and get-status through httpx.MockTransport with
payloads encrypted by the same codec the service uses, and builds signed
callbacks the way the vendor sends them.
"""

import json
from datetime import datetime
from typing import Dict, List, Optional
import httpx

from src.adapter.services.innovatif_gateway import InnovatifCodec, InnovatifGateway
from src.app.services.client_notifier import ClientNotifier, DeliveryOutcome

API_KEY = "test-api-key-0123456789"
PACKAGE_NAME = "com.truestack.test"
MD5_KEY = "md5-secret"
CIPHERTEXT = "abcdefghijklmnop"


def make_codec() -> InnovatifCodec:
    return InnovatifCodec(api_key=API_KEY, package_name=PACKAGE_NAME, md5_key=MD5_KEY, ciphertext=CIPHERTEXT)


class FakeInnovatif:
    """Vendor state keyed by onboarding_id"""

    def __init__(self, codec: InnovatifCodec):
        self.codec = codec
        self.transactions: Dict[str, dict] = {}
        self.statuses: Dict[str, dict] = {}
        self.fail_create = False
        self.requests: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.rsplit("/", 1)[-1]
        self.requests.append(path)
        body = self.codec.decrypt(json.loads(request.content)["data"])

        if path == "create-transaction":
            if self.fail_create:
                return httpx.Response(200, json={"success": False, "status_message": "Invalid signature"})
            onboarding_id = f"ONB-{len(self.transactions) + 1}"
            self.transactions[onboarding_id] = body
            self.statuses[onboarding_id] = {"status": "0"}
            data = {"onboarding_id": onboarding_id, "onboarding_url": f"https://vendor.example/onb/{onboarding_id}"}
            return httpx.Response(200, json={"success": True, "data": self.codec.encrypt(data)})

        if path == "get-status":
            status = self.statuses.get(body["onboarding_id"])
            if status is None:
                return httpx.Response(404, json={"success": False})
            return httpx.Response(200, json={"success": True, "data": self.codec.encrypt(status)})

        return httpx.Response(404)

    def gateway(self, public_base_url: str = "http://testserver") -> InnovatifGateway:
        return InnovatifGateway(
            base_url="https://vendor.example/v1/gateway",
            codec=self.codec,
            public_base_url=public_base_url,
            transport=httpx.MockTransport(self.handler),
        )

    def set_status(self, onboarding_id: str, status: str, result: Optional[str] = None, **extra):
        self.statuses[onboarding_id] = {"status": status, "result": result, **extra}

    def callback(
        self,
        ref_id: str,
        onboarding_id: str,
        status: str,
        result: Optional[str] = None,
        now: Optional[datetime] = None,
        signature: Optional[str] = None,
    ) -> dict:
        """Encrypted callback body, signed over ref_id at the vendor's local time"""
        request_time = self.gateway().format_request_time(now)
        payload = {
            "ref_id": ref_id,
            "onboarding_id": onboarding_id,
            "status": status,
            "result": result,
            "request_time": request_time,
            "signature": signature or self.codec.sign(ref_id, request_time),
        }
        return {"data": self.codec.encrypt(payload)}


class RecordingNotifier(ClientNotifier):
    """ClientNotifier that keeps every delivery instead of sending it"""

    def __init__(self):
        self.deliveries = []

    async def deliver(self, url, event, payload):
        self.deliveries.append((url, event, payload))
        return DeliveryOutcome(delivered=True, status_code=200)
