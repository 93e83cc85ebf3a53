"""Innovatif eKYC Gateway

Talks to the Innovatif gateway over HTTPS. Request bodies are JSON encrypted
with AES-256-CBC and signed with an MD5-based signature; callbacks arrive
encrypted the same way.
"""

import base64
import hashlib
import hmac
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Sequence
import httpx
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from src.app.services.verification_gateway import (
    GatewayError,
    GatewayStatus,
    GatewayTransaction,
    InvalidCallbackError,
    TransactionRequest,
    VendorCallback,
    VerificationGateway,
)

logger = logging.getLogger(__name__)

REQUEST_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
CALLBACK_STRING_FIELDS = ("ref_id", "onboarding_id", "request_time", "signature")


class InnovatifCodec:
    """
    Payload encryption and request signing for the Innovatif gateway

    - key: first 32 characters of ciphertext + api_key, as UTF-8 bytes
    - IV: the 16-character ciphertext, as UTF-8 bytes (not base64-decoded)
    - signature: base64 of the hex MD5 of
      api_key + md5_key + package_name + ref_id + md5_key + request_time
    """

    def __init__(self, api_key: str, package_name: str, md5_key: str, ciphertext: str):
        self.api_key = api_key
        self.package_name = package_name
        self.md5_key = md5_key
        self.ciphertext = ciphertext

    def _cipher(self) -> Cipher:
        key = (self.ciphertext + self.api_key)[:32].encode("utf-8")
        iv = self.ciphertext.encode("utf-8")
        return Cipher(algorithms.AES(key), modes.CBC(iv))

    def encrypt(self, body: Dict[str, Any]) -> str:
        """
        Encrypt a JSON body

        Args:
            body: JSON-serializable request body

        Returns:
            Base64 ciphertext
        """
        plaintext = json.dumps(body, separators=(",", ":")).encode("utf-8")
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = self._cipher().encryptor()
        encrypted = encryptor.update(padded) + encryptor.finalize()
        return base64.b64encode(encrypted).decode("ascii")

    def decrypt(self, data: str) -> Dict[str, Any]:
        """
        Decrypt a base64 ciphertext into its JSON object

        Raises:
            ValueError: If the data is not valid base64, padding or JSON
        """
        decryptor = self._cipher().decryptor()
        padded = decryptor.update(base64.b64decode(data)) + decryptor.finalize()

        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()

        payload = json.loads(plaintext.decode("utf-8"))
        if not isinstance(payload, dict):
            raise ValueError("Decrypted payload is not a JSON object")
        return payload

    def sign(self, ref_id: str, request_time: str) -> str:
        source = self.api_key + self.md5_key + self.package_name + ref_id + self.md5_key + request_time
        md5_hex = hashlib.md5(source.encode("utf-8")).hexdigest()
        return base64.b64encode(md5_hex.encode("ascii")).decode("ascii")

    def verify(self, signature: str, ref_id: str, request_time: str) -> bool:
        expected = self.sign(ref_id, request_time)
        return hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8"))


def _is_success(response_body: Dict[str, Any]) -> bool:
    return (
        response_body.get("success") is True
        or response_body.get("status_code") in (200, "200")
    )


def _error_message(response_body: Dict[str, Any]) -> str:
    data = response_body.get("data")
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(response_body.get("status_message") or "Innovatif API returned error")


class InnovatifGateway(VerificationGateway):
    """
    VerificationGateway backed by the Innovatif eKYC gateway

    Endpoints:
    - POST {base_url}/create-transaction
    - POST {base_url}/get-status

    Both take {"api_key": ..., "data": <encrypted body>} and may answer with
    an encrypted ``data`` string.
    """

    def __init__(
        self,
        base_url: str,
        codec: InnovatifCodec,
        public_base_url: str,
        timeout: float = 15.0,
        utc_offset_hours: int = 8,
        max_skew_seconds: int = 600,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the gateway

        Args:
            base_url: Gateway base URL
            codec: Encryption and signing helper
            public_base_url: Public URL of this service (redirect and callback targets)
            timeout: Request timeout in seconds
            utc_offset_hours: Offset of the vendor's local clock used in request_time
            max_skew_seconds: Accepted callback clock skew (0 disables the check)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.codec = codec
        self.public_base_url = public_base_url.rstrip("/")
        self.timeout = timeout
        self.utc_offset = timedelta(hours=utc_offset_hours)
        self.max_skew_seconds = max_skew_seconds
        self.transport = transport

    def format_request_time(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.utcnow()
        return (now + self.utc_offset).strftime(REQUEST_TIME_FORMAT)

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        envelope = {"api_key": self.codec.api_key, "data": self.codec.encrypt(body)}
        url = f"{self.base_url}/{path}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    url,
                    json=envelope,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Innovatif request to {path} failed: {e}")
            raise GatewayError(f"Innovatif API error: {e}") from e
        except ValueError as e:
            logger.error(f"Innovatif returned a non-JSON body for {path}: {e}")
            raise GatewayError("Invalid response from Innovatif API") from e

        if not isinstance(result, dict):
            raise GatewayError("Invalid response from Innovatif API")
        return result

    def _unwrap(self, result: Dict[str, Any]) -> Dict[str, Any]:
        data = result.get("data")
        if isinstance(data, dict):
            return data
        if isinstance(data, str) and data:
            try:
                return self.codec.decrypt(data)
            except ValueError as e:
                logger.warning(f"Innovatif response decryption failed, using raw response: {e}")
        return result

    async def create_transaction(self, request: TransactionRequest) -> GatewayTransaction:
        request_time = self.format_request_time()
        body = {
            "api_key": self.codec.api_key,
            "package_name": self.codec.package_name,
            "ref_id": request.ref_id,
            "document_name": request.document_name,
            "document_number": request.document_number,
            "document_type": request.document_type,
            "platform": "Web",
            "signature": self.codec.sign(request.ref_id, request_time),
            "response_url": f"{self.public_base_url}/r/{request.session_id}",
            "backend_url": f"{self.public_base_url}/api/internal/webhooks/innovatif/ekyc",
            "callback_mode": "1",
            "response_mode": "1",
            "request_time": request_time,
        }

        result = await self._post("create-transaction", body)
        if not _is_success(result):
            message = _error_message(result)
            logger.error(f"Innovatif create-transaction rejected ref_id={request.ref_id}: {message}")
            raise GatewayError(message)

        data = self._unwrap(result)
        onboarding_url = data.get("onboarding_url") or data.get("url")
        onboarding_id = data.get("onboarding_id") or data.get("transaction_id") or data.get("ref_id")

        if not onboarding_url or not onboarding_id:
            logger.error(f"Innovatif create-transaction response missing onboarding data: {list(data)}")
            raise GatewayError("Invalid response from Innovatif API")

        logger.info(f"Innovatif transaction created: ref_id={request.ref_id}, onboarding_id={onboarding_id}")
        return GatewayTransaction(onboarding_id=str(onboarding_id), onboarding_url=str(onboarding_url))

    async def get_status(self, ref_id: str, onboarding_id: str) -> GatewayStatus:
        request_time = self.format_request_time()
        body = {
            "api_key": self.codec.api_key,
            "package_name": self.codec.package_name,
            "ref_id": ref_id,
            "onboarding_id": onboarding_id,
            "platform": "Web",
            "response_mode": "2",
            "signature": self.codec.sign(ref_id, request_time),
            "request_time": request_time,
        }

        result = await self._post("get-status", body)
        data = self._unwrap(result)

        status = data.get("status")
        if status in (None, ""):
            status = result.get("status_code")
        if status in (None, ""):
            raise GatewayError("Innovatif get-status response has no status")

        reject_message = data.get("reject_message")
        return GatewayStatus(
            status=status,
            result=data.get("result"),
            reject_message=str(reject_message) if reject_message else None,
            data=data,
        )

    def decode_callback(self, body: Dict[str, Any]) -> VendorCallback:
        if not isinstance(body, dict):
            raise InvalidCallbackError("Callback body is not a JSON object")

        data = body.get("data")
        if isinstance(data, str):
            try:
                payload = self.codec.decrypt(data)
            except ValueError as e:
                raise InvalidCallbackError(f"Failed to decrypt payload: {e}") from e
        else:
            payload = body

        for field in CALLBACK_STRING_FIELDS:
            value = payload.get(field)
            if value is not None and not isinstance(value, str):
                raise InvalidCallbackError(f"Callback field {field} must be a string")

        return VendorCallback(
            ref_id=payload.get("ref_id") or None,
            onboarding_id=payload.get("onboarding_id") or None,
            status=payload.get("status"),
            result=payload.get("result"),
            reject_message=payload.get("reject_message") or None,
            request_time=payload.get("request_time") or None,
            signature=payload.get("signature") or None,
            data=payload,
        )

    def verify_callback(
        self, callback: VendorCallback, ref_id_candidates: Sequence[str], now: datetime
    ) -> bool:
        if not callback.signature or not callback.request_time:
            return False

        if self.max_skew_seconds > 0:
            try:
                local_time = datetime.strptime(callback.request_time, REQUEST_TIME_FORMAT)
            except ValueError:
                return False
            skew = abs((local_time - self.utc_offset - now).total_seconds())
            if skew > self.max_skew_seconds:
                logger.warning(f"Innovatif callback request_time outside window: skew={skew:.0f}s")
                return False

        return any(
            self.codec.verify(callback.signature, candidate, callback.request_time)
            for candidate in ref_id_candidates
        )

    def strip_ref_prefix(self, ref_id: str) -> str:
        """
        Remove the package-name prefix the vendor prepends to ref_id

        The vendor transforms the package name (dots to underscores, "test"
        sometimes reported as "trial") before prepending it.
        """
        package = self.codec.package_name
        if not package:
            return ref_id

        underscored = package.replace(".", "_")
        trial = underscored[: -len("_test")] + "_trial" if underscored.endswith("_test") else underscored
        prefixes = {
            package,
            underscored,
            trial,
            f"{underscored}trial",
            f"{underscored}_trial",
            f"{trial}_",
            f"{underscored}_",
        }

        for prefix in sorted(prefixes, key=len, reverse=True):
            if ref_id.startswith(prefix) and len(ref_id) > len(prefix):
                return ref_id[len(prefix):]
        return ref_id


def create_verification_gateway(config, transport: Optional[httpx.AsyncBaseTransport] = None) -> InnovatifGateway:
    """
    Factory function to build the gateway from ApplicationConfig

    Args:
        config: ApplicationConfig (or any object with the same attributes)
        transport: Optional httpx transport override

    Returns:
        Configured InnovatifGateway
    """
    codec = InnovatifCodec(
        api_key=config.INNOVATIF_API_KEY,
        package_name=config.INNOVATIF_PACKAGE_NAME,
        md5_key=config.INNOVATIF_MD5_KEY,
        ciphertext=config.INNOVATIF_CIPHERTEXT,
    )
    return InnovatifGateway(
        base_url=config.INNOVATIF_BASE_URL,
        codec=codec,
        public_base_url=config.PUBLIC_BASE_URL,
        timeout=config.VENDOR_TIMEOUT_SECONDS,
        utc_offset_hours=config.BILLING_UTC_OFFSET_HOURS,
        max_skew_seconds=config.WEBHOOK_MAX_SKEW_SECONDS,
        transport=transport,
    )
