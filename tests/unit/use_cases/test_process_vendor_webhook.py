"""Unit tests for ProcessVendorWebhook use case

Tests cover:
- Payload validation and signature rejection
- Duplicate callbacks
- Session resolution (exact, prefix-stripped, suffix)
- Status application, settlement and relay
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from libs.result import Error, Return
from src.app.services.verification_gateway import InvalidCallbackError, VendorCallback
from src.app.use_cases.billing.dtos import SettlementResultDTO
from src.app.use_cases.verification.dtos import RelayResultDTO
from src.app.use_cases.verification.process_vendor_webhook import ProcessVendorWebhook, payload_hash
from src.domain.verification_session import SessionResult, SessionStatus, VerificationSession
from src.domain.webhook_log import WebhookLog


def make_callback(status="2", result="1", ref_id="ACME_lq2k9x1a_3f9c0a1b", **data) -> VendorCallback:
    payload = {"ref_id": ref_id, "onboarding_id": "ONB-1", "status": status, "result": result}
    payload.update(data)
    return VendorCallback(
        ref_id=ref_id,
        onboarding_id="ONB-1",
        status=status,
        result=result,
        request_time="2024-02-10 10:00:00",
        signature="c2lnbmF0dXJl",
        data=payload,
    )


def make_session(status=SessionStatus.PROCESSING) -> VerificationSession:
    return VerificationSession(
        id="session_1",
        client_id="client_1",
        product_id="true_identity",
        ref_id="ACME_lq2k9x1a_3f9c0a1b",
        document_name="Ali bin Abu",
        document_number="900101-14-5678",
        status=status,
        webhook_url="https://client.example/hook",
    )


@pytest.fixture
def gateway():
    gateway = MagicMock()
    gateway.decode_callback = MagicMock(return_value=make_callback())
    gateway.verify_callback = MagicMock(return_value=True)
    gateway.strip_ref_prefix = MagicMock(side_effect=lambda ref_id: ref_id)
    return gateway


@pytest.fixture
def session_repo():
    repo = MagicMock()
    repo.get_by_ref_id = AsyncMock(return_value=make_session())
    repo.find_by_ref_suffix = AsyncMock(return_value=None)
    repo.update = AsyncMock(side_effect=lambda s: s)
    return repo


@pytest.fixture
def webhook_log_repo():
    """Log rows kept by payload hash, so a re-read after settlement finds them"""
    repo = MagicMock()
    repo.rows = {}

    async def create(log):
        repo.rows[log.payload_hash] = log
        return log

    repo.get_by_hash = AsyncMock(side_effect=lambda digest: repo.rows.get(digest))
    repo.create = AsyncMock(side_effect=create)
    repo.update = AsyncMock(side_effect=lambda log: log)
    return repo


@pytest.fixture
def settle():
    settle = MagicMock()
    settle.execute = AsyncMock(
        return_value=Return.ok(SettlementResultDTO(session_id="session_1", settled=True, credits_deducted=50))
    )
    return settle


@pytest.fixture
def relay():
    relay = MagicMock()
    relay.execute = AsyncMock(
        return_value=Return.ok(
            RelayResultDTO(session_id="session_1", event="kyc.session.completed", delivered=True, attempts=1)
        )
    )
    return relay


@pytest.fixture
def webhook_use_case(mock_uow, session_repo, webhook_log_repo, gateway, settle, relay):
    return ProcessVendorWebhook(
        uow=mock_uow,
        session_repo=session_repo,
        webhook_log_repo=webhook_log_repo,
        gateway=gateway,
        settle=settle,
        relay=relay,
    )


class TestPayloadHash:
    def test_hash_ignores_signature_and_request_time(self):
        first = make_callback()
        second = make_callback()
        second.signature = "other"
        second.request_time = "2024-02-10 10:05:00"

        assert payload_hash(first) == payload_hash(second)

    def test_hash_depends_on_status(self):
        assert payload_hash(make_callback(status="1")) != payload_hash(make_callback(status="2"))


@pytest.mark.asyncio
class TestProcessVendorWebhookRejections:
    async def test_undecodable_body(self, webhook_use_case, gateway):
        gateway.decode_callback.side_effect = InvalidCallbackError("bad padding")

        result = await webhook_use_case.execute({"data": "garbage"})

        assert result.is_err()
        assert result.error.code == "INVALID_PAYLOAD"

    async def test_missing_onboarding_id(self, webhook_use_case, gateway):
        callback = make_callback()
        callback.onboarding_id = None
        gateway.decode_callback.return_value = callback

        result = await webhook_use_case.execute({})

        assert result.is_err()
        assert result.error.code == "INVALID_PAYLOAD"

    async def test_invalid_signature_is_not_logged(self, webhook_use_case, gateway, webhook_log_repo, settle):
        """
        Given: A callback whose signature does not verify
        When: It is processed
        Then: INVALID_SIGNATURE is returned and nothing is recorded
        """
        # Arrange
        gateway.verify_callback.return_value = False

        # Act
        result = await webhook_use_case.execute({"data": "..."})

        # Assert
        assert result.is_err()
        assert result.error.code == "INVALID_SIGNATURE"
        webhook_log_repo.get_by_hash.assert_not_called()
        webhook_log_repo.create.assert_not_called()
        settle.execute.assert_not_called()

    async def test_unknown_session(self, webhook_use_case, session_repo, webhook_log_repo):
        session_repo.get_by_ref_id.return_value = None

        result = await webhook_use_case.execute({"data": "..."})

        assert result.is_err()
        assert result.error.code == "SESSION_NOT_FOUND"
        webhook_log_repo.create.assert_not_called()


@pytest.mark.asyncio
class TestProcessVendorWebhookDuplicates:
    async def test_processed_hash_is_duplicate(self, webhook_use_case, webhook_log_repo, session_repo, settle, relay):
        """
        Given: The same callback content was already fully processed
        When: It is delivered again
        Then: Success with duplicate=True and no side effects
        """
        # Arrange
        digest = payload_hash(make_callback())
        webhook_log_repo.rows[digest] = WebhookLog(payload_hash=digest, session_id="session_1", processed=True)

        # Act
        result = await webhook_use_case.execute({"data": "..."})

        # Assert
        assert result.is_ok()
        assert result.value.duplicate is True
        assert result.value.session_id == "session_1"
        session_repo.update.assert_not_called()
        settle.execute.assert_not_called()
        relay.execute.assert_not_called()

    async def test_unprocessed_log_is_resumed(self, webhook_use_case, webhook_log_repo, settle):
        """
        Given: A log row exists but processing was interrupted before it was marked processed
        When: The vendor retries
        Then: Processing runs again and the existing row is marked processed
        """
        # Arrange
        digest = payload_hash(make_callback())
        existing = WebhookLog(payload_hash=digest, session_id="session_1", processed=False)
        webhook_log_repo.rows[digest] = existing

        # Act
        result = await webhook_use_case.execute({"data": "..."})

        # Assert
        assert result.is_ok()
        assert result.value.duplicate is False
        webhook_log_repo.create.assert_not_called()
        assert existing.processed is True
        settle.execute.assert_called_once()


@pytest.mark.asyncio
class TestProcessVendorWebhookProcessing:
    async def test_completed_callback_settles_and_relays(
        self, webhook_use_case, session_repo, webhook_log_repo, settle, relay, mock_uow
    ):
        """
        Given: A processing session and a completed/approved callback
        When: It is processed
        Then: Status is applied, the session is settled, the log is marked processed and the client notified
        """
        # Arrange
        session = make_session()
        session_repo.get_by_ref_id.return_value = session
        callback = make_callback(name="ALI BIN ABU", front_document="base64...", api_key="secret")
        webhook_use_case.gateway.decode_callback.return_value = callback

        # Act
        result = await webhook_use_case.execute({"data": "..."})

        # Assert
        assert result.is_ok()
        assert result.value.status == "completed"
        assert session.status == SessionStatus.COMPLETED
        assert session.result == SessionResult.APPROVED
        assert session.vendor_response["name"] == "ALI BIN ABU"
        assert "front_document" not in session.vendor_response
        assert "api_key" not in session.vendor_response

        command = settle.execute.call_args[0][0]
        assert command.session_id == "session_1"
        assert command.trigger == "webhook"

        log = webhook_log_repo.update.call_args[0][0]
        assert log.processed is True
        assert log.processed_at is not None
        relay.execute.assert_called_once_with("session_1")
        assert mock_uow.commit.call_count == 2

    async def test_processing_callback_does_not_settle(self, webhook_use_case, session_repo, settle, relay):
        session_repo.get_by_ref_id.return_value = make_session(SessionStatus.PENDING)
        webhook_use_case.gateway.decode_callback.return_value = make_callback(status="1", result=None)

        result = await webhook_use_case.execute({"data": "..."})

        assert result.is_ok()
        assert result.value.status == "processing"
        settle.execute.assert_not_called()
        relay.execute.assert_called_once()

    async def test_late_callback_for_terminal_session_is_ignored(
        self, webhook_use_case, session_repo, settle, relay
    ):
        """
        Given: A session already completed and billed
        When: A stale "processing" callback arrives
        Then: Status is unchanged, nothing is charged or relayed
        """
        # Arrange
        session = make_session(SessionStatus.COMPLETED)
        session.result = SessionResult.APPROVED
        session.billed = True
        session_repo.get_by_ref_id.return_value = session
        webhook_use_case.gateway.decode_callback.return_value = make_callback(status="1", result=None)

        # Act
        result = await webhook_use_case.execute({"data": "..."})

        # Assert
        assert result.is_ok()
        assert session.status == SessionStatus.COMPLETED
        settle.execute.assert_not_called()
        relay.execute.assert_not_called()

    async def test_prefixed_ref_id_is_resolved(self, webhook_use_case, session_repo, gateway):
        """
        Given: The vendor echoes ref_id with its package-name prefix
        When: The callback is processed
        Then: The session is found by the stripped ref_id and both spellings are tried for the signature
        """
        # Arrange
        raw = "com_truestack_trial_ACME_lq2k9x1a_3f9c0a1b"
        gateway.decode_callback.return_value = make_callback(ref_id=raw)
        gateway.strip_ref_prefix.side_effect = lambda ref_id: ref_id.replace("com_truestack_trial_", "")
        session_repo.get_by_ref_id = AsyncMock(
            side_effect=lambda ref_id: make_session() if ref_id == "ACME_lq2k9x1a_3f9c0a1b" else None
        )

        # Act
        result = await webhook_use_case.execute({"data": "..."})

        # Assert
        assert result.is_ok()
        candidates = gateway.verify_callback.call_args[0][1]
        assert candidates == [raw, "ACME_lq2k9x1a_3f9c0a1b"]

    async def test_suffix_match_fallback(self, webhook_use_case, session_repo):
        session_repo.get_by_ref_id.return_value = None
        session_repo.find_by_ref_suffix.return_value = make_session()

        result = await webhook_use_case.execute({"data": "..."})

        assert result.is_ok()
        session_repo.find_by_ref_suffix.assert_called_once()

    async def test_settlement_failure_leaves_log_unprocessed(
        self, webhook_use_case, settle, webhook_log_repo, relay
    ):
        """
        Given: Settlement fails
        When: The callback is processed
        Then: The error is returned, the log is not marked processed, no relay happens
        """
        # Arrange
        settle.execute.return_value = Return.err(Error(code="SETTLEMENT_FAILED", message="boom"))

        # Act
        result = await webhook_use_case.execute({"data": "..."})

        # Assert
        assert result.is_err()
        assert result.error.code == "SETTLEMENT_FAILED"
        webhook_log_repo.update.assert_not_called()
        relay.execute.assert_not_called()

    async def test_relay_failure_does_not_fail_webhook(self, webhook_use_case, relay):
        relay.execute.return_value = Return.err(Error(code="RELAY_WEBHOOK_FAILED", message="down"))

        result = await webhook_use_case.execute({"data": "..."})

        assert result.is_ok()
        assert result.value.success is True

    async def test_unexpected_error_rolls_back(self, webhook_use_case, session_repo, mock_uow):
        session_repo.update.side_effect = Exception("db down")

        result = await webhook_use_case.execute({"data": "..."})

        assert result.is_err()
        assert result.error.code == "WEBHOOK_PROCESSING_FAILED"
        mock_uow.rollback.assert_called_once()
