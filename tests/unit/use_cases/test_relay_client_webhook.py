"""Unit tests for RelayClientWebhook and the session event payload"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from src.app.services.client_notifier import DeliveryOutcome
from src.app.use_cases.verification.relay_client_webhook import RelayClientWebhook
from src.app.use_cases.verification.session_view import (
    build_event_payload,
    sanitize_vendor_data,
    to_session_view,
)
from src.domain.verification_session import SessionResult, SessionStatus, VerificationSession


def make_session(webhook_url="https://client.example/hook") -> VerificationSession:
    return VerificationSession(
        id="session_1",
        client_id="client_1",
        product_id="true_identity",
        ref_id="ACME_lq2k9x1a_3f9c0a1b",
        document_name="Ali bin Abu",
        document_number="900101-14-5678",
        status=SessionStatus.COMPLETED,
        result=SessionResult.REJECTED,
        reject_message="Face mismatch",
        client_metadata={"loan_id": "L-1"},
        vendor_response={"name": "ALI BIN ABU", "id_number": "900101145678", "step1": {"score": 0.4}},
        webhook_url=webhook_url,
    )


@pytest.fixture
def session_repo():
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=make_session())
    repo.update = AsyncMock(side_effect=lambda s: s)
    return repo


@pytest.fixture
def notifier():
    notifier = MagicMock()
    notifier.deliver = AsyncMock(return_value=DeliveryOutcome(delivered=True, status_code=200))
    return notifier


@pytest.fixture
def relay_use_case(mock_uow, session_repo, notifier):
    return RelayClientWebhook(uow=mock_uow, session_repo=session_repo, notifier=notifier)


@pytest.mark.asyncio
class TestRelayClientWebhook:
    async def test_successful_delivery_is_recorded(self, relay_use_case, session_repo, notifier, mock_uow):
        """
        Given: A completed session with a webhook URL
        When: The event is relayed and the client answers 2xx
        Then: One attempt is recorded with a delivery time and no error
        """
        # Act
        result = await relay_use_case.execute("session_1")

        # Assert
        assert result.is_ok()
        assert result.value.event == "kyc.session.completed"
        assert result.value.delivered is True
        assert result.value.attempts == 1

        url, event, payload = notifier.deliver.call_args[0]
        assert url == "https://client.example/hook"
        assert event == "kyc.session.completed"
        assert payload["session_id"] == "session_1"
        assert payload["result"] == "rejected"
        assert payload["metadata"] == {"loan_id": "L-1"}

        session = session_repo.update.call_args[0][0]
        assert session.webhook_delivered is True
        assert session.webhook_delivered_at is not None
        assert session.webhook_last_error is None
        mock_uow.commit.assert_called_once()

    async def test_failed_delivery_records_error(self, relay_use_case, session_repo, notifier):
        notifier.deliver.return_value = DeliveryOutcome(delivered=False, status_code=500, error="HTTP 500")

        result = await relay_use_case.execute("session_1")

        assert result.is_ok()
        assert result.value.delivered is False
        session = session_repo.update.call_args[0][0]
        assert session.webhook_attempts == 1
        assert session.webhook_delivered_at is None
        assert session.webhook_last_error == "HTTP 500"

    async def test_no_webhook_url_skips_delivery(self, relay_use_case, session_repo, notifier):
        session_repo.get_by_id.return_value = make_session(webhook_url=None)

        result = await relay_use_case.execute("session_1")

        assert result.is_ok()
        assert result.value.delivered is False
        assert result.value.attempts == 0
        notifier.deliver.assert_not_called()
        session_repo.update.assert_not_called()

    async def test_unknown_session(self, relay_use_case, session_repo):
        session_repo.get_by_id.return_value = None

        result = await relay_use_case.execute("missing")

        assert result.error.code == "SESSION_NOT_FOUND"


class TestSessionPresentation:
    def test_event_payload(self):
        payload = build_event_payload(make_session(), "kyc.session.completed", datetime(2024, 2, 10, 2, 30))

        assert payload["event"] == "kyc.session.completed"
        assert payload["status"] == "completed"
        assert payload["reject_message"] == "Face mismatch"
        assert payload["document_number"] == "900101-14-5678"
        assert payload["timestamp"].startswith("2024-02-10T02:30:00")
        assert payload["timestamp"].endswith("Z")

    def test_session_view_exposes_ocr_fields(self):
        view = to_session_view(make_session())

        assert view.status == "completed"
        assert view.result == "rejected"
        assert view.reject_message == "Face mismatch"
        assert view.ocr_result == {"name": "ALI BIN ABU", "id_number": "900101145678"}

    def test_sanitize_drops_images_and_credentials(self):
        cleaned = sanitize_vendor_data(
            {
                "name": "ALI",
                "face_image": "base64",
                "signature": "sig",
                "api_key": "key",
                "step2": {"score": 0.9, "best_frame": "base64"},
            }
        )

        assert cleaned == {"name": "ALI", "step2": {"score": 0.9}}
