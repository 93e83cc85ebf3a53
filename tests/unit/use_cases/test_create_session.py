"""Unit tests for CreateSession use case

Tests cover:
- Happy path with the vendor onboarding URL
- Client, product and credit checks
- Vendor failure handling
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.services.verification_gateway import GatewayError, GatewayTransaction
from src.app.use_cases.verification.create_session import CreateSession, generate_ref_id
from src.app.use_cases.verification.dtos import CreateSessionCommandDTO
from src.domain.client import Client, ClientProductConfig, ClientStatus
from src.domain.verification_session import SessionStatus


@pytest.fixture
def client():
    return Client(id="client_1", name="Acme Lending", code="ACME", status=ClientStatus.ACTIVE)


@pytest.fixture
def product_config():
    return ClientProductConfig(
        id=1,
        client_id="client_1",
        product_id="true_identity",
        enabled=True,
        allow_overdraft=False,
        webhook_url="https://acme.example/kyc-events",
    )


@pytest.fixture
def repos(client, product_config):
    client_repo = MagicMock()
    client_repo.get_by_id = AsyncMock(return_value=client)
    client_repo.get_product_config = AsyncMock(return_value=product_config)

    session_repo = MagicMock()
    session_repo.create = AsyncMock(side_effect=lambda s: s)
    session_repo.update = AsyncMock(side_effect=lambda s: s)
    session_repo.count_billed_between = AsyncMock(return_value=0)

    ledger_repo = MagicMock()
    ledger_repo.get_balance = AsyncMock(return_value=200)

    tier_repo = MagicMock()
    tier_repo.list_for_client_product = AsyncMock(return_value=[])
    return client_repo, session_repo, ledger_repo, tier_repo


@pytest.fixture
def gateway():
    gateway = MagicMock()
    gateway.create_transaction = AsyncMock(
        return_value=GatewayTransaction(onboarding_id="ONB-1", onboarding_url="https://vendor.example/onb/1")
    )
    return gateway


@pytest.fixture
def create_use_case(mock_uow, repos, gateway):
    client_repo, session_repo, ledger_repo, tier_repo = repos
    return CreateSession(
        uow=mock_uow,
        client_repo=client_repo,
        session_repo=session_repo,
        ledger_repo=ledger_repo,
        tier_repo=tier_repo,
        gateway=gateway,
        default_credits_per_session=50,
    )


def command(**overrides) -> CreateSessionCommandDTO:
    values = dict(
        client_id="client_1",
        document_name="Ali bin Abu",
        document_number="900101-14-5678",
        metadata={"loan_id": "L-1"},
    )
    values.update(overrides)
    return CreateSessionCommandDTO(**values)


class TestGenerateRefId:
    def test_format(self):
        ref_id = generate_ref_id("ACME")

        code, stamp, suffix = ref_id.split("_")
        assert code == "ACME"
        assert stamp.isalnum()
        assert len(suffix) == 8

    def test_long_code_is_truncated(self):
        ref_id = generate_ref_id("VERYLONGCLIENTCODE")

        assert ref_id.startswith("VERYLONG_")
        assert len(ref_id) <= 32

    def test_unique(self):
        assert generate_ref_id("ACME") != generate_ref_id("ACME")


@pytest.mark.asyncio
class TestCreateSessionSuccess:
    async def test_creates_session_with_onboarding_url(self, create_use_case, repos, gateway, mock_uow):
        """
        Given: An active client with enough credits
        When: A session is created
        Then: The vendor transaction is started and its URL returned; nothing is charged
        """
        # Act
        result = await create_use_case.execute(command())

        # Assert
        assert result.is_ok()
        created = result.value
        assert created.onboarding_url == "https://vendor.example/onb/1"
        assert created.status == "pending"
        assert created.ref_id.startswith("ACME_")

        _, session_repo, _, _ = repos
        session = session_repo.update.call_args[0][0]
        assert session.onboarding_id == "ONB-1"
        assert session.webhook_url == "https://acme.example/kyc-events"
        assert session.client_metadata == {"loan_id": "L-1"}
        assert session.billed is False
        assert session.expires_at is not None

        request = gateway.create_transaction.call_args[0][0]
        assert request.ref_id == created.ref_id
        assert request.session_id == created.id
        assert mock_uow.commit.call_count == 2

    async def test_request_webhook_url_overrides_config(self, create_use_case, repos):
        result = await create_use_case.execute(command(webhook_url="https://override.example/hook"))

        assert result.is_ok()
        _, session_repo, _, _ = repos
        assert session_repo.create.call_args[0][0].webhook_url == "https://override.example/hook"

    async def test_overdraft_allows_empty_balance(self, create_use_case, repos, product_config):
        client_repo, _, ledger_repo, _ = repos
        product_config.allow_overdraft = True
        ledger_repo.get_balance.return_value = -100

        result = await create_use_case.execute(command())

        assert result.is_ok()


@pytest.mark.asyncio
class TestCreateSessionRejections:
    async def test_missing_document_fields(self, create_use_case, repos):
        result = await create_use_case.execute(command(document_number="  "))

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
        client_repo, _, _, _ = repos
        client_repo.get_by_id.assert_not_called()

    async def test_unknown_client(self, create_use_case, repos):
        repos[0].get_by_id.return_value = None

        result = await create_use_case.execute(command())

        assert result.error.code == "CLIENT_NOT_FOUND"

    async def test_suspended_client(self, create_use_case, client):
        client.status = ClientStatus.SUSPENDED

        result = await create_use_case.execute(command())

        assert result.error.code == "CLIENT_NOT_ACTIVE"

    async def test_product_disabled(self, create_use_case, product_config):
        product_config.enabled = False

        result = await create_use_case.execute(command())

        assert result.error.code == "PRODUCT_NOT_ENABLED"

    async def test_insufficient_credits(self, create_use_case, repos, gateway):
        """
        Given: A balance below the next session's rate and no overdraft
        When: A session is requested
        Then: INSUFFICIENT_CREDITS and no vendor call
        """
        # Arrange
        _, session_repo, ledger_repo, _ = repos
        ledger_repo.get_balance.return_value = 49

        # Act
        result = await create_use_case.execute(command())

        # Assert
        assert result.is_err()
        assert result.error.code == "INSUFFICIENT_CREDITS"
        session_repo.create.assert_not_called()
        gateway.create_transaction.assert_not_called()

    async def test_vendor_failure_expires_session(self, create_use_case, repos, gateway):
        """
        Given: The vendor rejects the transaction
        When: A session is requested
        Then: The stored session is expired with the reason and GATEWAY_ERROR is returned
        """
        # Arrange
        gateway.create_transaction.side_effect = GatewayError("Invalid signature")

        # Act
        result = await create_use_case.execute(command())

        # Assert
        assert result.is_err()
        assert result.error.code == "GATEWAY_ERROR"
        _, session_repo, _, _ = repos
        session = session_repo.update.call_args[0][0]
        assert session.status == SessionStatus.EXPIRED
        assert session.reject_message == "Invalid signature"
