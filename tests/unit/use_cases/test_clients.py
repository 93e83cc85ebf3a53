"""Unit tests for client registration and API key use cases"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.clients import (
    AuthenticateApiKey,
    CreateClient,
    CreateClientCommandDTO,
    IssueApiKey,
    generate_api_key,
    hash_api_key,
)
from src.domain.client import Client, ClientStatus
from src.domain.client_api_key import ClientApiKey


@pytest.fixture
def client():
    return Client(id="client_1", name="Acme Lending", code="ACME", status=ClientStatus.ACTIVE)


@pytest.fixture
def client_repo(client):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=client)
    repo.get_by_code = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda c: c)
    repo.save_product_config = AsyncMock(side_effect=lambda config: config)
    return repo


@pytest.fixture
def account_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda account: account)
    return repo


def store_key(key: ClientApiKey) -> ClientApiKey:
    key.id = 7
    return key


@pytest.fixture
def api_key_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=store_key)
    repo.get_active_by_hash = AsyncMock(return_value=None)
    repo.touch = AsyncMock()
    return repo


@pytest.mark.asyncio
class TestCreateClient:
    async def test_creates_client_config_and_account(self, mock_uow, client_repo, account_repo):
        """
        Given: An unused client code
        When: The client is registered
        Then: Client, product configuration and an empty account are created in one commit
        """
        # Arrange
        use_case = CreateClient(uow=mock_uow, client_repo=client_repo, account_repo=account_repo)

        # Act
        result = await use_case.execute(
            CreateClientCommandDTO(
                name=" Acme Lending ",
                code="ACME",
                allow_overdraft=True,
                webhook_url="https://acme.example/hooks/kyc",
            )
        )

        # Assert
        assert result.is_ok()
        created = result.value
        assert created.name == "Acme Lending"
        assert created.status == "active"
        assert created.product_id == "true_identity"
        assert created.allow_overdraft is True
        assert created.webhook_url == "https://acme.example/hooks/kyc"
        account = account_repo.create.call_args[0][0]
        assert account.balance == 0
        assert account.client_id == created.id
        mock_uow.commit.assert_called_once()

    async def test_duplicate_code(self, mock_uow, client_repo, account_repo, client):
        client_repo.get_by_code.return_value = client
        use_case = CreateClient(uow=mock_uow, client_repo=client_repo, account_repo=account_repo)

        result = await use_case.execute(CreateClientCommandDTO(name="Other", code="ACME"))

        assert result.is_err()
        assert result.error.code == "CLIENT_CODE_EXISTS"
        client_repo.create.assert_not_called()


class TestApiKeyHelpers:
    def test_generated_key_has_prefix(self):
        assert generate_api_key().startswith("ts_live_")

    def test_hash_is_hex_sha256(self):
        digest = hash_api_key("ts_live_abc")

        assert len(digest) == 64
        assert digest == hash_api_key("ts_live_abc")
        assert digest != hash_api_key("ts_live_abd")


@pytest.mark.asyncio
class TestIssueApiKey:
    async def test_stores_only_hash(self, mock_uow, client_repo, api_key_repo):
        """
        Given: An existing client
        When: An API key is issued
        Then: The plaintext is returned once and only its hash and prefix are stored
        """
        # Arrange
        use_case = IssueApiKey(uow=mock_uow, client_repo=client_repo, api_key_repo=api_key_repo)

        # Act
        result = await use_case.execute("client_1")

        # Assert
        assert result.is_ok()
        issued = result.value
        stored = api_key_repo.create.call_args[0][0]
        assert stored.key_hash == hash_api_key(issued.api_key)
        assert stored.key_prefix == issued.api_key[:12]
        assert issued.api_key not in (stored.key_hash, stored.key_prefix)
        assert issued.id == 7
        mock_uow.commit.assert_called_once()

    async def test_unknown_client(self, mock_uow, client_repo, api_key_repo):
        client_repo.get_by_id.return_value = None
        use_case = IssueApiKey(uow=mock_uow, client_repo=client_repo, api_key_repo=api_key_repo)

        result = await use_case.execute("missing")

        assert result.error.code == "CLIENT_NOT_FOUND"
        api_key_repo.create.assert_not_called()


@pytest.mark.asyncio
class TestAuthenticateApiKey:
    @pytest.fixture
    def stored_key(self):
        return ClientApiKey(id=7, client_id="client_1", key_hash=hash_api_key("ts_live_secret"), key_prefix="ts_live_secr")

    async def test_valid_key(self, mock_uow, client_repo, api_key_repo, stored_key):
        api_key_repo.get_active_by_hash.return_value = stored_key
        use_case = AuthenticateApiKey(uow=mock_uow, client_repo=client_repo, api_key_repo=api_key_repo)

        result = await use_case.execute("ts_live_secret")

        assert result.is_ok()
        assert result.value.client_id == "client_1"
        assert result.value.client_code == "ACME"
        assert result.value.api_key_id == 7
        api_key_repo.get_active_by_hash.assert_called_once_with(hash_api_key("ts_live_secret"))
        api_key_repo.touch.assert_called_once_with(stored_key)

    async def test_unknown_key(self, mock_uow, client_repo, api_key_repo):
        use_case = AuthenticateApiKey(uow=mock_uow, client_repo=client_repo, api_key_repo=api_key_repo)

        result = await use_case.execute("ts_live_wrong")

        assert result.error.code == "UNAUTHORIZED"

    async def test_empty_key(self, mock_uow, client_repo, api_key_repo):
        use_case = AuthenticateApiKey(uow=mock_uow, client_repo=client_repo, api_key_repo=api_key_repo)

        result = await use_case.execute("")

        assert result.error.code == "UNAUTHORIZED"
        api_key_repo.get_active_by_hash.assert_not_called()

    async def test_suspended_client(self, mock_uow, client_repo, api_key_repo, stored_key, client):
        """
        Given: A valid key whose client is suspended
        When: The key is presented
        Then: CLIENT_NOT_ACTIVE
        """
        # Arrange
        api_key_repo.get_active_by_hash.return_value = stored_key
        client.status = ClientStatus.SUSPENDED
        use_case = AuthenticateApiKey(uow=mock_uow, client_repo=client_repo, api_key_repo=api_key_repo)

        # Act
        result = await use_case.execute("ts_live_secret")

        # Assert
        assert result.error.code == "CLIENT_NOT_ACTIVE"
        api_key_repo.touch.assert_not_called()

    async def test_touch_failure_still_authenticates(self, mock_uow, client_repo, api_key_repo, stored_key):
        api_key_repo.get_active_by_hash.return_value = stored_key
        api_key_repo.touch.side_effect = Exception("database is locked")
        use_case = AuthenticateApiKey(uow=mock_uow, client_repo=client_repo, api_key_repo=api_key_repo)

        result = await use_case.execute("ts_live_secret")

        assert result.is_ok()
        mock_uow.rollback.assert_called_once()
