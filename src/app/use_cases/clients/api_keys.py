"""API key issuance and authentication"""

import hashlib
import logging
import secrets
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.api_key_repository import ApiKeyRepository
from src.app.repositories.client_repository import ClientRepository
from src.domain.client import ClientStatus
from src.domain.client_api_key import ClientApiKey
from .dtos import ApiKeyCreatedDTO, AuthenticatedClientDTO

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "ts_live_"
KEY_PREFIX_LENGTH = 12


def hash_api_key(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()


def generate_api_key() -> str:
    return API_KEY_PREFIX + secrets.token_urlsafe(32)


class IssueApiKey:
    """
    Use Case: Issue an API key for a client

    The plaintext is returned once; only its SHA-256 and a short display
    prefix are stored.
    """

    def __init__(self, uow: UnitOfWork, client_repo: ClientRepository, api_key_repo: ApiKeyRepository):
        self.uow = uow
        self.client_repo = client_repo
        self.api_key_repo = api_key_repo

    async def execute(self, client_id: str) -> Result[ApiKeyCreatedDTO]:
        try:
            client = await self.client_repo.get_by_id(client_id)
            if not client:
                return Return.err(Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found"))

            plaintext = generate_api_key()
            key = await self.api_key_repo.create(
                ClientApiKey(
                    client_id=client_id,
                    key_hash=hash_api_key(plaintext),
                    key_prefix=plaintext[:KEY_PREFIX_LENGTH],
                )
            )
            await self.uow.commit()

            logger.info(f"Issued API key {key.key_prefix}... for client {client_id}")
            return Return.ok(
                ApiKeyCreatedDTO(
                    id=key.id,
                    client_id=client_id,
                    api_key=plaintext,
                    key_prefix=key.key_prefix,
                    created_at=key.created_at,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to issue API key for client {client_id}: {e}")
            return Return.err(
                Error(code="ISSUE_API_KEY_FAILED", message="Failed to issue API key", reason=str(e))
            )


class AuthenticateApiKey:
    """
    Use Case: Resolve a bearer API key to its client

    Unknown or revoked keys are UNAUTHORIZED; keys of a client that is not
    active are CLIENT_NOT_ACTIVE. last_used_at is recorded on success.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        client_repo: ClientRepository,
        api_key_repo: ApiKeyRepository,
        product_id: str = "true_identity",
    ):
        self.uow = uow
        self.client_repo = client_repo
        self.api_key_repo = api_key_repo
        self.product_id = product_id

    async def execute(self, api_key: str) -> Result[AuthenticatedClientDTO]:
        if not api_key:
            return Return.err(Error(code="UNAUTHORIZED", message="Missing or invalid Authorization header"))

        key = await self.api_key_repo.get_active_by_hash(hash_api_key(api_key))
        if not key:
            return Return.err(Error(code="UNAUTHORIZED", message="Invalid API key"))

        client = await self.client_repo.get_by_id(key.client_id)
        if not client:
            return Return.err(Error(code="UNAUTHORIZED", message="Invalid API key"))
        if client.status != ClientStatus.ACTIVE:
            return Return.err(Error(code="CLIENT_NOT_ACTIVE", message="Client is not active"))

        try:
            await self.api_key_repo.touch(key)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.warning(f"Could not record API key use for client {client.id}: {e}")

        return Return.ok(
            AuthenticatedClientDTO(
                client_id=client.id,
                client_code=client.code,
                product_id=self.product_id,
                api_key_id=key.id,
            )
        )
