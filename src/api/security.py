"""Request authentication dependencies"""

import hmac
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession
from libs.result import Error
from src.adapter.repositories.api_key_repository import SqlAlchemyApiKeyRepository
from src.adapter.repositories.client_repository import SqlAlchemyClientRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.app.use_cases.clients import AuthenticateApiKey, AuthenticatedClientDTO
from src.depends import get_config, get_session

bearer = HTTPBearer(auto_error=False)


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return ""
    return credentials.credentials


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    config=Depends(get_config),
) -> str:
    """
    Admin bearer token check

    Returns the acting admin label recorded as created_by/recorded_by.
    Bypassed when AUTH_DISABLED is set.
    """
    if config.AUTH_DISABLED:
        return "admin"

    token = _token(credentials)
    expected = config.ADMIN_API_TOKEN or ""
    if not token or not expected or not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise ClientError(Error(code="UNAUTHORIZED", message="Invalid or missing admin token"))
    return "admin"


async def require_api_client(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    session: AsyncSession = Depends(get_session),
    config=Depends(get_config),
) -> AuthenticatedClientDTO:
    """Resolve the Authorization: Bearer API key to its client"""
    use_case = AuthenticateApiKey(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyClientRepository(session),
        SqlAlchemyApiKeyRepository(session),
        product_id=config.DEFAULT_PRODUCT_ID,
    )
    result = await use_case.execute(_token(credentials))
    if result.is_err():
        raise ClientError(result.error)
    return result.value
