from .dtos import CreateClientCommandDTO, ClientDTO, ApiKeyCreatedDTO, AuthenticatedClientDTO
from .create_client import CreateClient
from .api_keys import IssueApiKey, AuthenticateApiKey, hash_api_key, generate_api_key

__all__ = [
    "CreateClientCommandDTO",
    "ClientDTO",
    "ApiKeyCreatedDTO",
    "AuthenticatedClientDTO",
    "CreateClient",
    "IssueApiKey",
    "AuthenticateApiKey",
    "hash_api_key",
    "generate_api_key",
]
