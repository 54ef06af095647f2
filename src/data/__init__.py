"""Data package: aggregation platform boundary and the sandbox simulation."""

from .token_client import (
    Account,
    AccountDetails,
    AccountIdentifier,
    Alias,
    Balance,
    KeyLevel,
    Member,
    Money,
    PagedList,
    Representable,
    ResourceType,
    TokenClient,
    TokenClientError,
    TokenRequest,
    TokenRequestResult,
    Transaction,
)
from .sandbox_client import SandboxTokenClient

__all__ = [
    'Account', 'AccountDetails', 'AccountIdentifier', 'Alias', 'Balance', 'KeyLevel',
    'Member', 'Money', 'PagedList', 'Representable', 'ResourceType', 'TokenClient',
    'TokenClientError', 'TokenRequest', 'TokenRequestResult', 'Transaction',
    'SandboxTokenClient',
]
