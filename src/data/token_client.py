"""Boundary to the aggregation platform: value types and collaborator interface.

Everything the app needs from the vendor SDK is expressed here so the identity,
consent and report code can run against any implementation (the sandbox
simulation in ``sandbox_client`` or a real SDK adapter).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TokenClientError(Exception):
    """Raised when the aggregation platform rejects or cannot serve a call."""


class ResourceType(Enum):
    ACCOUNTS = 'ACCOUNTS'
    BALANCES = 'BALANCES'
    TRANSACTIONS = 'TRANSACTIONS'


class KeyLevel(Enum):
    LOW = 'LOW'
    STANDARD = 'STANDARD'
    PRIVILEGED = 'PRIVILEGED'


@dataclass(frozen=True)
class Alias:
    value: str
    type: str = 'DOMAIN'


@dataclass
class TokenRequest:
    """Access request a member asks the end user to consent to."""
    resources: List[ResourceType]
    ref_id: str
    to_member_id: str
    to_alias: Alias
    redirect_url: str


@dataclass(frozen=True)
class TokenRequestResult:
    token_id: Optional[str]


@dataclass(frozen=True)
class Money:
    # Amounts travel as decimal strings, as the platform returns them
    value: str
    currency: str


@dataclass(frozen=True)
class AccountIdentifier:
    type: str
    value: str

    def __str__(self) -> str:
        return f"{self.type}: {self.value}"


@dataclass
class AccountDetails:
    holder_name: str
    identifiers: List[AccountIdentifier] = field(default_factory=list)
    type: str = 'OTHER'


@dataclass(frozen=True)
class Balance:
    available: Money
    current: Money


@dataclass
class CustomerData:
    legal_names: List[str] = field(default_factory=list)
    address: Optional[str] = None

    def __str__(self) -> str:
        text = ', '.join(self.legal_names)
        if self.address:
            text = f"{text} ({self.address})" if text else self.address
        return text


@dataclass
class TransferEndpoint:
    account_identifier: Optional[AccountIdentifier] = None
    customer_data: Optional[CustomerData] = None


@dataclass
class Transaction:
    id: str
    type: str
    status: str
    amount: Money
    created_at_ms: int
    creditor_endpoint: TransferEndpoint = field(default_factory=TransferEndpoint)


@dataclass
class PagedList:
    """One page of results plus the offset of the next page (None when last)."""
    items: list
    offset: Optional[str] = None


class Account(ABC):
    """A linked account reachable through a representable."""

    def __init__(self, account_id: str, details: AccountDetails):
        self.account_id = account_id
        self.details = details

    @abstractmethod
    async def get_balance(self, key_level: KeyLevel) -> Balance:
        ...

    @abstractmethod
    async def get_transactions(self, offset: Optional[str], limit: int, key_level: KeyLevel) -> PagedList:
        ...


class Representable(ABC):
    """Capability handle scoped to one granted access token."""

    @abstractmethod
    async def get_accounts(self) -> List[Account]:
        ...


class Member(ABC):
    """The local account holder registered with the platform."""

    def __init__(self, member_id: str):
        self.member_id = member_id

    @abstractmethod
    async def first_alias(self) -> Alias:
        ...

    @abstractmethod
    async def add_redirect_urls(self, urls: List[str]) -> None:
        ...

    @abstractmethod
    async def store_token_request(self, request: TokenRequest) -> str:
        """Store an access request and return its request id."""

    @abstractmethod
    def for_access_token(self, token_id: str) -> Representable:
        ...


class TokenClient(ABC):
    """Entry point of the aggregation platform SDK."""

    cluster: str = ''

    @abstractmethod
    async def create_member(self, alias: Alias) -> Member:
        ...

    @abstractmethod
    async def get_member(self, member_id: str) -> Member:
        ...

    @abstractmethod
    async def get_token_request_result(self, request_id: str) -> TokenRequestResult:
        ...

    @abstractmethod
    async def generate_token_request_url(self, request_id: str) -> str:
        ...
