"""In-process simulation of the aggregation platform sandbox.

Lets the demo run end to end without vendor credentials: members are persisted
as key files in the keys directory, consent is granted immediately and the
linked accounts are mock data.
"""

import json
import logging
import secrets
from decimal import Decimal
from pathlib import Path
from typing import Dict, Any, List, Optional
from urllib.parse import urlencode

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .token_client import (
    Account,
    AccountDetails,
    AccountIdentifier,
    Alias,
    Balance,
    CustomerData,
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
    TransferEndpoint,
)

logger = logging.getLogger(__name__)

SANDBOX_CLUSTER = 'sandbox'

# 2024-01-01T00:00:00Z, base for mock transaction timestamps
_MOCK_EPOCH_MS = 1704067200000
_DAY_MS = 24 * 60 * 60 * 1000


def member_key_filename(member_id: str) -> str:
    """Key file name for a member id (``m:abc`` is stored as ``m_abc``)."""
    return member_id.replace(':', '_')


class SandboxAccount(Account):
    """Mock account holding a fixed balance and transaction history."""

    def __init__(self, account_id: str, details: AccountDetails, balance: Balance,
                 transactions: List[Transaction]):
        super().__init__(account_id, details)
        self._balance = balance
        self._transactions = transactions

    async def get_balance(self, key_level: KeyLevel) -> Balance:
        return self._balance

    async def get_transactions(self, offset: Optional[str], limit: int, key_level: KeyLevel) -> PagedList:
        if limit <= 0:
            raise TokenClientError(f"Invalid page limit: {limit}")
        start = int(offset) if offset else 0
        page = self._transactions[start:start + limit]
        end = start + len(page)
        next_offset = str(end) if end < len(self._transactions) else None
        return PagedList(items=page, offset=next_offset)


class SandboxRepresentable(Representable):

    def __init__(self, client: 'SandboxTokenClient', member_id: str, token_id: str):
        self._client = client
        self.member_id = member_id
        self.token_id = token_id

    async def get_accounts(self) -> List[Account]:
        grant = self._client._tokens.get(self.token_id)
        if grant is None:
            raise TokenClientError(f"Unknown access token: {self.token_id}")
        if grant['member_id'] != self.member_id:
            raise TokenClientError(f"Access token {self.token_id} was not issued to {self.member_id}")
        if ResourceType.ACCOUNTS not in grant['resources']:
            raise TokenClientError(f"Access token {self.token_id} does not grant account access")
        return self._client._mock_accounts(self.token_id)


class SandboxMember(Member):
    """Member whose state lives in a key file inside the keys directory."""

    def __init__(self, client: 'SandboxTokenClient', member_id: str, data: Dict[str, Any]):
        super().__init__(member_id)
        self._client = client
        self._data = data

    @property
    def redirect_urls(self) -> List[str]:
        return list(self._data.get('redirect_urls', []))

    async def first_alias(self) -> Alias:
        aliases = self._data.get('aliases') or []
        if not aliases:
            raise TokenClientError(f"Member {self.member_id} has no alias")
        first = aliases[0]
        return Alias(value=first['value'], type=first.get('type', 'DOMAIN'))

    async def add_redirect_urls(self, urls: List[str]) -> None:
        current = self._data.setdefault('redirect_urls', [])
        for url in urls:
            if url not in current:
                current.append(url)
        self._client._save_member(self.member_id, self._data)
        logger.info(f"Registered {len(urls)} redirect URL(s) for member {self.member_id}")

    async def store_token_request(self, request: TokenRequest) -> str:
        if request.redirect_url not in self._data.get('redirect_urls', []):
            raise TokenClientError(f"Redirect URL not registered for member {self.member_id}: {request.redirect_url}")
        if request.to_member_id != self.member_id:
            raise TokenClientError(f"Token request addressed to {request.to_member_id}, not {self.member_id}")
        request_id = f"rq:{secrets.token_hex(12)}"
        self._client._requests[request_id] = request
        logger.info(f"Stored token request {request_id} (ref {request.ref_id})")
        return request_id

    def for_access_token(self, token_id: str) -> Representable:
        return SandboxRepresentable(self._client, self.member_id, token_id)


class SandboxTokenClient(TokenClient):
    """Simulated sandbox cluster backed by a keys directory."""

    cluster = SANDBOX_CLUSTER

    def __init__(self, keys_dir: Path):
        self.keys_dir = Path(keys_dir)
        self._requests: Dict[str, TokenRequest] = {}
        # request id -> token id once consent has been given
        self._results: Dict[str, str] = {}
        self._tokens: Dict[str, Dict[str, Any]] = {}
        logger.warning("SIMULATION: Using sandbox aggregation client - NOT FOR PRODUCTION")

    def _member_path(self, member_id: str) -> Path:
        return self.keys_dir / member_key_filename(member_id)

    def _save_member(self, member_id: str, data: Dict[str, Any]) -> None:
        self.keys_dir.mkdir(parents=True, exist_ok=True)
        self._member_path(member_id).write_text(json.dumps(data, indent=2))

    @staticmethod
    def _generate_signing_key() -> Dict[str, str]:
        # RS256 keys can be checked with common JWT tooling
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return {
            'algorithm': 'RS256',
            'level': KeyLevel.PRIVILEGED.value,
            'private_key': pem.decode('ascii'),
        }

    async def create_member(self, alias: Alias) -> Member:
        member_id = f"m:{secrets.token_hex(10)}"
        data = {
            'member_id': member_id,
            'aliases': [{'type': alias.type, 'value': alias.value}],
            'redirect_urls': [],
            'keys': [self._generate_signing_key()],
        }
        self._save_member(member_id, data)
        logger.info(f"Created sandbox member {member_id} with alias {alias.value}")
        return SandboxMember(self, member_id, data)

    async def get_member(self, member_id: str) -> Member:
        path = self._member_path(member_id)
        if not path.is_file():
            raise TokenClientError(f"No key material for member {member_id}")
        try:
            data = json.loads(path.read_text())
            for key in data['keys']:
                serialization.load_pem_private_key(key['private_key'].encode('ascii'), password=None)
        except (ValueError, KeyError, TypeError) as e:
            raise TokenClientError(f"Corrupt key material for member {member_id}: {e}")
        logger.info(f"Loaded sandbox member {member_id}")
        return SandboxMember(self, member_id, data)

    async def generate_token_request_url(self, request_id: str) -> str:
        request = self._requests.get(request_id)
        if request is None:
            raise TokenClientError(f"Unknown token request: {request_id}")
        # Consent is granted straight away; the user lands on the redirect URL
        logger.warning(f"SIMULATION: Auto-approving token request {request_id}")
        token_id = f"tt:{secrets.token_hex(12)}"
        self._tokens[token_id] = {
            'member_id': request.to_member_id,
            'resources': list(request.resources),
        }
        self._results[request_id] = token_id
        return f"{request.redirect_url}?{urlencode({'request-id': request_id})}"

    async def get_token_request_result(self, request_id: str) -> TokenRequestResult:
        if request_id not in self._results:
            raise TokenClientError(f"No result for token request: {request_id}")
        return TokenRequestResult(token_id=self._results.pop(request_id))

    def _mock_accounts(self, token_id: str) -> List[Account]:
        grant = self._tokens[token_id]
        resources = grant['resources']
        holder = 'Sandbox Holder'
        currency = 'GBP'

        mock_accounts_data = [
            {
                'suffix': 'current_001',
                'type': 'CHECKING',
                'sort_code': '500000',
                'account_number': '12345678',
                'available': Decimal('2547.83'),
                'current': Decimal('2610.20'),
                'transactions': 8,
            },
            {
                'suffix': 'savings_001',
                'type': 'SAVINGS',
                'sort_code': '500000',
                'account_number': '87654321',
                'available': Decimal('15420.91'),
                'current': Decimal('15420.91'),
                'transactions': 130,
            },
        ]
        accounts: List[Account] = []
        for acc in mock_accounts_data:
            account_id = f"a:{token_id[3:11]}:{acc['suffix']}"
            details = AccountDetails(
                holder_name=holder,
                identifiers=[
                    AccountIdentifier('GB_DOMESTIC', f"{acc['sort_code']} {acc['account_number']}"),
                    AccountIdentifier('IBAN', f"GB29NWBK{acc['sort_code']}{acc['account_number']}"),
                ],
                type=acc['type'],
            )
            if ResourceType.BALANCES in resources:
                balance = Balance(
                    available=Money(str(acc['available']), currency),
                    current=Money(str(acc['current']), currency),
                )
            else:
                balance = Balance(available=Money('', ''), current=Money('', ''))
            transactions = []
            if ResourceType.TRANSACTIONS in resources:
                transactions = self._mock_transactions(account_id, acc['transactions'], currency)
            accounts.append(SandboxAccount(account_id, details, balance, transactions))
        logger.info(f"SIMULATION: Generated {len(accounts)} mock accounts for token {token_id}")
        return accounts

    @staticmethod
    def _mock_transactions(account_id: str, count: int, currency: str) -> List[Transaction]:
        creditors = [
            ('Corner Grocer Ltd', '400000 11112222'),
            ('City Energy plc', '200000 33334444'),
            ('Rent Lettings Co', '600000 55556666'),
        ]
        transactions = []
        for i in range(count):
            name, identifier = creditors[i % len(creditors)]
            amount = Decimal(5 + (i * 7) % 95) + Decimal('0.49')
            transactions.append(Transaction(
                id=f"{account_id}:t{i + 1}",
                type='DEBIT' if i % 4 else 'CREDIT',
                status='SUCCESS' if i % 10 else 'PROCESSING',
                amount=Money(str(amount), currency),
                created_at_ms=_MOCK_EPOCH_MS + i * _DAY_MS,
                creditor_endpoint=TransferEndpoint(
                    account_identifier=AccountIdentifier('GB_DOMESTIC', identifier),
                    customer_data=CustomerData(legal_names=[name]),
                ) if i % 4 else TransferEndpoint(),
            ))
        return transactions
