"""Pytest configuration and fixtures."""

from typing import List, Optional

import pytest

from config.settings import AppConfig
from src.data.token_client import (
    Account,
    AccountDetails,
    AccountIdentifier,
    Balance,
    CustomerData,
    KeyLevel,
    Money,
    PagedList,
    Representable,
    Transaction,
    TransferEndpoint,
)


class FakeAccount(Account):
    """Account double that records how it was queried."""

    def __init__(self, account_id: str, details: AccountDetails, balance: Balance,
                 transactions: List[Transaction]):
        super().__init__(account_id, details)
        self.balance = balance
        self.transactions = transactions
        self.transaction_calls = []
        self.balance_levels = []

    async def get_balance(self, key_level: KeyLevel) -> Balance:
        self.balance_levels.append(key_level)
        return self.balance

    async def get_transactions(self, offset: Optional[str], limit: int, key_level: KeyLevel) -> PagedList:
        self.transaction_calls.append((offset, limit, key_level))
        items = self.transactions[:limit]
        next_offset = str(limit) if len(self.transactions) > limit else None
        return PagedList(items=items, offset=next_offset)


class FakeRepresentable(Representable):

    def __init__(self, accounts: List[Account]):
        self.accounts = accounts

    async def get_accounts(self) -> List[Account]:
        return list(self.accounts)


def make_transaction(tx_id: str, amount: str = '5.00', currency: str = 'USD', **kwargs) -> Transaction:
    return Transaction(
        id=tx_id,
        type=kwargs.get('type', 'DEBIT'),
        status=kwargs.get('status', 'SUCCESS'),
        amount=Money(amount, currency),
        created_at_ms=kwargs.get('created_at_ms', 1704067200000),
        creditor_endpoint=kwargs.get('creditor_endpoint', TransferEndpoint()),
    )


@pytest.fixture
def app_config(tmp_path):
    """Default configuration with keys kept in a temporary directory."""
    return AppConfig(keys_dir=tmp_path / 'keys')


@pytest.fixture
def usd_account():
    """One account: 10.00 available / 12.00 current USD and a single transaction t1."""
    details = AccountDetails(
        holder_name='Jane Holder',
        identifiers=[AccountIdentifier('IBAN', 'GB29NWBK60161331926819')],
        type='CHECKING',
    )
    balance = Balance(available=Money('10.00', 'USD'), current=Money('12.00', 'USD'))
    transaction = make_transaction(
        't1',
        creditor_endpoint=TransferEndpoint(
            account_identifier=AccountIdentifier('GB_DOMESTIC', '400000 11112222'),
            customer_data=CustomerData(legal_names=['Corner Grocer Ltd']),
        ),
    )
    return FakeAccount('a:1', details, balance, [transaction])


@pytest.fixture
def busy_account():
    """Account with more transactions than fit in one page."""
    details = AccountDetails(holder_name='Busy Holder', type='SAVINGS')
    balance = Balance(available=Money('1.00', 'GBP'), current=Money('1.00', 'GBP'))
    transactions = [make_transaction(f"t{i}", currency='GBP') for i in range(150)]
    return FakeAccount('a:2', details, balance, transactions)
