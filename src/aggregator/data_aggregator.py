"""Collects balances and transactions for every account under a consent."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..data.token_client import Account, Balance, KeyLevel, Representable, Transaction

logger = logging.getLogger(__name__)

# Largest transaction page the platform serves in one call
MAX_TRANSACTIONS_PAGE = 100


@dataclass
class AccountSummary:
    """Everything the report shows for a single account."""
    account: Account
    balance: Balance
    transactions: List[Transaction] = field(default_factory=list)
    # Offset of the next transaction page, None when the first page was the last
    next_offset: Optional[str] = None


class DataAggregator:
    """Walks the accounts reachable through a representable."""

    def __init__(self, page_size: int = MAX_TRANSACTIONS_PAGE):
        """
        Initialize the data aggregator.

        Args:
            page_size: Transactions requested per account, capped at MAX_TRANSACTIONS_PAGE.
        """
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.page_size = min(page_size, MAX_TRANSACTIONS_PAGE)
        logger.info("Data Aggregator initialized")

    async def aggregate(self, representable: Representable) -> List[AccountSummary]:
        """
        Fetch balance and the first transaction page of each account.

        Accounts keep the order the platform returns them in. Only the first
        page of transactions is fetched.

        Args:
            representable: Handle scoped to the granted access token.

        Returns:
            One AccountSummary per account.
        """
        accounts = await representable.get_accounts()
        logger.info(f"Aggregating {len(accounts)} accounts")

        summaries = []
        for account in accounts:
            balance = await account.get_balance(KeyLevel.PRIVILEGED)
            page = await account.get_transactions(None, self.page_size, KeyLevel.PRIVILEGED)
            if page.offset is not None:
                logger.info(f"Account {account.account_id}: more than {self.page_size} transactions, showing first page only")
            summaries.append(AccountSummary(
                account=account,
                balance=balance,
                transactions=list(page.items),
                next_offset=page.offset,
            ))

        total = sum(len(s.transactions) for s in summaries)
        logger.info(f"Aggregation complete: {len(summaries)} accounts, {total} transactions")
        return summaries
