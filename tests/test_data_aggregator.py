"""Unit tests for DataAggregator."""

import pytest

from conftest import FakeRepresentable
from src.aggregator.data_aggregator import MAX_TRANSACTIONS_PAGE, DataAggregator
from src.data.token_client import KeyLevel, TokenClientError


@pytest.mark.asyncio
async def test_aggregate_collects_balance_and_transactions(usd_account):
    summaries = await DataAggregator().aggregate(FakeRepresentable([usd_account]))

    assert len(summaries) == 1
    summary = summaries[0]
    assert summary.account is usd_account
    assert summary.balance.available.value == '10.00'
    assert [tx.id for tx in summary.transactions] == ['t1']
    assert summary.next_offset is None
    assert usd_account.balance_levels == [KeyLevel.PRIVILEGED]
    assert usd_account.transaction_calls == [(None, MAX_TRANSACTIONS_PAGE, KeyLevel.PRIVILEGED)]


@pytest.mark.asyncio
async def test_transaction_page_is_capped_at_100(busy_account):
    summaries = await DataAggregator().aggregate(FakeRepresentable([busy_account]))

    assert busy_account.transaction_calls == [(None, 100, KeyLevel.PRIVILEGED)]
    assert len(summaries[0].transactions) == 100
    assert summaries[0].next_offset is not None


@pytest.mark.asyncio
async def test_larger_page_size_is_capped(busy_account):
    aggregator = DataAggregator(page_size=500)

    await aggregator.aggregate(FakeRepresentable([busy_account]))

    assert aggregator.page_size == 100
    assert busy_account.transaction_calls[0][1] == 100


@pytest.mark.asyncio
async def test_smaller_page_size_is_respected(busy_account):
    summaries = await DataAggregator(page_size=25).aggregate(FakeRepresentable([busy_account]))

    assert len(summaries[0].transactions) == 25


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        DataAggregator(page_size=0)


@pytest.mark.asyncio
async def test_accounts_keep_platform_order(usd_account, busy_account):
    summaries = await DataAggregator().aggregate(FakeRepresentable([busy_account, usd_account]))

    assert [s.account.account_id for s in summaries] == ['a:2', 'a:1']


@pytest.mark.asyncio
async def test_no_accounts(usd_account):
    assert await DataAggregator().aggregate(FakeRepresentable([])) == []


@pytest.mark.asyncio
async def test_platform_errors_propagate(usd_account):
    class FailingRepresentable(FakeRepresentable):
        async def get_accounts(self):
            raise TokenClientError('token revoked')

    with pytest.raises(TokenClientError):
        await DataAggregator().aggregate(FailingRepresentable([usd_account]))
