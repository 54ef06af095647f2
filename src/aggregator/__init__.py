"""Aggregator package for collecting linked account data."""

from .data_aggregator import DataAggregator, AccountSummary, MAX_TRANSACTIONS_PAGE

__all__ = ['DataAggregator', 'AccountSummary', 'MAX_TRANSACTIONS_PAGE']
