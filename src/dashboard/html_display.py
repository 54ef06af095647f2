"""HTML report of the aggregated accounts and transactions."""

import logging
from html import escape
from typing import Any, List

from ..aggregator.data_aggregator import AccountSummary

logger = logging.getLogger(__name__)

ACCOUNT_COLUMNS = [
    'Holder name',
    'Account identifiers',
    'Account type',
    'Available balance',
    'Current balance',
    'Currency',
]

TRANSACTION_COLUMNS = [
    'ID',
    'Type',
    'Status',
    'Amount',
    'Currency',
    'Created at',
    'Creditor (account identifiers)',
    'Creditor (customer data)',
]

_STYLE = (
    "body{font-family:sans-serif;margin:2em}"
    "table{border-collapse:collapse;margin-bottom:1.5em}"
    "th,td{border:1px solid #ccc;padding:4px 8px;text-align:left}"
    "th{background:#f0f0f0}"
)


def _cell(value: Any) -> str:
    if value is None:
        return "<td></td>"
    return f"<td>{escape(str(value))}</td>"


def _header(columns: List[str]) -> str:
    return "<thead><tr>" + "".join(f"<th>{escape(c)}</th>" for c in columns) + "</tr></thead>"


class HtmlDisplay:
    """Renders aggregation results as a standalone HTML document."""

    title = 'Aggregation results'

    def render(self, summaries: List[AccountSummary]) -> str:
        parts = [f"<h1>{escape(self.title)}</h1>"]
        if not summaries:
            parts.append("<p>No accounts were shared.</p>")
        for summary in summaries:
            parts.append(self._account_table(summary))
            parts.append(self._transaction_table(summary))
        logger.info(f"Rendered report for {len(summaries)} accounts")
        return self._document(self.title, "".join(parts))

    def render_error(self, title: str, message: str) -> str:
        body = f"<h1>{escape(title)}</h1><p>{escape(message)}</p>"
        return self._document(title, body)

    @staticmethod
    def _document(title: str, body: str) -> str:
        return (
            "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
            f"<title>{escape(title)}</title><style>{_STYLE}</style></head>"
            f"<body>{body}</body></html>"
        )

    def _account_table(self, summary: AccountSummary) -> str:
        details = summary.account.details
        balance = summary.balance
        identifiers = "".join(f"<li>{escape(str(i))}</li>" for i in details.identifiers)
        row = (
            _cell(details.holder_name)
            + f"<td><ul>{identifiers}</ul></td>"
            + _cell(details.type)
            + _cell(balance.available.value)
            + _cell(balance.current.value)
            + _cell(balance.available.currency)
        )
        return (
            "<h2>Account</h2>"
            f"<table class=\"account\">{_header(ACCOUNT_COLUMNS)}"
            f"<tbody><tr>{row}</tr></tbody></table>"
        )

    def _transaction_table(self, summary: AccountSummary) -> str:
        rows = []
        for tx in summary.transactions:
            creditor = tx.creditor_endpoint
            rows.append(
                "<tr>"
                + _cell(tx.id)
                + _cell(tx.type)
                + _cell(tx.status)
                + _cell(tx.amount.value)
                + _cell(tx.amount.currency)
                + _cell(tx.created_at_ms)
                + _cell(creditor.account_identifier)
                + _cell(creditor.customer_data)
                + "</tr>"
            )
        note = ""
        if summary.next_offset is not None:
            note = f"<p>Showing the first {len(summary.transactions)} transactions.</p>"
        return (
            "<h2>Transactions</h2>"
            f"<table class=\"transactions\">{_header(TRANSACTION_COLUMNS)}"
            f"<tbody>{''.join(rows)}</tbody></table>{note}"
        )
