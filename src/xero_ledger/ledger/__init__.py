"""Multi-source account transaction aggregation."""

from __future__ import annotations

from xero_ledger.ledger.aggregator import AccountTransactionsAggregator
from xero_ledger.ledger.envelope import ToolResponse, format_error
from xero_ledger.ledger.models import (
    SOURCE_TYPES,
    AccountTransactionRow,
    AccountTransactionsResult,
    FetchResult,
    LedgerQuery,
)
from xero_ledger.ledger.protocol import AccountingClient

__all__ = [
    "AccountTransactionRow",
    "AccountTransactionsAggregator",
    "AccountTransactionsResult",
    "AccountingClient",
    "FetchResult",
    "LedgerQuery",
    "SOURCE_TYPES",
    "ToolResponse",
    "format_error",
]
