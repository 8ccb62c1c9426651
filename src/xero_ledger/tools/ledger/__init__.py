"""Ledger tools package."""

from xero_ledger.tools.ledger.account_transactions_tool import (
    ListAccountTransactionsTool,
    build_summary,
    write_results_file,
)

__all__ = [
    "ListAccountTransactionsTool",
    "build_summary",
    "write_results_file",
]
