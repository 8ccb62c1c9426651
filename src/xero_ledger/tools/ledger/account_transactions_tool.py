"""Tool exposing the per-account transaction report to agents."""

from __future__ import annotations

from collections.abc import Sequence
import json
from pathlib import Path
import tempfile
import time
from typing import Any

from loguru import logger

from xero_ledger.adapters.clients.xero import XeroClient
from xero_ledger.core.config import DEFAULT_LIMITS, AggregationLimits
from xero_ledger.ledger.aggregator import AccountTransactionsAggregator
from xero_ledger.ledger.envelope import ToolResponse
from xero_ledger.ledger.models import (
    SOURCE_TYPES,
    AccountTransactionRow,
    AccountTransactionsResult,
)
from xero_ledger.ledger.protocol import AccountingClient
from xero_ledger.tools.base import StandardTool
from xero_ledger.tools.protocol import ToolInputSchema

RESULTS_FILE_PREFIX = "xero-acct-txns"


def account_label(
    account_codes: Sequence[str] | None, account_ids: Sequence[str] | None
) -> str:
    if account_codes:
        return f"accounts {', '.join(account_codes)}"
    if account_ids:
        return f"accounts {', '.join(account_ids)}"
    return "all accounts"


def write_results_file(
    rows: Sequence[AccountTransactionRow],
    *,
    output_dir: Path | None = None,
    timestamp_ms: int | None = None,
) -> Path:
    """Write rows as indented JSON and return the file path.

    Large reports go to disk so the agent can page through them instead of
    receiving every row in its context.
    """
    directory = output_dir or Path(tempfile.gettempdir())
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    path = directory / f"{RESULTS_FILE_PREFIX}-{stamp}.json"
    path.write_text(
        json.dumps([row.to_dict() for row in rows], indent=2), encoding="utf-8"
    )
    logger.bind(path=str(path), rows=len(rows)).info(
        "Wrote {} account transaction rows to {}", len(rows), path
    )
    return path


def build_summary(
    *,
    label: str,
    from_date: str,
    to_date: str,
    row_count: int,
    results_file: Path,
    warnings: Sequence[str],
) -> str:
    lines = [
        f"Account Transactions for {label}",
        f"Date range: {from_date} to {to_date}",
        f"Rows returned: {row_count}",
        f"Results file: {results_file}",
    ]
    if warnings:
        lines.extend(["", "Warnings:", *(f"  - {w}" for w in warnings)])
    return "\n".join(lines)


class ListAccountTransactionsTool(StandardTool):
    """
    Tool wrapper around AccountTransactionsAggregator.

    Writes the rows to a JSON file and returns a short summary with the
    file path, so the caller can inspect large ledgers without loading them
    into context.
    """

    _name = "list_account_transactions"
    _description = (
        "List account transactions from Xero as a per-account ledger: date, "
        "source type, contact, description, reference, debit, credit, net, VAT "
        "and the related account from the other side of each double-entry. "
        "Fetches invoices, credit notes, bank transactions and manual journals "
        "for a date range (fromDate and toDate are required, YYYY-MM-DD) and "
        "filters by one or more account codes or account IDs. Rows are written "
        "to a JSON file whose path is returned with a summary. Payroll journals "
        "and system-generated entries are not included."
    )
    _input_schema: ToolInputSchema = {
        "type": "object",
        "properties": {
            "fromDate": {
                "type": "string",
                "format": "date",
                "description": "Start date in YYYY-MM-DD format (required)",
            },
            "toDate": {
                "type": "string",
                "format": "date",
                "description": "End date in YYYY-MM-DD format (required)",
            },
            "accountCodes": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Filter by one or more account codes, e.g. ['200', '400']",
            },
            "accountIds": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Filter by one or more account UUIDs",
            },
            "sourceType": {
                # Not an enum: unknown types are accepted and return no rows.
                "type": "string",
                "description": "Filter by source type: " + ", ".join(SOURCE_TYPES),
            },
        },
        "required": ["fromDate", "toDate"],
    }

    def __init__(
        self,
        client: AccountingClient | None = None,
        *,
        limits: AggregationLimits = DEFAULT_LIMITS,
        output_dir: Path | None = None,
    ) -> None:
        """
        Args:
            client: Accounting client to query. When omitted, a XeroClient is
                built from the environment for each call and closed after it.
            limits: Paging and retry limits
            output_dir: Directory for results files (system temp dir if None)
        """
        self._client = client
        self._limits = limits
        self._output_dir = output_dir

    async def _run(
        self,
        from_date: str,
        to_date: str,
        account_codes: list[str] | None,
        account_ids: list[str] | None,
        source_type: str | None,
    ) -> ToolResponse[AccountTransactionsResult]:
        if self._client is not None:
            aggregator = AccountTransactionsAggregator(self._client, limits=self._limits)
            return await aggregator.list_account_transactions(
                from_date, to_date, account_codes, account_ids, source_type
            )

        try:
            client = XeroClient.from_env()
        except Exception as e:
            return ToolResponse.failure(e)
        async with client:
            aggregator = AccountTransactionsAggregator(client, limits=self._limits)
            return await aggregator.list_account_transactions(
                from_date, to_date, account_codes, account_ids, source_type
            )

    async def _execute_impl(self, **kwargs: Any) -> dict[str, Any]:
        from_date: str = kwargs["fromDate"]
        to_date: str = kwargs["toDate"]
        account_codes: list[str] | None = kwargs.get("accountCodes")
        account_ids: list[str] | None = kwargs.get("accountIds")
        source_type: str | None = kwargs.get("sourceType")

        response = await self._run(
            from_date, to_date, account_codes, account_ids, source_type
        )
        if response.is_error or response.result is None:
            return {
                "status": "error",
                "error": f"Error listing account transactions: {response.error}",
            }

        result = response.result
        try:
            results_file = write_results_file(result.rows, output_dir=self._output_dir)
        except OSError as e:
            return {
                "status": "error",
                "error": f"Error writing account transactions file: {e}",
            }

        summary = build_summary(
            label=account_label(account_codes, account_ids),
            from_date=from_date,
            to_date=to_date,
            row_count=len(result.rows),
            results_file=results_file,
            warnings=result.warnings,
        )
        return {
            "status": "success",
            "summary": summary,
            "results_file": str(results_file),
            "row_count": len(result.rows),
            "warnings": list(result.warnings),
        }
