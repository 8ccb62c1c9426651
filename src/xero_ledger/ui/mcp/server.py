"""MCP server exposing the Xero ledger tools via the Anthropic MCP SDK."""

from __future__ import annotations

import sys

from dotenv import load_dotenv
from loguru import logger
from mcp.server.fastmcp import FastMCP

from xero_ledger.tools.ledger.account_transactions_tool import (
    ListAccountTransactionsTool,
)

# stdout carries the MCP stdio transport, so logs go to stderr.
logger.remove()
logger.add(
    sys.stderr,
    format="{time:YYYY-MM-DD HH:mm:ss} [{level}] {name}: {message}",
    level="INFO",
)

load_dotenv(override=False)

account_transactions_tool = ListAccountTransactionsTool()

mcp = FastMCP(name="xero-ledger")


@mcp.tool(name="list-account-transactions")
async def list_account_transactions(
    fromDate: str,  # noqa: N803 - argument names are part of the tool schema
    toDate: str,  # noqa: N803
    accountCodes: list[str] | None = None,  # noqa: N803
    accountIds: list[str] | None = None,  # noqa: N803
    sourceType: str | None = None,  # noqa: N803
) -> str:
    """
    List account transactions from Xero as a per-account ledger.

    Covers invoices, credit notes, bank transactions and manual journals,
    with the related account from the other side of each double-entry.
    Ask the user for a date range and one or more account codes (or IDs)
    before calling. Rows are written to a JSON file; read it with your file
    tool.

    Args:
        fromDate: Start date in YYYY-MM-DD format (required)
        toDate: End date in YYYY-MM-DD format (required)
        accountCodes: Filter by one or more account codes, e.g. ['200', '400']
        accountIds: Filter by one or more account UUIDs
        sourceType: Filter by source type: ACCREC, ACCPAY, ACCRECCREDIT,
            ACCPAYCREDIT, CASHREC, CASHPAID, MANJOURNAL

    Returns:
        Summary header with the row count, warnings and results file path
    """
    result = await account_transactions_tool.execute(
        fromDate=fromDate,
        toDate=toDate,
        accountCodes=accountCodes,
        accountIds=accountIds,
        sourceType=sourceType,
    )
    if result["status"] != "success":
        return str(result["error"])
    return str(result["summary"])


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
