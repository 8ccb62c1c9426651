from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from xero_ledger.core.config import DEFAULT_LIMITS, AggregationLimits
from xero_ledger.ledger.protocol import AccountingClient
from xero_ledger.ledger.retry import with_retry


async def build_account_name_map(
    client: AccountingClient,
    *,
    limits: AggregationLimits = DEFAULT_LIMITS,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> dict[str, str]:
    """Fetch the chart of accounts once and map account code to name."""
    accounts = await with_retry(client.get_accounts, limits=limits, sleep=sleep)
    return {account.code: account.name or "" for account in accounts if account.code}


def related_account_label(related_account: str, names: dict[str, str]) -> str:
    """Render a bare account code as ``"<code> - <name>"`` when the name is known.

    Values that already carry a name are returned unchanged.
    """
    if " - " in related_account:
        return related_account
    name = names.get(related_account)
    return f"{related_account} - {name}" if name else related_account
