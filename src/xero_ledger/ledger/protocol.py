"""Accounting API capability consumed by the ledger aggregation."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from xero_ledger.adapters.clients.xero import (
    XeroAccount,
    XeroBankTransaction,
    XeroCreditNote,
    XeroInvoice,
    XeroManualJournal,
)


@runtime_checkable
class AccountingClient(Protocol):
    """
    Authenticated, tenant-scoped access to the accounting endpoints.

    Every listing call takes a filter predicate in the remote filter syntax,
    a 1-based page number, a page size and an optional ordering hint. Any
    call may raise; rate-limit failures carry a status code of 429 and a
    ``retry-after`` header in their payload.
    """

    async def authenticate(self) -> None: ...

    async def get_invoices(
        self, *, where: str, page: int, page_size: int, order: str | None = None
    ) -> list[XeroInvoice]: ...

    async def get_credit_notes(
        self, *, where: str, page: int, page_size: int, order: str | None = None
    ) -> list[XeroCreditNote]: ...

    async def get_bank_transactions(
        self, *, where: str, page: int, page_size: int, order: str | None = None
    ) -> list[XeroBankTransaction]: ...

    async def get_manual_journals(
        self,
        *,
        where: str,
        page: int,
        page_size: int,
        order: str | None = None,
        if_modified_since: datetime | None = None,
    ) -> list[XeroManualJournal]: ...

    async def get_accounts(self) -> list[XeroAccount]: ...
