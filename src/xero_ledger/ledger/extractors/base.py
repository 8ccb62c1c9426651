from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, ClassVar

import loguru
from loguru import logger

from xero_ledger.core.config import DEFAULT_LIMITS, AggregationLimits
from xero_ledger.ledger.filters import build_date_where
from xero_ledger.ledger.models import AccountTransactionRow, FetchResult, LedgerQuery
from xero_ledger.ledger.protocol import AccountingClient
from xero_ledger.ledger.retry import with_retry

Sleep = Callable[[float], Awaitable[Any]]


def make_row(
    *,
    date: str,
    source: str,
    net_to_account: float,
    net: float,
    vat: float,
    gross: float | None = None,
    contact_name: str | None = None,
    description: str | None = None,
    invoice_number: str | None = None,
    reference: str | None = None,
    account_code: str | None = None,
    account_name: str | None = None,
    related_account: str | None = None,
) -> AccountTransactionRow:
    """Build a row, deriving debit/credit from the signed amount to the account.

    A positive ``net_to_account`` is a debit, a negative one a credit.
    ``gross`` defaults to ``net + vat``.
    """
    return AccountTransactionRow(
        date=date,
        source=source,
        contact_name=contact_name,
        description=description,
        invoice_number=invoice_number,
        reference=reference,
        debit=net_to_account if net_to_account > 0 else None,
        credit=abs(net_to_account) if net_to_account < 0 else None,
        net=net,
        gross=net + vat if gross is None else gross,
        vat=vat,
        account_code=account_code,
        account_name=account_name,
        related_account=related_account,
    )


class RowExtractor(ABC):
    """
    Pages through one Xero endpoint and turns its records into ledger rows.

    Subclasses declare which source types they own, the status/type clauses
    they add to the date predicate, how to fetch one page, and how one
    record becomes rows. Pages are fetched strictly in order; the loop stops
    at the first short page or after ``limits.max_pages`` pages.
    """

    label: ClassVar[str]
    record_noun: ClassVar[str] = "records"
    source_types: ClassVar[frozenset[str]]
    status_clauses: ClassVar[tuple[str, ...]] = ()
    type_clauses: ClassVar[dict[str, str]] = {}

    def __init__(
        self,
        client: AccountingClient,
        *,
        limits: AggregationLimits = DEFAULT_LIMITS,
        sleep: Sleep | None = None,
        logger_instance: loguru.Logger = logger,
    ) -> None:
        self._client = client
        self._limits = limits
        self._sleep = sleep or asyncio.sleep
        self._logger = logger_instance

    @property
    def page_size(self) -> int:
        return self._limits.page_size

    def owns(self, source_type: str | None) -> bool:
        return not source_type or source_type in self.source_types

    def build_where(self, query: LedgerQuery) -> str:
        clauses = [build_date_where(query.from_date, query.to_date)]
        clauses.extend(self.status_clauses)
        if query.source_type in self.type_clauses:
            clauses.append(self.type_clauses[query.source_type])
        return "&&".join(clauses)

    @abstractmethod
    async def fetch_page(
        self, query: LedgerQuery, *, where: str, page: int
    ) -> Sequence[Any]:
        """Fetch one page of raw records."""

    @abstractmethod
    def rows_for(self, record: Any, query: LedgerQuery) -> Iterable[AccountTransactionRow]:
        """Rows contributed by one record for the queried accounts."""

    async def extract(self, query: LedgerQuery) -> FetchResult:
        if not self.owns(query.source_type):
            return FetchResult()

        where = self.build_where(query)
        rows: list[AccountTransactionRow] = []
        scanned = 0
        page = 1

        while page <= self._limits.max_pages:
            records = await self._fetch_with_retry(query, where=where, page=page)
            scanned += len(records)
            for record in records:
                rows.extend(self.rows_for(record, query))

            self._logger.bind(source=self.label, page=page, records=len(records)).debug(
                "Fetched {} page {} ({} records)", self.label, page, len(records)
            )
            if len(records) < self.page_size:
                break
            page += 1

        return FetchResult(
            rows=rows, truncated=page > self._limits.max_pages, scanned=scanned
        )

    async def _fetch_with_retry(
        self, query: LedgerQuery, *, where: str, page: int
    ) -> Sequence[Any]:
        async def call() -> Sequence[Any]:
            return await self.fetch_page(query, where=where, page=page)

        return await with_retry(
            call, limits=self._limits, sleep=self._sleep, logger_instance=self._logger
        )
