from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from datetime import date
from typing import Any

from xero_ledger.core.config import DEFAULT_LIMITS, AggregationLimits
from xero_ledger.ledger.account_names import (
    build_account_name_map,
    related_account_label,
)
from xero_ledger.ledger.envelope import ToolResponse, format_error
from xero_ledger.ledger.extractors import (
    BankTransactionExtractor,
    CreditNoteExtractor,
    InvoiceExtractor,
    ManualJournalExtractor,
    RowExtractor,
)
from xero_ledger.ledger.logger import AggregatorLogger
from xero_ledger.ledger.models import (
    AccountTransactionRow,
    AccountTransactionsResult,
    FetchResult,
    LedgerQuery,
)
from xero_ledger.ledger.protocol import AccountingClient

ACCOUNT_LOOKUP_LABEL = "Account name lookup"


def truncation_warning(extractor: RowExtractor, scanned: int) -> str:
    return (
        f"{extractor.label} results may be incomplete: scanned {scanned} "
        f"{extractor.record_noun} but hit the pagination limit. "
        "Try narrowing the date range for complete results."
    )


def enrich_rows(rows: Iterable[AccountTransactionRow], names: dict[str, str]) -> None:
    """Fill account names and label bare related-account codes in place."""
    for row in rows:
        if row.account_code and not row.account_name:
            row.account_name = names.get(row.account_code)
        if row.related_account:
            row.related_account = related_account_label(row.related_account, names)


def sort_rows(rows: list[AccountTransactionRow]) -> list[AccountTransactionRow]:
    """Newest first. Dates are ``YYYY-MM-DD`` so string order is date order."""
    return sorted(rows, key=lambda row: row.date, reverse=True)


class AccountTransactionsAggregator:
    """
    Builds a per-account transaction report from four Xero sources.

    Sources are fetched in two concurrent batches to stay under Xero's
    concurrent connection limit:

    1. invoices, credit notes and the account name lookup
    2. bank transactions and manual journals

    A failing source contributes no rows and one warning; it never aborts
    the other sources. Only a failure before the batches start (building
    the query, authenticating) turns the whole call into an error.
    """

    def __init__(
        self,
        client: AccountingClient,
        *,
        limits: AggregationLimits = DEFAULT_LIMITS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        logger: AggregatorLogger | None = None,
    ) -> None:
        self._client = client
        self._limits = limits
        self._sleep = sleep
        self._logger = logger or AggregatorLogger()

        extractor_kwargs: dict[str, Any] = {
            "limits": limits,
            "sleep": sleep,
            "logger_instance": self._logger.raw,
        }
        self._invoices = InvoiceExtractor(client, **extractor_kwargs)
        self._credit_notes = CreditNoteExtractor(client, **extractor_kwargs)
        self._bank_transactions = BankTransactionExtractor(client, **extractor_kwargs)
        self._manual_journals = ManualJournalExtractor(client, **extractor_kwargs)

    async def list_account_transactions(
        self,
        from_date: str | date,
        to_date: str | date,
        account_codes: Iterable[str] | None = None,
        account_ids: Iterable[str] | None = None,
        source_type: str | None = None,
    ) -> ToolResponse[AccountTransactionsResult]:
        """
        List ledger rows for the given accounts within an inclusive date range.

        Args:
            from_date: Start date (``YYYY-MM-DD``), inclusive
            to_date: End date (``YYYY-MM-DD``), inclusive
            account_codes: Account codes to include; all accounts if omitted
                together with ``account_ids``
            account_ids: Account UUIDs to include
            source_type: Restrict to one of ACCREC, ACCPAY, ACCRECCREDIT,
                ACCPAYCREDIT, CASHREC, CASHPAID, MANJOURNAL. Unknown values
                yield no rows.

        Returns:
            Success envelope with the rows and warnings, or an error envelope
            if the call failed before any source was queried.
        """
        try:
            query = LedgerQuery.build(
                from_date, to_date, account_codes, account_ids, source_type
            )
            self._logger.aggregation_start(
                query.from_date,
                query.to_date,
                len(query.account_codes) + len(query.account_ids),
                query.source_type,
            )
            await self._client.authenticate()
            result = await self._aggregate(query)
        except Exception as e:
            self._logger.aggregation_failed(format_error(e))
            return ToolResponse.failure(e)

        self._logger.aggregation_complete(len(result.rows), len(result.warnings))
        return ToolResponse.success(result)

    async def _aggregate(self, query: LedgerQuery) -> AccountTransactionsResult:
        warnings: list[str] = []
        row_sets: list[list[AccountTransactionRow]] = []

        invoices, credit_notes, names = await asyncio.gather(
            self._invoices.extract(query),
            self._credit_notes.extract(query),
            build_account_name_map(self._client, limits=self._limits, sleep=self._sleep),
            return_exceptions=True,
        )
        row_sets.append(self._collect(self._invoices, invoices, warnings))
        row_sets.append(self._collect(self._credit_notes, credit_notes, warnings))

        account_names: dict[str, str] = {}
        if isinstance(names, BaseException):
            if not isinstance(names, Exception):
                raise names
            message = format_error(names)
            self._logger.source_failed(ACCOUNT_LOOKUP_LABEL, message)
            warnings.append(f"{ACCOUNT_LOOKUP_LABEL} failed: {message}")
        else:
            account_names = names
            self._logger.account_names_loaded(len(account_names))

        bank_transactions, manual_journals = await asyncio.gather(
            self._bank_transactions.extract(query),
            self._manual_journals.extract(query),
            return_exceptions=True,
        )
        row_sets.append(
            self._collect(self._bank_transactions, bank_transactions, warnings)
        )
        row_sets.append(self._collect(self._manual_journals, manual_journals, warnings))

        rows = [row for row_set in row_sets for row in row_set]
        enrich_rows(rows, account_names)
        return AccountTransactionsResult(rows=sort_rows(rows), warnings=warnings)

    def _collect(
        self,
        extractor: RowExtractor,
        outcome: FetchResult | BaseException,
        warnings: list[str],
    ) -> list[AccountTransactionRow]:
        if isinstance(outcome, BaseException):
            # Cancellation is not a source failure.
            if not isinstance(outcome, Exception):
                raise outcome
            message = format_error(outcome)
            self._logger.source_failed(extractor.label, message)
            warnings.append(f"{extractor.label} endpoint failed: {message}")
            return []

        self._logger.source_complete(extractor.label, len(outcome.rows), outcome.scanned)
        if outcome.truncated:
            self._logger.source_truncated(extractor.label, outcome.scanned)
            warnings.append(truncation_warning(extractor, outcome.scanned))
        return outcome.rows
