from __future__ import annotations

from collections.abc import Iterator

from xero_ledger.adapters.clients.xero import XeroManualJournal
from xero_ledger.ledger.extractors.base import RowExtractor, make_row
from xero_ledger.ledger.filters import format_date, start_of_day_utc
from xero_ledger.ledger.models import AccountTransactionRow, LedgerQuery

# Stable ordering keeps page boundaries deterministic.
PAGE_ORDER = "Date DESC"


class ManualJournalExtractor(RowExtractor):
    """Manual journal lines; positive amounts are debits, negative credits."""

    label = "Manual Journals"
    record_noun = "journals"
    source_types = frozenset({"MANJOURNAL"})
    status_clauses = ('Status!="DRAFT"',)

    @property
    def page_size(self) -> int:
        return self._limits.manual_journal_page_size

    async def fetch_page(
        self, query: LedgerQuery, *, where: str, page: int
    ) -> list[XeroManualJournal]:
        # Xero requires If-Modified-Since on high-volume journal queries.
        # from_date never excludes a journal dated inside the range.
        return await self._client.get_manual_journals(
            where=where,
            page=page,
            page_size=self.page_size,
            order=PAGE_ORDER,
            if_modified_since=start_of_day_utc(query.from_date),
        )

    def rows_for(
        self, record: XeroManualJournal, query: LedgerQuery
    ) -> Iterator[AccountTransactionRow]:
        date = format_date(record.date)
        matching = []
        others = []
        for line in record.journal_lines:
            if query.matches(line.account_code, line.account_id):
                matching.append(line)
            else:
                others.append(line)

        # Every matching line points at the first line on the other side.
        related_account = None
        if others:
            related_account = (others[0].account_code or "").strip() or None

        for line in matching:
            amount = line.line_amount or 0.0
            yield make_row(
                date=date,
                source="Manual Journal",
                net_to_account=amount,
                net=amount,
                vat=line.tax_amount or 0.0,
                description=line.description or record.narration,
                reference=record.narration,
                account_code=line.account_code,
                related_account=related_account,
            )
