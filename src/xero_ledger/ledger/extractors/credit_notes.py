from __future__ import annotations

from collections.abc import Iterator

from xero_ledger.adapters.clients.xero import XeroCreditNote
from xero_ledger.ledger.extractors.base import RowExtractor, make_row
from xero_ledger.ledger.filters import format_date
from xero_ledger.ledger.models import AccountTransactionRow, LedgerQuery


class CreditNoteExtractor(RowExtractor):
    """Sales (ACCRECCREDIT) and purchase (ACCPAYCREDIT) credit note lines."""

    label = "Credit Notes"
    record_noun = "credit notes"
    source_types = frozenset({"ACCRECCREDIT", "ACCPAYCREDIT"})
    status_clauses = ('Status!="DRAFT"', 'Status!="DELETED"')
    type_clauses = {
        "ACCRECCREDIT": 'Type=="ACCRECCREDIT"',
        "ACCPAYCREDIT": 'Type=="ACCPAYCREDIT"',
    }

    async def fetch_page(
        self, query: LedgerQuery, *, where: str, page: int
    ) -> list[XeroCreditNote]:
        return await self._client.get_credit_notes(
            where=where, page=page, page_size=self.page_size
        )

    def rows_for(
        self, record: XeroCreditNote, query: LedgerQuery
    ) -> Iterator[AccountTransactionRow]:
        # Credit notes reverse their invoice type: ACCRECCREDIT debits the
        # line account, ACCPAYCREDIT credits it.
        is_debit_to_account = record.type == "ACCRECCREDIT"
        source = (
            "Purchase Credit Note"
            if record.type == "ACCPAYCREDIT"
            else "Sales Credit Note"
        )
        contact_name = record.contact.name if record.contact else None
        date = format_date(record.date)

        for line in record.line_items:
            if not query.matches(line.account_code, line.account_id):
                continue

            line_amount = line.line_amount or 0.0
            yield make_row(
                date=date,
                source=source,
                net_to_account=line_amount if is_debit_to_account else -line_amount,
                net=line_amount,
                vat=line.tax_amount or 0.0,
                contact_name=contact_name,
                description=line.description,
                invoice_number=record.credit_note_number,
                reference=record.reference,
                account_code=line.account_code,
            )
