from __future__ import annotations

from collections.abc import Iterator

from xero_ledger.adapters.clients.xero import XeroInvoice
from xero_ledger.ledger.extractors.base import RowExtractor, make_row
from xero_ledger.ledger.filters import format_date
from xero_ledger.ledger.models import AccountTransactionRow, LedgerQuery


class InvoiceExtractor(RowExtractor):
    """Sales (ACCREC) and purchase (ACCPAY) invoice lines."""

    label = "Invoices"
    record_noun = "invoices"
    source_types = frozenset({"ACCREC", "ACCPAY"})
    status_clauses = ('Status!="DRAFT"', 'Status!="DELETED"')
    type_clauses = {
        "ACCREC": 'Type=="ACCREC"',
        "ACCPAY": 'Type=="ACCPAY"',
    }

    async def fetch_page(
        self, query: LedgerQuery, *, where: str, page: int
    ) -> list[XeroInvoice]:
        return await self._client.get_invoices(
            where=where, page=page, page_size=self.page_size
        )

    def rows_for(
        self, record: XeroInvoice, query: LedgerQuery
    ) -> Iterator[AccountTransactionRow]:
        is_acc_pay = record.type == "ACCPAY"
        source = "Purchase Invoice" if is_acc_pay else "Sales Invoice"
        contact_name = record.contact.name if record.contact else None
        date = format_date(record.date)

        for line in record.line_items:
            if not query.matches(line.account_code, line.account_id):
                continue

            line_amount = line.line_amount or 0.0
            # ACCPAY: DR line account, CR accounts payable.
            # ACCREC: DR accounts receivable, CR line account.
            net_to_account = line_amount if is_acc_pay else -line_amount

            yield make_row(
                date=date,
                source=source,
                net_to_account=net_to_account,
                net=line_amount,
                vat=line.tax_amount or 0.0,
                contact_name=contact_name,
                description=line.description,
                invoice_number=record.invoice_number,
                reference=record.reference,
                account_code=line.account_code,
            )
