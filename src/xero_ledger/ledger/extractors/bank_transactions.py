from __future__ import annotations

from collections.abc import Iterator

from xero_ledger.adapters.clients.xero import XeroBankTransaction
from xero_ledger.ledger.extractors.base import RowExtractor, make_row
from xero_ledger.ledger.filters import format_date
from xero_ledger.ledger.models import AccountTransactionRow, LedgerQuery


class BankTransactionExtractor(RowExtractor):
    """
    Spend and receive money transactions.

    A transaction can contribute rows from both sides of the entry: one row
    per matching line item (the non-bank side), and one synthetic row for
    the bank account itself when the bank account matches the filter.
    """

    label = "Bank Transactions"
    record_noun = "bank transactions"
    source_types = frozenset({"CASHREC", "CASHPAID"})
    status_clauses = ('Status!="DELETED"',)
    type_clauses = {
        "CASHREC": 'Type=="RECEIVE"',
        "CASHPAID": 'Type=="SPEND"',
    }

    async def fetch_page(
        self, query: LedgerQuery, *, where: str, page: int
    ) -> list[XeroBankTransaction]:
        return await self._client.get_bank_transactions(
            where=where, page=page, page_size=self.page_size
        )

    def rows_for(
        self, record: XeroBankTransaction, query: LedgerQuery
    ) -> Iterator[AccountTransactionRow]:
        is_spend = record.type == "SPEND"
        source = "Spend Money" if is_spend else "Receive Money"
        contact_name = record.contact.name if record.contact else None
        date = format_date(record.date)
        bank = record.bank_account
        bank_code = bank.code if bank else None
        bank_name = bank.name if bank else None
        bank_id = bank.account_id if bank else None

        bank_label = f"{bank_code} - {bank_name or ''}".strip() if bank_code else None

        for line in record.line_items:
            if not query.matches(line.account_code, line.account_id):
                continue

            line_amount = line.line_amount or 0.0
            # SPEND: DR line account, CR bank. RECEIVE: DR bank, CR line account.
            yield make_row(
                date=date,
                source=source,
                net_to_account=line_amount if is_spend else -line_amount,
                net=line_amount,
                vat=line.tax_amount or 0.0,
                contact_name=contact_name,
                description=line.description,
                reference=record.reference,
                account_code=line.account_code,
                related_account=bank_label,
            )

        if query.matches(bank_code, bank_id):
            total = record.total or 0.0
            descriptions = [li.description for li in record.line_items if li.description]
            first_line = record.line_items[0] if record.line_items else None

            # Bank side: SPEND is money out (CR), RECEIVE is money in (DR).
            yield make_row(
                date=date,
                source=source,
                net_to_account=-total if is_spend else total,
                net=record.sub_total or 0.0,
                vat=record.total_tax or 0.0,
                gross=total,
                contact_name=contact_name,
                description="; ".join(descriptions) or None,
                reference=record.reference,
                account_code=bank_code,
                account_name=bank_name,
                related_account=first_line.account_code if first_line else None,
            )
