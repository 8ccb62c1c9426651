from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from xero_ledger.adapters.clients.errors import XeroApiError
from xero_ledger.adapters.clients.xero import (
    XeroBankAccount,
    XeroBankTransaction,
    XeroContact,
    XeroCreditNote,
    XeroInvoice,
    XeroLineItem,
    XeroManualJournal,
    XeroManualJournalLine,
)
from xero_ledger.core.config import AggregationLimits
from xero_ledger.ledger.extractors import (
    BankTransactionExtractor,
    CreditNoteExtractor,
    InvoiceExtractor,
    ManualJournalExtractor,
)
from xero_ledger.ledger.extractors.base import make_row
from xero_ledger.ledger.models import LedgerQuery


def _query(**kwargs) -> LedgerQuery:
    return LedgerQuery.build("2024-01-01", "2024-03-31", **kwargs)


def _invoice(type_: str, *lines: XeroLineItem, number: str = "INV-1") -> XeroInvoice:
    return XeroInvoice(
        type=type_,
        status="AUTHORISED",
        date="/Date(1704067200000+0000)/",
        contact=XeroContact(name="Acme Ltd"),
        invoice_number=number,
        reference="PO-7",
        line_items=list(lines),
    )


class TestMakeRow:
    def test_positive_amount_is_debit(self) -> None:
        row = make_row(date="2024-01-01", source="x", net_to_account=100.0, net=100.0, vat=20.0)

        assert row.debit == 100.0
        assert row.credit is None
        assert row.gross == 120.0

    def test_negative_amount_is_credit(self) -> None:
        row = make_row(date="2024-01-01", source="x", net_to_account=-50.0, net=50.0, vat=0.0)

        assert row.debit is None
        assert row.credit == 50.0

    def test_zero_amount_has_neither_side(self) -> None:
        row = make_row(date="2024-01-01", source="x", net_to_account=0.0, net=0.0, vat=0.0)

        assert row.debit is None
        assert row.credit is None

    def test_explicit_gross_wins(self) -> None:
        row = make_row(
            date="2024-01-01", source="x", net_to_account=1.0, net=1.0, vat=1.0, gross=5.0
        )

        assert row.gross == 5.0


class TestInvoiceExtractor:
    def test_sales_invoice_credits_the_line_account(self, fake_client_cls) -> None:
        invoice = _invoice(
            "ACCREC",
            XeroLineItem(
                description="Consulting",
                account_code="200",
                line_amount=100.0,
                tax_amount=20.0,
            ),
        )
        client = fake_client_cls(invoices=[[invoice]])

        result = asyncio.run(InvoiceExtractor(client).extract(_query()))

        (row,) = result.rows
        assert row.source == "Sales Invoice"
        assert row.date == "2024-01-01"
        assert row.credit == 100.0
        assert row.debit is None
        assert row.net == 100.0
        assert row.vat == 20.0
        assert row.gross == 120.0
        assert row.contact_name == "Acme Ltd"
        assert row.invoice_number == "INV-1"
        assert row.reference == "PO-7"
        assert row.account_code == "200"
        assert not result.truncated
        assert result.scanned == 1

    def test_purchase_invoice_debits_the_line_account(self, fake_client_cls) -> None:
        invoice = _invoice(
            "ACCPAY", XeroLineItem(account_code="400", line_amount=80.0, tax_amount=16.0)
        )
        client = fake_client_cls(invoices=[[invoice]])

        result = asyncio.run(InvoiceExtractor(client).extract(_query()))

        (row,) = result.rows
        assert row.source == "Purchase Invoice"
        assert row.debit == 80.0
        assert row.credit is None

    def test_only_matching_lines_become_rows(self, fake_client_cls) -> None:
        invoice = _invoice(
            "ACCREC",
            XeroLineItem(account_code="200", line_amount=10.0),
            XeroLineItem(account_code="260", line_amount=5.0),
            XeroLineItem(account_id="id-270", line_amount=3.0),
        )
        client = fake_client_cls(invoices=[[invoice]])
        query = _query(account_codes=["260"], account_ids=["id-270"])

        result = asyncio.run(InvoiceExtractor(client).extract(query))

        assert [row.credit for row in result.rows] == [5.0, 3.0]

    def test_missing_amounts_default_to_zero(self, fake_client_cls) -> None:
        client = fake_client_cls(invoices=[[_invoice("ACCREC", XeroLineItem(account_code="200"))]])

        (row,) = asyncio.run(InvoiceExtractor(client).extract(_query())).rows

        assert row.net == 0.0
        assert row.vat == 0.0
        assert row.gross == 0.0
        assert row.debit is None
        assert row.credit is None

    def test_where_clause_excludes_drafts_and_deleted(self, fake_client_cls) -> None:
        client = fake_client_cls()

        asyncio.run(InvoiceExtractor(client).extract(_query(source_type="ACCPAY")))

        (call,) = client.calls_to("invoices")
        assert call["where"] == (
            "Date>=DateTime(2024,1,1)&&Date<=DateTime(2024,3,31)"
            '&&Status!="DRAFT"&&Status!="DELETED"&&Type=="ACCPAY"'
        )
        assert call["page_size"] == 100

    def test_skipped_for_other_source_types(self, fake_client_cls) -> None:
        client = fake_client_cls(invoices=[[_invoice("ACCREC", XeroLineItem(account_code="200"))]])

        result = asyncio.run(InvoiceExtractor(client).extract(_query(source_type="MANJOURNAL")))

        assert result.rows == []
        assert client.calls == []

    def test_paginates_until_a_short_page(self, fake_client_cls) -> None:
        limits = AggregationLimits(page_size=2)
        line = XeroLineItem(account_code="200", line_amount=1.0)
        pages = [
            [_invoice("ACCREC", line), _invoice("ACCREC", line)],
            [_invoice("ACCREC", line), _invoice("ACCREC", line)],
            [_invoice("ACCREC", line)],
        ]
        client = fake_client_cls(invoices=pages)

        result = asyncio.run(InvoiceExtractor(client, limits=limits).extract(_query()))

        assert [call["page"] for call in client.calls_to("invoices")] == [1, 2, 3]
        assert len(result.rows) == 5
        assert result.scanned == 5
        assert not result.truncated

    def test_non_matching_filter_still_stops_after_short_first_page(
        self, fake_client_cls
    ) -> None:
        invoice = _invoice("ACCREC", XeroLineItem(account_code="200", line_amount=1.0))
        client = fake_client_cls(invoices=[[invoice]])

        result = asyncio.run(
            InvoiceExtractor(client).extract(_query(account_codes=["NONEXISTENT"]))
        )

        assert result.rows == []
        assert len(client.calls_to("invoices")) == 1

    def test_rate_limit_is_retried(self, fake_client_cls, sleep_recorder) -> None:
        client = fake_client_cls(
            invoices=[[_invoice("ACCREC", XeroLineItem(account_code="200", line_amount=1.0))]],
            failures={"invoices": [XeroApiError(429, headers={"Retry-After": "5"})]},
        )

        result = asyncio.run(InvoiceExtractor(client, sleep=sleep_recorder).extract(_query()))

        assert len(result.rows) == 1
        assert sleep_recorder.delays == [7.0]
        assert [call["page"] for call in client.calls_to("invoices")] == [1, 1]


class TestCreditNoteExtractor:
    def _note(self, type_: str) -> XeroCreditNote:
        return XeroCreditNote(
            type=type_,
            date="2024-02-10T00:00:00",
            credit_note_number="CN-9",
            line_items=[XeroLineItem(account_code="200", line_amount=40.0, tax_amount=8.0)],
        )

    def test_sales_credit_note_debits_the_line_account(self, fake_client_cls) -> None:
        client = fake_client_cls(credit_notes=[[self._note("ACCRECCREDIT")]])

        (row,) = asyncio.run(CreditNoteExtractor(client).extract(_query())).rows

        assert row.source == "Sales Credit Note"
        assert row.debit == 40.0
        assert row.credit is None
        assert row.invoice_number == "CN-9"
        assert row.date == "2024-02-10"

    def test_purchase_credit_note_credits_the_line_account(self, fake_client_cls) -> None:
        client = fake_client_cls(credit_notes=[[self._note("ACCPAYCREDIT")]])

        (row,) = asyncio.run(CreditNoteExtractor(client).extract(_query())).rows

        assert row.source == "Purchase Credit Note"
        assert row.credit == 40.0
        assert row.debit is None
        assert row.gross == 48.0

    def test_type_clause_for_requested_source(self, fake_client_cls) -> None:
        client = fake_client_cls()

        asyncio.run(CreditNoteExtractor(client).extract(_query(source_type="ACCRECCREDIT")))

        (call,) = client.calls_to("credit_notes")
        assert call["where"].endswith('&&Type=="ACCRECCREDIT"')


class TestBankTransactionExtractor:
    def _spend(self) -> XeroBankTransaction:
        return XeroBankTransaction(
            type="SPEND",
            date="2024-03-15",
            reference="Card",
            contact=XeroContact(name="Office Supplies Co"),
            bank_account=XeroBankAccount(code="090", name="Business Account", account_id="bank-id"),
            line_items=[
                XeroLineItem(description="Paper", account_code="400", line_amount=100.0),
            ],
            sub_total=100.0,
            total_tax=0.0,
            total=100.0,
        )

    def test_spend_without_filter_yields_both_sides(self, fake_client_cls) -> None:
        client = fake_client_cls(bank_transactions=[[self._spend()]])

        line_row, bank_row = asyncio.run(
            BankTransactionExtractor(client).extract(_query())
        ).rows

        assert line_row.account_code == "400"
        assert line_row.debit == 100.0
        assert line_row.credit is None
        assert line_row.related_account == "090 - Business Account"
        assert line_row.source == "Spend Money"

        assert bank_row.account_code == "090"
        assert bank_row.account_name == "Business Account"
        assert bank_row.credit == 100.0
        assert bank_row.debit is None
        assert bank_row.related_account == "400"
        assert bank_row.description == "Paper"
        assert bank_row.gross == 100.0

    def test_bank_filter_yields_only_bank_side(self, fake_client_cls) -> None:
        client = fake_client_cls(bank_transactions=[[self._spend()]])

        (row,) = asyncio.run(
            BankTransactionExtractor(client).extract(_query(account_codes=["090"]))
        ).rows

        assert row.account_code == "090"
        assert row.credit == 100.0

    def test_bank_matched_by_id(self, fake_client_cls) -> None:
        client = fake_client_cls(bank_transactions=[[self._spend()]])

        (row,) = asyncio.run(
            BankTransactionExtractor(client).extract(_query(account_ids=["bank-id"]))
        ).rows

        assert row.account_code == "090"

    def test_receive_debits_bank_and_credits_line(self, fake_client_cls) -> None:
        txn = XeroBankTransaction(
            type="RECEIVE",
            date="2024-03-01",
            bank_account=XeroBankAccount(code="090", name="Business Account"),
            line_items=[
                XeroLineItem(description="Refund", account_code="200", line_amount=50.0, tax_amount=10.0),
                XeroLineItem(description="Interest", account_code="270", line_amount=5.0),
            ],
            sub_total=55.0,
            total_tax=10.0,
            total=65.0,
        )
        client = fake_client_cls(bank_transactions=[[txn]])

        rows = asyncio.run(BankTransactionExtractor(client).extract(_query())).rows

        assert [(r.account_code, r.debit, r.credit) for r in rows] == [
            ("200", None, 50.0),
            ("270", None, 5.0),
            ("090", 65.0, None),
        ]
        bank_row = rows[-1]
        assert bank_row.source == "Receive Money"
        assert bank_row.net == 55.0
        assert bank_row.vat == 10.0
        assert bank_row.description == "Refund; Interest"
        assert bank_row.related_account == "200"

    def test_bank_side_without_descriptions(self, fake_client_cls) -> None:
        txn = XeroBankTransaction(
            type="SPEND",
            date="2024-03-01",
            bank_account=XeroBankAccount(code="090"),
            total=10.0,
        )
        client = fake_client_cls(bank_transactions=[[txn]])

        (row,) = asyncio.run(BankTransactionExtractor(client).extract(_query())).rows

        assert row.description is None
        assert row.related_account is None
        assert row.credit == 10.0

    @pytest.mark.parametrize(
        ("source_type", "clause"),
        [("CASHREC", 'Type=="RECEIVE"'), ("CASHPAID", 'Type=="SPEND"')],
    )
    def test_type_clause_maps_cash_sources(
        self, fake_client_cls, source_type: str, clause: str
    ) -> None:
        client = fake_client_cls()

        asyncio.run(BankTransactionExtractor(client).extract(_query(source_type=source_type)))

        (call,) = client.calls_to("bank_transactions")
        assert call["where"].endswith('&&Status!="DELETED"&&' + clause)


class TestManualJournalExtractor:
    def _journal(self) -> XeroManualJournal:
        return XeroManualJournal(
            date="2024-01-31",
            narration="Accrual",
            journal_lines=[
                XeroManualJournalLine(account_code="400", line_amount=250.0, description="Rent"),
                XeroManualJournalLine(account_code="800", line_amount=-250.0),
            ],
        )

    def test_signed_amounts_become_debit_and_credit(self, fake_client_cls) -> None:
        client = fake_client_cls(manual_journals=[[self._journal()]])

        debit_row, credit_row = asyncio.run(
            ManualJournalExtractor(client).extract(_query())
        ).rows

        assert debit_row.debit == 250.0
        assert debit_row.description == "Rent"
        assert credit_row.credit == 250.0
        assert credit_row.description == "Accrual"
        assert credit_row.reference == "Accrual"
        assert debit_row.source == "Manual Journal"
        # Unfiltered: every line matches so there is no other side.
        assert debit_row.related_account is None

    def test_related_account_is_first_other_line(self, fake_client_cls) -> None:
        client = fake_client_cls(manual_journals=[[self._journal()]])

        (row,) = asyncio.run(
            ManualJournalExtractor(client).extract(_query(account_codes=["400"]))
        ).rows

        assert row.related_account == "800"

    def test_request_options(self, fake_client_cls) -> None:
        client = fake_client_cls()

        asyncio.run(ManualJournalExtractor(client).extract(_query()))

        (call,) = client.calls_to("manual_journals")
        assert call["page_size"] == 1000
        assert call["order"] == "Date DESC"
        assert call["if_modified_since"] == datetime(2024, 1, 1, tzinfo=UTC)
        assert call["where"].endswith('&&Status!="DRAFT"')

    def test_stops_at_page_cap_and_reports_truncation(self, fake_client_cls) -> None:
        page = [self._journal()] * 1000
        client = fake_client_cls(manual_journals=[page] * 51)

        result = asyncio.run(
            ManualJournalExtractor(client).extract(_query(account_codes=["999"]))
        )

        assert result.truncated
        assert result.scanned == 50000
        assert len(client.calls_to("manual_journals")) == 50
        assert result.rows == []

    def test_exactly_full_last_page_is_not_truncated(self, fake_client_cls) -> None:
        limits = AggregationLimits(manual_journal_page_size=1, max_pages=3)
        client = fake_client_cls(manual_journals=[[self._journal()], [self._journal()]])

        result = asyncio.run(ManualJournalExtractor(client, limits=limits).extract(_query()))

        # Page 3 comes back empty so the loop ends before the cap.
        assert not result.truncated
        assert result.scanned == 2
