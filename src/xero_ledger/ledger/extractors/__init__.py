"""Per-source row extractors."""

from xero_ledger.ledger.extractors.bank_transactions import BankTransactionExtractor
from xero_ledger.ledger.extractors.base import RowExtractor, make_row
from xero_ledger.ledger.extractors.credit_notes import CreditNoteExtractor
from xero_ledger.ledger.extractors.invoices import InvoiceExtractor
from xero_ledger.ledger.extractors.manual_journals import ManualJournalExtractor

__all__ = [
    "BankTransactionExtractor",
    "CreditNoteExtractor",
    "InvoiceExtractor",
    "ManualJournalExtractor",
    "RowExtractor",
    "make_row",
]
