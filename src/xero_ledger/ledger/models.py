from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from xero_ledger.ledger.filters import line_matches_account, parse_iso_date

SOURCE_TYPES: tuple[str, ...] = (
    "ACCREC",
    "ACCPAY",
    "ACCRECCREDIT",
    "ACCPAYCREDIT",
    "CASHREC",
    "CASHPAID",
    "MANJOURNAL",
)


@dataclass
class AccountTransactionRow:
    """One normalized ledger line, seen from the side of ``account_code``."""

    date: str
    source: str
    contact_name: str | None = None
    description: str | None = None
    invoice_number: str | None = None
    reference: str | None = None
    debit: float | None = None
    credit: float | None = None
    net: float | None = None
    gross: float | None = None
    vat: float | None = None
    account_code: str | None = None
    account_name: str | None = None
    related_account: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "source": self.source,
            "contactName": self.contact_name,
            "description": self.description,
            "invoiceNumber": self.invoice_number,
            "reference": self.reference,
            "debit": self.debit,
            "credit": self.credit,
            "net": self.net,
            "gross": self.gross,
            "vat": self.vat,
            "accountCode": self.account_code,
            "accountName": self.account_name,
            "relatedAccount": self.related_account,
        }


@dataclass
class AccountTransactionsResult:
    rows: list[AccountTransactionRow]
    warnings: list[str] = field(default_factory=list)
    # No resumable cursor: results are exhaustive within the page caps.
    has_more: bool = False
    next_offset: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": [row.to_dict() for row in self.rows],
            "hasMore": self.has_more,
            "nextOffset": self.next_offset,
            "warnings": list(self.warnings),
        }


@dataclass
class FetchResult:
    """Rows from one source plus what the pagination loop saw."""

    rows: list[AccountTransactionRow] = field(default_factory=list)
    truncated: bool = False
    scanned: int = 0


@dataclass(frozen=True, slots=True)
class LedgerQuery:
    """Date range, account filter and optional source restriction for one call."""

    from_date: date
    to_date: date
    account_codes: tuple[str, ...] = ()
    account_ids: tuple[str, ...] = ()
    source_type: str | None = None

    @classmethod
    def build(
        cls,
        from_date: str | date,
        to_date: str | date,
        account_codes: Iterable[str] | None = None,
        account_ids: Iterable[str] | None = None,
        source_type: str | None = None,
    ) -> LedgerQuery:
        """Normalise raw tool arguments.

        Raises:
            ValueError: If either date is not a valid ``YYYY-MM-DD`` value.
        """
        return cls(
            from_date=parse_iso_date(from_date),
            to_date=parse_iso_date(to_date),
            account_codes=tuple(account_codes or ()),
            account_ids=tuple(account_ids or ()),
            # An empty string means no restriction, same as None.
            source_type=source_type or None,
        )

    def matches(self, account_code: str | None, account_id: str | None) -> bool:
        return line_matches_account(
            account_code, account_id, self.account_codes, self.account_ids
        )
