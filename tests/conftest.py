"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest

from xero_ledger.adapters.clients.xero import (
    XeroAccount,
    XeroBankTransaction,
    XeroCreditNote,
    XeroInvoice,
    XeroManualJournal,
)


class FakeXeroClient:
    """In-memory AccountingClient.

    Each endpoint serves a list of pages (page 1 is ``pages[0]``); pages past
    the end are empty. ``failures`` maps an endpoint name to either an
    exception raised on every call or a list of exceptions raised by
    successive calls before pages are served.
    """

    def __init__(
        self,
        *,
        invoices: list[list[XeroInvoice]] | None = None,
        credit_notes: list[list[XeroCreditNote]] | None = None,
        bank_transactions: list[list[XeroBankTransaction]] | None = None,
        manual_journals: list[list[XeroManualJournal]] | None = None,
        accounts: list[XeroAccount] | None = None,
        failures: dict[str, Any] | None = None,
        auth_error: Exception | None = None,
    ) -> None:
        self._pages: dict[str, list[list[Any]]] = {
            "invoices": invoices or [],
            "credit_notes": credit_notes or [],
            "bank_transactions": bank_transactions or [],
            "manual_journals": manual_journals or [],
        }
        self._accounts = accounts or []
        self._failures = failures or {}
        self._auth_error = auth_error
        self.authenticated = False
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def calls_to(self, endpoint: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == endpoint]

    def _maybe_fail(self, endpoint: str) -> None:
        failure = self._failures.get(endpoint)
        if isinstance(failure, BaseException):
            raise failure
        if failure:
            raise failure.pop(0)

    def _serve(self, endpoint: str, **kwargs: Any) -> list[Any]:
        self.calls.append((endpoint, kwargs))
        self._maybe_fail(endpoint)
        pages = self._pages[endpoint]
        page = kwargs["page"]
        return list(pages[page - 1]) if page <= len(pages) else []

    async def authenticate(self) -> None:
        if self._auth_error is not None:
            raise self._auth_error
        self.authenticated = True

    async def get_invoices(
        self, *, where: str, page: int, page_size: int, order: str | None = None
    ) -> list[XeroInvoice]:
        return self._serve(
            "invoices", where=where, page=page, page_size=page_size, order=order
        )

    async def get_credit_notes(
        self, *, where: str, page: int, page_size: int, order: str | None = None
    ) -> list[XeroCreditNote]:
        return self._serve(
            "credit_notes", where=where, page=page, page_size=page_size, order=order
        )

    async def get_bank_transactions(
        self, *, where: str, page: int, page_size: int, order: str | None = None
    ) -> list[XeroBankTransaction]:
        return self._serve(
            "bank_transactions",
            where=where,
            page=page,
            page_size=page_size,
            order=order,
        )

    async def get_manual_journals(
        self,
        *,
        where: str,
        page: int,
        page_size: int,
        order: str | None = None,
        if_modified_since: datetime | None = None,
    ) -> list[XeroManualJournal]:
        return self._serve(
            "manual_journals",
            where=where,
            page=page,
            page_size=page_size,
            order=order,
            if_modified_since=if_modified_since,
        )

    async def get_accounts(self) -> list[XeroAccount]:
        self.calls.append(("accounts", {}))
        self._maybe_fail("accounts")
        return list(self._accounts)


class SleepRecorder:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_client_cls() -> type[FakeXeroClient]:
    return FakeXeroClient


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
