from __future__ import annotations

from datetime import datetime
from email.utils import format_datetime
from typing import Any, Self

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

from xero_ledger.adapters.clients.errors import (
    XeroApiError,
    XeroAuthError,
    XeroClientError,
)
from xero_ledger.adapters.clients.xero_auth import (
    XeroCredentials,
    client_credentials_token,
    load_xero_credentials_from_env,
)

DEFAULT_BASE_URL = "https://api.xero.com/api.xro/2.0"
CONNECTIONS_URL = "https://api.xero.com/connections"


class XeroBaseModel(BaseModel):
    """Shared base for Xero response models.

    Xero serialises fields in PascalCase; models expose them in snake_case
    and can be built from either form.
    """

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
    )

    @classmethod
    def parse(cls, data: Any) -> Self:
        return cls.model_validate(data)


class XeroContact(XeroBaseModel):
    name: str | None = None


class XeroLineItem(XeroBaseModel):
    description: str | None = None
    account_code: str | None = None
    account_id: str | None = Field(default=None, alias="AccountID")
    line_amount: float | None = None
    tax_amount: float | None = None


class XeroInvoice(XeroBaseModel):
    type: str | None = None
    status: str | None = None
    date: str | None = None
    contact: XeroContact | None = None
    invoice_number: str | None = None
    reference: str | None = None
    line_items: list[XeroLineItem] = Field(default_factory=list)


class XeroCreditNote(XeroBaseModel):
    type: str | None = None
    status: str | None = None
    date: str | None = None
    contact: XeroContact | None = None
    credit_note_number: str | None = None
    reference: str | None = None
    line_items: list[XeroLineItem] = Field(default_factory=list)


class XeroBankAccount(XeroBaseModel):
    code: str | None = None
    name: str | None = None
    account_id: str | None = Field(default=None, alias="AccountID")


class XeroBankTransaction(XeroBaseModel):
    type: str | None = None
    status: str | None = None
    date: str | None = None
    contact: XeroContact | None = None
    reference: str | None = None
    bank_account: XeroBankAccount | None = None
    line_items: list[XeroLineItem] = Field(default_factory=list)
    sub_total: float | None = None
    total_tax: float | None = None
    total: float | None = None


class XeroManualJournalLine(XeroBaseModel):
    description: str | None = None
    account_code: str | None = None
    account_id: str | None = Field(default=None, alias="AccountID")
    line_amount: float | None = None
    tax_amount: float | None = None


class XeroManualJournal(XeroBaseModel):
    date: str | None = None
    status: str | None = None
    narration: str | None = None
    journal_lines: list[XeroManualJournalLine] = Field(default_factory=list)


class XeroAccount(XeroBaseModel):
    code: str | None = None
    name: str | None = None
    account_id: str | None = Field(default=None, alias="AccountID")


class InvoicesResponse(XeroBaseModel):
    invoices: list[XeroInvoice] = Field(default_factory=list)


class CreditNotesResponse(XeroBaseModel):
    credit_notes: list[XeroCreditNote] = Field(default_factory=list)


class BankTransactionsResponse(XeroBaseModel):
    bank_transactions: list[XeroBankTransaction] = Field(default_factory=list)


class ManualJournalsResponse(XeroBaseModel):
    manual_journals: list[XeroManualJournal] = Field(default_factory=list)


class AccountsResponse(XeroBaseModel):
    accounts: list[XeroAccount] = Field(default_factory=list)


class XeroConnection(BaseModel):
    tenant_id: str = Field(alias="tenantId")
    tenant_type: str | None = Field(default=None, alias="tenantType")


class XeroClient:
    """Async client for the Xero Accounting API, scoped to one tenant."""

    def __init__(
        self,
        credentials: XeroCredentials,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ) -> None:
        self._credentials = credentials
        self._base_url = (credentials.base_url or DEFAULT_BASE_URL).rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._access_token: str | None = credentials.bearer_token
        self._tenant_id: str | None = credentials.tenant_id

    @classmethod
    def from_env(cls) -> XeroClient:
        """Construct a XeroClient from XERO_* environment variables."""
        return cls(load_xero_credentials_from_env())

    @property
    def tenant_id(self) -> str | None:
        return self._tenant_id

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def authenticate(self) -> None:
        """Resolve an access token and the tenant to query.

        Raises:
            XeroAuthError: If no token can be obtained or no tenant is connected.
        """
        if not self._access_token:
            if not self._credentials.has_client_secret:
                raise XeroAuthError("No bearer token or client credentials configured")
            tokens = await client_credentials_token(
                self._credentials, http_client=self._http
            )
            self._access_token = tokens.access_token

        if not self._tenant_id:
            self._tenant_id = await self._resolve_tenant_id()

    async def _resolve_tenant_id(self) -> str:
        response = await self._send("GET", CONNECTIONS_URL, tenant_scoped=False)
        connections = [XeroConnection.model_validate(c) for c in response.json()]
        if not connections:
            raise XeroAuthError("No Xero tenants are connected to this app")
        logger.bind(tenant_id=connections[0].tenant_id).debug(
            "Resolved Xero tenant from connections"
        )
        return connections[0].tenant_id

    def _headers(self, *, tenant_scoped: bool) -> dict[str, str]:
        if not self._access_token:
            raise XeroAuthError("Client is not authenticated; call authenticate() first")
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Accept": "application/json",
        }
        if tenant_scoped:
            if not self._tenant_id:
                raise XeroAuthError("No Xero tenant selected")
            headers["Xero-tenant-id"] = self._tenant_id
        return headers

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        extra_headers: dict[str, str] | None = None,
        tenant_scoped: bool = True,
    ) -> httpx.Response:
        headers = self._headers(tenant_scoped=tenant_scoped)
        if extra_headers:
            headers.update(extra_headers)

        logger.bind(method=method, url=url, params=params).debug(
            "Xero request {} {}", method, url
        )
        try:
            response = await self._http.request(
                method, url, params=params, headers=headers
            )
        except httpx.HTTPError as e:
            raise XeroClientError(f"Network error calling Xero API: {e}") from e

        if response.status_code >= 400:
            raise XeroApiError(
                response.status_code,
                headers=dict(response.headers),
                body=response.text,
            )
        return response

    async def _get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        response = await self._send(
            "GET",
            f"{self._base_url}/{path}",
            params={k: v for k, v in (params or {}).items() if v is not None},
            extra_headers=extra_headers,
        )
        if response.status_code == 304:
            # If-Modified-Since matched nothing
            return {}
        try:
            body: dict[str, Any] = response.json()
        except ValueError as e:
            raise XeroClientError(
                f"Failed to parse Xero response as JSON: {e}: {response.text}"
            ) from e
        return body

    @staticmethod
    def _page_params(
        where: str, page: int, page_size: int, order: str | None
    ) -> dict[str, Any]:
        return {"where": where, "order": order, "page": page, "pageSize": page_size}

    # High-level APIs -----------------------------------------------------

    async def get_invoices(
        self,
        *,
        where: str,
        page: int,
        page_size: int,
        order: str | None = None,
    ) -> list[XeroInvoice]:
        params = self._page_params(where, page, page_size, order)
        params["summaryOnly"] = "false"  # line items are required
        body = await self._get("Invoices", params=params)
        return InvoicesResponse.parse(body).invoices

    async def get_credit_notes(
        self,
        *,
        where: str,
        page: int,
        page_size: int,
        order: str | None = None,
    ) -> list[XeroCreditNote]:
        body = await self._get(
            "CreditNotes", params=self._page_params(where, page, page_size, order)
        )
        return CreditNotesResponse.parse(body).credit_notes

    async def get_bank_transactions(
        self,
        *,
        where: str,
        page: int,
        page_size: int,
        order: str | None = None,
    ) -> list[XeroBankTransaction]:
        body = await self._get(
            "BankTransactions", params=self._page_params(where, page, page_size, order)
        )
        return BankTransactionsResponse.parse(body).bank_transactions

    async def get_manual_journals(
        self,
        *,
        where: str,
        page: int,
        page_size: int,
        order: str | None = None,
        if_modified_since: datetime | None = None,
    ) -> list[XeroManualJournal]:
        extra_headers = None
        if if_modified_since is not None:
            extra_headers = {
                "If-Modified-Since": format_datetime(if_modified_since, usegmt=True)
            }
        body = await self._get(
            "ManualJournals",
            params=self._page_params(where, page, page_size, order),
            extra_headers=extra_headers,
        )
        return ManualJournalsResponse.parse(body).manual_journals

    async def get_accounts(self) -> list[XeroAccount]:
        body = await self._get("Accounts")
        return AccountsResponse.parse(body).accounts
