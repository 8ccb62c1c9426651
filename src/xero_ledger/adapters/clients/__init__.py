"""Xero API client adapters."""

from __future__ import annotations

from xero_ledger.adapters.clients.errors import (
    XeroApiError,
    XeroAuthError,
    XeroClientError,
)
from xero_ledger.adapters.clients.xero import XeroClient
from xero_ledger.adapters.clients.xero_auth import (
    XeroCredentials,
    load_xero_credentials_from_env,
)

__all__ = [
    "XeroApiError",
    "XeroAuthError",
    "XeroClient",
    "XeroClientError",
    "XeroCredentials",
    "load_xero_credentials_from_env",
]
