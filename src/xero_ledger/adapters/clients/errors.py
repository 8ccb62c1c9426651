"""Exceptions raised by the Xero client adapters."""

from __future__ import annotations

import json
from typing import Any


class XeroClientError(Exception):
    """Base error for Xero client failures."""


class XeroAuthError(XeroClientError):
    """Missing credentials or a failed OAuth token exchange."""


class XeroApiError(XeroClientError):
    """Non-2xx response from the Xero Accounting API."""

    def __init__(
        self,
        status_code: int,
        *,
        headers: dict[str, str] | None = None,
        body: str = "",
    ) -> None:
        self.status_code = status_code
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.body = body
        super().__init__(f"Xero API error ({status_code}): {self.detail}")

    @property
    def detail(self) -> str:
        """Best human-readable message from the response body."""
        try:
            parsed = json.loads(self.body) if self.body else None
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            for key in ("Detail", "Message", "detail", "message", "Title"):
                value = parsed.get(key)
                if value:
                    return str(value)
        return self.body or "no response body"

    @property
    def payload(self) -> dict[str, Any]:
        """Failure payload in the shape the Xero SDKs report it."""
        return {
            "response": {
                "statusCode": self.status_code,
                "headers": dict(self.headers),
            },
            "body": self.body,
        }
