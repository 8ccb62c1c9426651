"""Uniform success/error wrapper returned by the aggregation entry point."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from xero_ledger.adapters.clients.errors import XeroApiError

T = TypeVar("T")


def format_error(error: BaseException | str) -> str:
    """Render a failure as a single human-readable line."""
    if isinstance(error, str):
        return error
    if isinstance(error, XeroApiError):
        return f"Xero API error ({error.status_code}): {error.detail}"
    return str(error) or error.__class__.__name__


@dataclass(frozen=True, slots=True)
class ToolResponse(Generic[T]):
    """Either a result or an error message, never both."""

    result: T | None
    is_error: bool
    error: str | None

    @classmethod
    def success(cls, result: T) -> ToolResponse[T]:
        return cls(result=result, is_error=False, error=None)

    @classmethod
    def failure(cls, error: BaseException | str) -> ToolResponse[T]:
        return cls(result=None, is_error=True, error=format_error(error))

    def to_dict(self) -> dict[str, Any]:
        result: Any = self.result
        if hasattr(result, "to_dict"):
            result = result.to_dict()
        return {"result": result, "isError": self.is_error, "error": self.error}
