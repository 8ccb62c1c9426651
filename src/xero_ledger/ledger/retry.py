"""Bounded retry for Xero calls that fail with HTTP 429."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
import json
import re
from typing import Any, TypeVar

import loguru
from loguru import logger

from xero_ledger.adapters.clients.errors import XeroApiError
from xero_ledger.core.config import DEFAULT_LIMITS, AggregationLimits

T = TypeVar("T")

RATE_LIMIT_STATUS = 429
_LEADING_INT_RE = re.compile(r"\s*(-?\d+)")


@dataclass(frozen=True, slots=True)
class ErrorPayload:
    """Decoded failure payload.

    ``status_code`` is None for unstructured failures, in which case only
    ``raw_message`` is known.
    """

    raw_message: str
    status_code: int | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == RATE_LIMIT_STATUS


def _from_mapping(data: Mapping[str, Any], raw_message: str) -> ErrorPayload:
    response = data.get("response")
    if not isinstance(response, Mapping):
        return ErrorPayload(raw_message=raw_message)

    status = response.get("statusCode", response.get("status"))
    try:
        status_code = int(status) if status is not None else None
    except (TypeError, ValueError):
        status_code = None

    headers = response.get("headers")
    normalized = (
        {str(k).lower(): str(v) for k, v in headers.items()}
        if isinstance(headers, Mapping)
        else {}
    )
    return ErrorPayload(
        raw_message=raw_message, status_code=status_code, headers=normalized
    )


def decode_error_payload(error: object) -> ErrorPayload:
    """Decode a failure into an ErrorPayload.

    Accepts a XeroApiError, a mapping shaped like the SDK payload
    (``{"response": {"statusCode": ..., "headers": {...}}}``), or a string or
    exception whose message is that payload JSON-encoded.
    """
    if isinstance(error, XeroApiError):
        return _from_mapping(error.payload, str(error))
    if isinstance(error, Mapping):
        return _from_mapping(error, json.dumps(error, default=str))

    raw_message = str(error)
    try:
        parsed = json.loads(raw_message)
    except (json.JSONDecodeError, TypeError):
        return ErrorPayload(raw_message=raw_message)
    if isinstance(parsed, Mapping):
        return _from_mapping(parsed, raw_message)
    return ErrorPayload(raw_message=raw_message)


def get_retry_after_ms(
    error: object, limits: AggregationLimits = DEFAULT_LIMITS
) -> int | None:
    """Return how long to wait before retrying, or None if not a rate limit."""
    payload = decode_error_payload(error)
    if not payload.is_rate_limited:
        return None

    seconds = limits.default_retry_after_seconds
    match = _LEADING_INT_RE.match(payload.headers.get("retry-after", ""))
    if match:
        seconds = int(match.group(1))
    return seconds * 1000 + limits.retry_buffer_ms


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    limits: AggregationLimits = DEFAULT_LIMITS,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    logger_instance: loguru.Logger = logger,
) -> T:
    """Await ``fn()``, retrying rate-limited failures up to ``max_retries`` times.

    Any other failure, or a rate limit after the last retry, is re-raised
    unchanged.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as err:
            wait_ms = get_retry_after_ms(err, limits)
            if wait_ms is None or attempt >= limits.max_retries:
                raise
            attempt += 1
            logger_instance.bind(attempt=attempt, wait_ms=wait_ms).warning(
                "Xero rate limit hit, retrying in {} ms (retry {}/{})",
                wait_ms,
                attempt,
                limits.max_retries,
            )
            await sleep(wait_ms / 1000)
