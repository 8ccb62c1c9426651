"""Logging for the account transactions aggregation.

Keeps log formatting out of the aggregation logic.
"""

from __future__ import annotations

from datetime import date

import loguru
from loguru import logger


class AggregatorLogger:
    """Handles all logging for AccountTransactionsAggregator."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        self._logger = logger_instance

    @property
    def raw(self) -> loguru.Logger:
        """Underlying loguru logger, for collaborators that log on their own."""
        return self._logger

    def aggregation_start(
        self,
        from_date: date,
        to_date: date,
        account_count: int,
        source_type: str | None,
    ) -> None:
        self._logger.bind(
            from_date=from_date.isoformat(),
            to_date=to_date.isoformat(),
            accounts=account_count,
            source_type=source_type,
        ).info(
            "Listing account transactions {} to {} ({} account filter(s), source {})",
            from_date.isoformat(),
            to_date.isoformat(),
            account_count,
            source_type or "all",
        )

    def source_complete(self, label: str, row_count: int, scanned: int) -> None:
        self._logger.bind(source=label, rows=row_count, scanned=scanned).info(
            "{}: {} rows from {} records", label, row_count, scanned
        )

    def source_failed(self, label: str, message: str) -> None:
        self._logger.bind(source=label).warning("{} failed: {}", label, message)

    def source_truncated(self, label: str, scanned: int) -> None:
        self._logger.bind(source=label, scanned=scanned).warning(
            "{} hit the page limit after {} records", label, scanned
        )

    def account_names_loaded(self, count: int) -> None:
        self._logger.bind(accounts=count).debug("Loaded {} account names", count)

    def aggregation_complete(self, row_count: int, warning_count: int) -> None:
        self._logger.bind(rows=row_count, warnings=warning_count).info(
            "Account transactions complete: {} rows, {} warnings",
            row_count,
            warning_count,
        )

    def aggregation_failed(self, message: str) -> None:
        self._logger.bind(error=message).error(
            "Account transactions failed: {}", message
        )
