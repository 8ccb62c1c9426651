from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AggregationLimits:
    """Paging and retry limits shared by every extractor in one aggregation."""

    page_size: int = 100
    # Manual journals are high volume, so they are fetched in larger pages.
    manual_journal_page_size: int = 1000
    max_pages: int = 50
    max_retries: int = 5
    retry_buffer_ms: int = 2000
    default_retry_after_seconds: int = 60


DEFAULT_LIMITS = AggregationLimits()
