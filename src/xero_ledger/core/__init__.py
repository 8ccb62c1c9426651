from xero_ledger.core.config import DEFAULT_LIMITS, AggregationLimits

__all__ = ["AggregationLimits", "DEFAULT_LIMITS"]
