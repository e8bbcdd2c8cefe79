from .aggregator import ResultAggregator
from .types import FailureRecord, Summary

__all__ = ["FailureRecord", "ResultAggregator", "Summary"]
