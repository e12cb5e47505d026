"""Query execution package."""

from flowfinance.queries.executor import QueryExecutor

__all__ = ["QueryExecutor"]
