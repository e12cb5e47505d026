"""Audit logging package."""

from flowfinance.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
