"""Audit logging package."""

from agentw.audit.logger import AuditLogger, create_correlation_id
from agentw.audit.sink import AuditSink, InMemoryAuditSink

__all__ = [
    "AuditLogger",
    "AuditSink",
    "InMemoryAuditSink",
    "create_correlation_id",
]
