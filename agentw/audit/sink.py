"""
Abstract Audit Sink

DESIGN DECISION: Persisting audit events belongs to the host application
(the web backend owns the database). The pipeline only needs one
operation, so the interface is a single method.
"""

from abc import ABC, abstractmethod

from agentw.models.audit import AuditEvent


class AuditSink(ABC):
    """Destination for audit events outside the local log."""

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append one event.

        Returns:
            True if the event was accepted

        Raises:
            Any exception; the AuditLogger catches and logs it.
        """
        pass


class InMemoryAuditSink(AuditSink):
    """Keeps events in a list. Handy for tests and local debugging."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def of_type(self, event_type) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]
