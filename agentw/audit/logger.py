"""
Audit Logger

Every significant pipeline step is logged. This provides:
1. Which model answered, and which ones failed before it
2. Debugging capability when a provider returns garbage
3. A trace of deliberate short-circuits

The audit logger:
- Is async so a sink can do I/O
- Gracefully handles sink failures (logging never breaks an extraction)
- Supports correlation IDs to trace the events of one request
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from agentw.audit.sink import AuditSink
from agentw.models.audit import AuditEvent, AuditEventBuilder


structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (always)
    2. An AuditSink (when one is configured)
    """

    def __init__(
        self,
        sink: Optional[AuditSink] = None,
    ):
        self._sink = sink
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the sink accepted it (or no sink is configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink:
            try:
                return await self._sink.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_extraction_requested(
        self,
        kind: str,
        input_chars: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_requested(
            kind=kind,
            input_chars=input_chars,
            correlation_id=correlation_id,
        ))

    async def log_ocr_completed(
        self,
        model_id: str,
        text_chars: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.ocr_completed(
            model_id=model_id,
            text_chars=text_chars,
            correlation_id=correlation_id,
        ))

    async def log_ocr_empty(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.ocr_empty(correlation_id))

    async def log_extraction_completed(
        self,
        model_id: str,
        counts: dict[str, int],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_completed(
            model_id=model_id,
            counts=counts,
            correlation_id=correlation_id,
        ))

    async def log_extraction_failed(
        self,
        stage: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_failed(
            stage=stage,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_model_attempt_failed(
        self,
        model_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.model_attempt_failed(
            model_id=model_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_all_models_failed(
        self,
        attempts: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.all_models_failed(
            attempts=attempts,
            correlation_id=correlation_id,
        ))

    async def log_category_issues(
        self,
        issues: list[dict],
        policy: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.category_issues_found(
            issues=issues,
            policy=policy,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new extraction request and pass it
    through all subsequent stages.
    """
    return uuid4()
