"""
Audit Models for Agent W

Every pipeline step emits an audit event. Events give:
1. Traceability of which stage and which model produced a result
2. Debugging information when a provider misbehaves
3. A record of deliberate short-circuits (empty OCR, empty summary data)

DESIGN DECISION: Audit events are append-only and request-scoped.
The package never stores them itself; an AuditSink may forward them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Request lifecycle
    EXTRACTION_REQUESTED = "extraction_requested"
    EXTRACTION_COMPLETED = "extraction_completed"
    EXTRACTION_FAILED = "extraction_failed"

    # OCR stage
    OCR_COMPLETED = "ocr_completed"
    OCR_EMPTY = "ocr_empty"

    # Fallback chain
    MODEL_ATTEMPT_FAILED = "model_attempt_failed"
    ALL_MODELS_FAILED = "all_models_failed"

    # Post-validation hook
    CATEGORY_ISSUES_FOUND = "category_issues_found"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="Ties together all events of one extraction request"
    )
    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.extraction_requested("image", correlation_id)
        event = AuditEventBuilder.ocr_empty(correlation_id)
    """

    @staticmethod
    def extraction_requested(
        kind: str,
        input_chars: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_REQUESTED,
            correlation_id=correlation_id,
            description=f"Extraction requested from {kind}",
            details={"kind": kind, "input_chars": input_chars},
        )

    @staticmethod
    def ocr_completed(
        model_id: str,
        text_chars: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_COMPLETED,
            correlation_id=correlation_id,
            description=f"OCR transcribed {text_chars} characters",
            details={"model_id": model_id, "text_chars": text_chars},
        )

    @staticmethod
    def ocr_empty(correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_EMPTY,
            correlation_id=correlation_id,
            description="OCR found no legible text, structured extraction skipped",
        )

    @staticmethod
    def extraction_completed(
        model_id: str,
        counts: dict[str, int],
        correlation_id: UUID,
    ) -> AuditEvent:
        total = sum(counts.values())
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_COMPLETED,
            correlation_id=correlation_id,
            description=f"Extraction completed with {total} actions",
            details={"model_id": model_id, "counts": counts},
        )

    @staticmethod
    def extraction_failed(
        stage: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Extraction failed during {stage}",
            details={"stage": stage},
            error_message=error_message,
        )

    @staticmethod
    def model_attempt_failed(
        model_id: str,
        error_message: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MODEL_ATTEMPT_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Model {model_id} failed",
            details={"model_id": model_id},
            error_message=error_message,
        )

    @staticmethod
    def all_models_failed(
        attempts: list[dict],
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALL_MODELS_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"All {len(attempts)} candidate models failed",
            details={"attempts": attempts},
        )

    @staticmethod
    def category_issues_found(
        issues: list[dict],
        policy: str,
        correlation_id: Optional[UUID],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ISSUES_FOUND,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"{len(issues)} out-of-vocabulary categories ({policy})",
            details={"policy": policy, "issues": issues},
        )
