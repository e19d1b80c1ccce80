"""
Main Orchestrator for Agent W

This module ties the stages together into the one end-to-end flow:

    image -> OCR -> (blank? stop) -> Agent W -> ExtractionResult
    text  ---------------------------> Agent W -> ExtractionResult

DESIGN DECISION: The two stages have different failure policies.
- OCR that finds no text is NOT an error: the pipeline returns an empty
  result and Agent W is never called
- OCR or Agent W running out of candidate models IS an error: the caller
  gets ExtractionFailedError, never a silently empty result

Persistence, confirmation and the UI are the caller's business. Nothing
here writes user data.
"""

from typing import Optional
from uuid import UUID

import structlog

from agentw.agents import (
    AgentW,
    CategorizationAgent,
    ExpenseAssistantAgent,
    ExtractionFailedError,
    FallbackOrchestrator,
    FinancialSummaryAgent,
    OCRAgent,
    ReceiptAgent,
)
from agentw.audit import AuditLogger, AuditSink, create_correlation_id
from agentw.config import Settings, get_settings
from agentw.models.extraction import RESULT_FIELDS, ExtractionRequest, ExtractionResult
from agentw.services.llm import ModelAdapter, build_router
from agentw.validation import ResultValidator

logger = structlog.get_logger(__name__)


class ExtractionPipeline:
    """
    Orchestrates one extraction request.

    Flow:
    1. Image requests go through the OCR agent first
    2. A blank transcription ends the flow with an empty result
    3. The text goes to Agent W
    4. The validated result is returned for the user to review
    """

    def __init__(
        self,
        ocr_agent: OCRAgent,
        agent_w: AgentW,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ocr_agent = ocr_agent
        self._agent_w = agent_w
        self._audit_logger = audit_logger or AuditLogger()

    async def run(
        self,
        request: ExtractionRequest,
        correlation_id: Optional[UUID] = None,
    ) -> ExtractionResult:
        """
        Run the pipeline for one request.

        Raises:
            ExtractionFailedError: If the OCR or the extraction stage
                exhausted its candidate models
        """
        correlation_id = correlation_id or create_correlation_id()
        input_chars = len(request.content or "") if request.kind == "text" else 0

        await self._audit_logger.log_extraction_requested(
            kind=request.kind,
            input_chars=input_chars,
            correlation_id=correlation_id,
        )

        try:
            if request.kind == "image":
                transcription = await self._ocr_agent.transcribe(
                    request.image_data_uri,
                    correlation_id=correlation_id,
                )
                if transcription.is_blank:
                    await self._audit_logger.log_ocr_empty(correlation_id)
                    return ExtractionResult.empty()

                await self._audit_logger.log_ocr_completed(
                    model_id=transcription.model_id,
                    text_chars=len(transcription.text),
                    correlation_id=correlation_id,
                )
                text = transcription.text
            else:
                text = request.content

            outcome = await self._agent_w.extract_with_details(
                text,
                current_date=request.current_date,
                currency=request.currency,
                vocabulary=request.vocabulary,
                existing_goals=request.existing_goals,
                existing_budgets=request.existing_budgets,
                correlation_id=correlation_id,
            )
        except ExtractionFailedError as e:
            await self._audit_logger.log_extraction_failed(
                stage=e.stage,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        result = outcome.value
        await self._audit_logger.log_extraction_completed(
            model_id=outcome.model_id,
            counts={alias: len(getattr(result, name)) for name, alias in RESULT_FIELDS},
            correlation_id=correlation_id,
        )
        return result


def create_pipeline(
    settings: Optional[Settings] = None,
    adapter: Optional[ModelAdapter] = None,
    audit_sink: Optional[AuditSink] = None,
) -> ExtractionPipeline:
    """
    Factory function to build the extraction pipeline.

    Args:
        settings: Defaults to get_settings()
        adapter: Model adapter; defaults to a router over every provider
            that has credentials
        audit_sink: Optional destination for audit events besides the log

    Returns:
        A ready ExtractionPipeline
    """
    settings = settings or get_settings()
    pipeline_settings = settings.pipeline
    adapter = adapter or build_router(settings)
    audit_logger = AuditLogger(audit_sink)

    base = FallbackOrchestrator(
        adapter,
        pipeline_settings.extraction_model_list,
        attempt_timeout=pipeline_settings.attempt_timeout_seconds,
        audit_logger=audit_logger,
    )
    agent_w = AgentW(
        base,
        validator=ResultValidator(policy=pipeline_settings.category_policy),
        audit_logger=audit_logger,
        max_input_chars=pipeline_settings.max_input_chars,
    )
    ocr_agent = OCRAgent(base.with_candidates(pipeline_settings.ocr_model_list))

    logger.info(
        "pipeline_created",
        ocr_models=pipeline_settings.ocr_model_list,
        extraction_models=pipeline_settings.extraction_model_list,
        category_policy=pipeline_settings.category_policy,
    )
    return ExtractionPipeline(ocr_agent, agent_w, audit_logger)


def create_helper_agents(
    settings: Optional[Settings] = None,
    adapter: Optional[ModelAdapter] = None,
) -> tuple[ReceiptAgent, CategorizationAgent, FinancialSummaryAgent, ExpenseAssistantAgent]:
    """
    Build the single-purpose agents used by the quick-entry forms, the
    dashboard and the assistant chat.

    Returns:
        (receipt_agent, categorization_agent, summary_agent, assistant_agent)
    """
    settings = settings or get_settings()
    pipeline_settings = settings.pipeline
    adapter = adapter or build_router(settings)
    timeout = pipeline_settings.attempt_timeout_seconds

    vision = FallbackOrchestrator(adapter, pipeline_settings.vision_model_list, attempt_timeout=timeout)
    text = FallbackOrchestrator(adapter, pipeline_settings.text_model_list, attempt_timeout=timeout)

    return (
        ReceiptAgent(vision),
        CategorizationAgent(text),
        FinancialSummaryAgent(text, currency=pipeline_settings.default_currency),
        ExpenseAssistantAgent(text),
    )
