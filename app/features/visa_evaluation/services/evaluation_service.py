"""
Evaluation service - wires the validator, scoring, document and matching
engines into one renderable evaluation flow.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from app.config import Settings, settings as default_settings
from app.features.visa_evaluation.domain.errors import SchemaNotFoundError
from app.features.visa_evaluation.domain.models import (
    ClientPreferences,
    DocumentSetValidation,
    EvaluationResult,
    MatchOutcome,
    RepresentativeCandidate,
    SubmittedDocument,
    ValidationReport,
)
from app.features.visa_evaluation.pipeline.documents import DocumentCompletenessEngine
from app.features.visa_evaluation.pipeline.matching import RepresentativeMatchingEngine
from app.features.visa_evaluation.pipeline.scoring import ScoringEngine
from app.features.visa_evaluation.pipeline.validation import EligibilityValidator
from app.features.visa_evaluation.registry import (
    SchemaRegistry,
    normalize_application_type,
    normalize_visa_type,
)
from app.infrastructure.observability.logging import get_logger, log_evaluation, setup_logging

logger = get_logger(__name__)

SIGNIFICANT_SCORE_CHANGE = 10


@dataclass(slots=True)
class EvaluationRequest:
    visa_type: str
    application_type: str = "NEW"
    evaluation_data: Mapping[str, Any] = field(default_factory=dict)
    administrative_data: Mapping[str, Any] = field(default_factory=dict)
    documents: list[SubmittedDocument | Mapping[str, Any]] = field(default_factory=list)
    declared_status: str | None = None


@dataclass(slots=True)
class EvaluationOutcome:
    """Result shape every evaluation path returns, including failures."""

    status: Literal["evaluated", "incomplete", "unsupported"]
    message: str
    visa_type: str
    application_type: str
    validation: ValidationReport | None = None
    result: EvaluationResult | None = None
    documents: DocumentSetValidation | None = None


@dataclass(slots=True)
class EvaluationComparison:
    is_first_evaluation: bool
    current_score: float
    previous_score: float | None = None
    score_change: float = 0.0
    score_change_percent: float = 0.0
    direction: Literal["improved", "declined", "unchanged"] = "unchanged"
    significant: bool = False
    confidence_change: int = 0
    previous_status: str | None = None
    current_status: str | None = None
    status_changed: bool = False
    message: str = ""


class EvaluationService:
    """
    Runs one applicant evaluation end to end.

    The validator gates scoring: when any required field is missing the
    scoring engine is never invoked and the outcome lists what to supply.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        settings: Settings | None = None,
        validator: EligibilityValidator | None = None,
        scoring: ScoringEngine | None = None,
        documents: DocumentCompletenessEngine | None = None,
        matching: RepresentativeMatchingEngine | None = None,
    ):
        config = settings or default_settings
        self.registry = registry
        self.validator = validator or EligibilityValidator(registry, config)
        self.scoring = scoring or ScoringEngine(registry, config)
        self.documents = documents or DocumentCompletenessEngine(registry, config)
        self.matching = matching or RepresentativeMatchingEngine(config)

    def evaluate(self, request: EvaluationRequest, *, now: datetime | None = None) -> EvaluationOutcome:
        start = time.perf_counter()
        visa_type = normalize_visa_type(request.visa_type)
        application_type = normalize_application_type(request.application_type)

        try:
            report = self.validator.validate(
                visa_type,
                application_type,
                request.evaluation_data,
                request.administrative_data,
            )
        except SchemaNotFoundError as exc:
            return self._unsupported(exc, visa_type, application_type, start)

        if not report.is_complete:
            missing = [*report.missing_evaluation, *report.missing_administrative]
            log_evaluation(
                "validation",
                visa_type,
                (time.perf_counter() - start) * 1000,
                application_type=application_type,
                outcome="incomplete",
                missing=len(missing),
            )
            return EvaluationOutcome(
                status="incomplete",
                message=f"Missing required fields: {', '.join(missing)}",
                visa_type=visa_type,
                application_type=application_type,
                validation=report,
            )

        document_validation = None
        if request.documents:
            document_validation = self.documents.evaluate_set(
                request.documents, visa_type, application_type, now=now
            )

        try:
            result = self.scoring.score(
                visa_type,
                application_type,
                request.evaluation_data,
                documents=request.documents,
                declared_status=request.declared_status,
                document_validation=document_validation,
                now=now,
            )
        except SchemaNotFoundError as exc:
            return self._unsupported(exc, visa_type, application_type, start, report)

        log_evaluation(
            "evaluation",
            visa_type,
            (time.perf_counter() - start) * 1000,
            application_type=application_type,
            outcome="evaluated",
            overall_score=result.overall_score,
            status=result.status,
        )
        return EvaluationOutcome(
            status="evaluated",
            message=f"Evaluation completed: {result.status}",
            visa_type=visa_type,
            application_type=application_type,
            validation=report,
            result=result,
            documents=document_validation,
        )

    def evaluate_documents(
        self,
        documents: Iterable[SubmittedDocument | Mapping[str, Any]],
        visa_type: str,
        application_type: str = "NEW",
        *,
        now: datetime | None = None,
    ) -> DocumentSetValidation:
        return self.documents.evaluate_set(documents, visa_type, application_type, now=now)

    def match_representatives(
        self,
        result: EvaluationResult,
        preferences: ClientPreferences | None,
        candidate_pool: Iterable[RepresentativeCandidate],
    ) -> MatchOutcome:
        return self.matching.match(result, preferences, candidate_pool)

    def compare(
        self, current: EvaluationResult, previous: EvaluationResult | None
    ) -> EvaluationComparison:
        """Compare an evaluation with a prior snapshot of the same application."""
        if previous is None:
            return EvaluationComparison(
                is_first_evaluation=True,
                current_score=current.overall_score,
                current_status=current.status,
                message="First evaluation for this application",
            )

        change = round(current.overall_score - previous.overall_score, 1)
        percent = 0.0
        if previous.overall_score:
            percent = round(change / previous.overall_score * 100, 1)
        direction = "improved" if change > 0 else "declined" if change < 0 else "unchanged"
        significant = abs(change) >= SIGNIFICANT_SCORE_CHANGE

        if direction == "unchanged":
            message = "Score unchanged since the previous evaluation"
        else:
            size = "significantly" if significant else "slightly"
            message = f"Score {direction} {size} by {abs(change):g} points"

        return EvaluationComparison(
            is_first_evaluation=False,
            current_score=current.overall_score,
            previous_score=previous.overall_score,
            score_change=change,
            score_change_percent=percent,
            direction=direction,
            significant=significant,
            confidence_change=current.confidence - previous.confidence,
            previous_status=previous.status,
            current_status=current.status,
            status_changed=previous.status != current.status,
            message=message,
        )

    def _unsupported(
        self,
        exc: SchemaNotFoundError,
        visa_type: str,
        application_type: str,
        start: float,
        report: ValidationReport | None = None,
    ) -> EvaluationOutcome:
        log_evaluation(
            "evaluation",
            visa_type,
            (time.perf_counter() - start) * 1000,
            application_type=application_type,
            outcome="unsupported",
        )
        return EvaluationOutcome(
            status="unsupported",
            message=str(exc),
            visa_type=visa_type,
            application_type=application_type,
            validation=report,
        )


def build_evaluation_service(
    settings: Settings | None = None, configure_logging: bool = True
) -> EvaluationService:
    """Configure logging, load the configured registry and wire an EvaluationService around it."""
    config = settings or default_settings
    if configure_logging:
        setup_logging(config.LOG_LEVEL)
    registry = SchemaRegistry.load_from_path(config.schema_path())
    return EvaluationService(registry, config)
