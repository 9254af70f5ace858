"""
Evaluation confidence.

Confidence is computed independently of the overall score:

    50
    + (input completeness - 50) * 0.30
    + score stability           * 0.25
    + internal consistency      * 0.20
    + document quality          * 0.15
    + empirical adjustment      * 0.10

clamped to 0-100 and rounded.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from app.features.visa_evaluation.domain.models import SubmittedDocument, VisaTypeSchema
from app.features.visa_evaluation.pipeline.normalization import is_present
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIDENCE = 50

DOCUMENT_QUALITY = {
    "VERIFIED": 100,
    "PENDING": 70,  # uploaded, not yet verified
    "DECLARED": 30,
    "REJECTED": 0,
}


def score_band(score: float) -> str:
    """Status implied by the score alone."""
    if score >= 85:
        return "HIGHLY_LIKELY"
    if score >= 70:
        return "LIKELY"
    if score >= 50:
        return "UNCERTAIN"
    if score >= 30:
        return "UNLIKELY"
    return "VERY_UNLIKELY"


def input_completeness(schema: VisaTypeSchema, data: Mapping[str, Any]) -> float:
    """Required fields count twice, optional fields once."""
    earned = sum(2 for field in schema.required_evaluation_fields if is_present(data.get(field)))
    earned += sum(1 for field in schema.optional_evaluation_fields if is_present(data.get(field)))
    possible = len(schema.required_evaluation_fields) * 2 + len(schema.optional_evaluation_fields)
    return earned / possible * 100


def score_stability(score: float) -> float:
    return max(0.0, 50 - abs(score - 50) * 0.5)


def consistency(score: float, declared_status: str | None) -> float:
    value = 70.0
    if declared_status:
        value += 20 if declared_status == score_band(score) else -20
    return max(0.0, min(100.0, value))


def document_quality(documents: Iterable[SubmittedDocument]) -> float:
    documents = list(documents)
    if not documents:
        return 0.0
    total = sum(DOCUMENT_QUALITY[document.verification_status] for document in documents)
    return total / (len(documents) * 100) * 100


def calculate_confidence(
    schema: VisaTypeSchema,
    data: Mapping[str, Any],
    overall_score: float,
    documents: Iterable[SubmittedDocument] = (),
    declared_status: str | None = None,
) -> int:
    """Return confidence 0-100; malformed inputs degrade to the default of 50."""
    try:
        confidence = DEFAULT_CONFIDENCE
        confidence += (input_completeness(schema, data) - 50) * 0.3
        confidence += score_stability(overall_score) * 0.25
        confidence += consistency(overall_score, declared_status) * 0.2
        confidence += document_quality(documents) * 0.15
        confidence += schema.empirical_adjustment * 0.1
    except (TypeError, ValueError, KeyError, ZeroDivisionError) as exc:
        logger.warning(
            "Confidence calculation failed - using default",
            visa_type=schema.visa_type,
            error=str(exc),
            default=DEFAULT_CONFIDENCE,
        )
        return DEFAULT_CONFIDENCE

    return round(max(0.0, min(100.0, confidence)))
