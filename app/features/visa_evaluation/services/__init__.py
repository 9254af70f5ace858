"""
Service layer for the visa evaluation feature.
"""

from .evaluation_service import (
    EvaluationComparison,
    EvaluationOutcome,
    EvaluationRequest,
    EvaluationService,
    build_evaluation_service,
)

__all__ = [
    "EvaluationComparison",
    "EvaluationOutcome",
    "EvaluationRequest",
    "EvaluationService",
    "build_evaluation_service",
]
