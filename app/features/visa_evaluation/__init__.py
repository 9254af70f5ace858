"""
Visa evaluation feature package.

This vertical slice keeps the schema registry, the four evaluation engines
and the orchestrating service co-located so contributors can follow a case
from raw applicant data to ranked representatives.
"""

# Re-export the primary building blocks for easy access.
from .domain.errors import DataIntegrityError, SchemaNotFoundError, VisaEvaluationError  # noqa: F401
from .registry import SchemaRegistry  # noqa: F401
from .services.evaluation_service import (  # noqa: F401
    EvaluationOutcome,
    EvaluationRequest,
    EvaluationService,
    build_evaluation_service,
)
