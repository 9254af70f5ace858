"""
Domain subpackage for the visa evaluation feature.
"""

from .errors import (
    DataIntegrityError,
    RegistryLoadError,
    SchemaNotFoundError,
    VisaEvaluationError,
)
from .models import (
    GRADE_ORDER,
    CaseDiagnostics,
    CategoryDefinition,
    CategoryScore,
    ClientPreferences,
    ComplexityFactor,
    DocumentCheck,
    DocumentCompleteness,
    DocumentSetValidation,
    DocumentSuggestion,
    EvaluationInput,
    EvaluationResult,
    ExpiryCheck,
    FeeRange,
    GrowthAction,
    GrowthPotential,
    MatchOutcome,
    MatchRecommendation,
    QualificationCheck,
    QualificationGate,
    Recommendation,
    RepresentativeCandidate,
    ScoringRule,
    ServicePhase,
    ServicePlan,
    SubmittedDocument,
    TimelineEstimate,
    ValidationReport,
    VisaTypeSchema,
    grade_rank,
)

__all__ = [
    "GRADE_ORDER",
    "CaseDiagnostics",
    "CategoryDefinition",
    "CategoryScore",
    "ClientPreferences",
    "ComplexityFactor",
    "DataIntegrityError",
    "DocumentCheck",
    "DocumentCompleteness",
    "DocumentSetValidation",
    "DocumentSuggestion",
    "EvaluationInput",
    "EvaluationResult",
    "ExpiryCheck",
    "FeeRange",
    "GrowthAction",
    "GrowthPotential",
    "MatchOutcome",
    "MatchRecommendation",
    "QualificationCheck",
    "QualificationGate",
    "Recommendation",
    "RegistryLoadError",
    "RepresentativeCandidate",
    "SchemaNotFoundError",
    "ScoringRule",
    "ServicePhase",
    "ServicePlan",
    "SubmittedDocument",
    "TimelineEstimate",
    "ValidationReport",
    "VisaEvaluationError",
    "VisaTypeSchema",
    "grade_rank",
]
