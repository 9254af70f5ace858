"""
Domain models for the visa evaluation feature.

Rule-set records are frozen because they are shared by every evaluation in
the process. Result records are plain slotted dataclasses owned by the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal

EvaluationStatus = Literal[
    "HIGHLY_LIKELY",
    "LIKELY",
    "UNCERTAIN",
    "UNLIKELY",
    "VERY_UNLIKELY",
    "UNQUALIFIED",
]
RepresentativeGrade = Literal["JUNIOR", "INTERMEDIATE", "SENIOR", "EXPERT"]
ComplexityTier = Literal["SIMPLE", "STANDARD", "COMPLEX", "VERY_COMPLEX"]
RiskTier = Literal["LOW", "MEDIUM", "HIGH", "VERY_HIGH"]
Availability = Literal["AVAILABLE", "BUSY"]
VerificationStatus = Literal["VERIFIED", "PENDING", "DECLARED", "REJECTED"]
ExpiryStatus = Literal["expired", "expiring_soon", "renewal_recommended", "valid"]
Priority = Literal["high", "medium", "low"]
Urgency = Literal["LOW", "NORMAL", "HIGH"]
RuleKind = Literal["lookup", "threshold", "count", "boolean"]
FieldType = Literal["number", "integer", "boolean", "string", "list", "date"]

# Ordinal order, lowest first.
GRADE_ORDER: tuple[str, ...] = ("JUNIOR", "INTERMEDIATE", "SENIOR", "EXPERT")


def grade_rank(grade: str) -> int:
    """Return the ordinal of a representative grade (-1 when unknown)."""
    try:
        return GRADE_ORDER.index(grade)
    except ValueError:
        return -1


# ---------------------------------------------------------------------------
# Rule sets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScoringRule:
    """One line of a category rule table."""

    field_name: str
    kind: RuleKind
    table: Mapping[str, float] = field(default_factory=dict)
    thresholds: tuple[tuple[float, float], ...] = ()  # (minimum, points), highest first
    per_unit: float = 0.0
    cap: float | None = None
    points: float = 0.0
    expected: bool = True


@dataclass(frozen=True, slots=True)
class CategoryDefinition:
    name: str
    label: str
    max_score: float
    weight: float
    rules: tuple[ScoringRule, ...]
    recommendation: str = ""


@dataclass(frozen=True, slots=True)
class QualificationGate:
    """Manual-point floor over a subset of categories."""

    categories: tuple[str, ...]
    minimum_points: float
    message: str = ""


@dataclass(frozen=True, slots=True)
class VisaTypeSchema:
    """Rule set for one (visa type, application type) pair."""

    visa_type: str
    application_type: str
    display_name: str
    schema_version: str
    rules_version: str
    required_evaluation_fields: tuple[str, ...]
    optional_evaluation_fields: tuple[str, ...]
    required_administrative_fields: tuple[str, ...]
    optional_administrative_fields: tuple[str, ...]
    field_types: Mapping[str, str]
    required_documents: tuple[str, ...]
    optional_documents: tuple[str, ...]
    document_alternatives: Mapping[str, tuple[str, ...]]
    document_validity_months: Mapping[str, int]
    default_validity_months: int
    categories: tuple[CategoryDefinition, ...]
    qualification_gate: QualificationGate | None = None
    empirical_adjustment: float = 0.0

    @property
    def key(self) -> tuple[str, str]:
        return self.visa_type, self.application_type

    def validity_months(self, document_type: str) -> int:
        return self.document_validity_months.get(document_type, self.default_validity_months)


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SubmittedDocument:
    """Metadata of one uploaded artifact; file bytes live in document storage."""

    document_type: str
    original_name: str = ""
    issue_date: date | datetime | None = None
    size_bytes: int | None = None
    mime_type: str | None = None
    verification_status: VerificationStatus = "PENDING"


@dataclass(frozen=True, slots=True)
class EvaluationInput:
    """Normalised applicant data for a single evaluation call."""

    visa_type: str
    application_type: str
    evaluation_data: Mapping[str, Any]
    administrative_data: Mapping[str, Any] = field(default_factory=dict)
    documents: tuple[SubmittedDocument, ...] = ()
    declared_status: str | None = None


@dataclass(slots=True)
class ValidationReport:
    visa_type: str
    application_type: str
    missing_evaluation: list[str] = field(default_factory=list)
    missing_administrative: list[str] = field(default_factory=list)
    schema_found: bool = True

    @property
    def is_complete(self) -> bool:
        return not self.missing_evaluation and not self.missing_administrative


# ---------------------------------------------------------------------------
# Scoring output
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CategoryScore:
    name: str
    label: str
    score: float
    max_score: float
    weight: float

    @property
    def percentage(self) -> float:
        return self.score / self.max_score * 100


@dataclass(slots=True)
class Recommendation:
    type: str
    priority: Priority
    message: str
    category: str | None = None


@dataclass(slots=True)
class GrowthAction:
    category: str
    label: str
    gap_points: float
    potential_score_gain: float
    action: str


@dataclass(slots=True)
class GrowthPotential:
    total_potential: int
    priority_actions: list[GrowthAction] = field(default_factory=list)


@dataclass(slots=True)
class QualificationCheck:
    passed: bool
    actual_points: float
    required_points: float
    message: str = ""


@dataclass(slots=True)
class FeeRange:
    min: float
    max: float


@dataclass(slots=True)
class ComplexityFactor:
    category: str  # APPLICATION_TYPE, EDUCATION, DOCUMENTS, LEGAL, EVALUATION
    factor: str
    impact: int
    description: str = ""


@dataclass(slots=True)
class CaseDiagnostics:
    complexity: ComplexityTier
    risk: RiskTier
    factors: list[ComplexityFactor] = field(default_factory=list)
    rejection_reasons: list[str] = field(default_factory=list)
    estimated_legal_fees: FeeRange | None = None


@dataclass(slots=True)
class EvaluationResult:
    """Versioned result shape shared by scoring and representative matching."""

    visa_type: str
    application_type: str
    schema_version: str
    overall_score: float
    confidence: int
    category_scores: dict[str, CategoryScore]
    status: EvaluationStatus
    strengths: list[str]
    weaknesses: list[str]
    growth_potential: GrowthPotential
    recommendations: list[Recommendation]
    diagnostics: CaseDiagnostics
    evaluated_at: datetime
    qualification: QualificationCheck | None = None


# ---------------------------------------------------------------------------
# Document completeness output
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ExpiryCheck:
    document_type: str
    issue_date: date
    expiry_date: date
    days_remaining: int
    status: ExpiryStatus


@dataclass(slots=True)
class DocumentCheck:
    document_type: str
    original_name: str
    requirement: Literal["required", "optional", "other"]
    category: str
    expiry: ExpiryCheck | None = None


@dataclass(slots=True)
class DocumentSuggestion:
    document_type: str
    name: str
    alternatives: list[str]
    urgency: Literal["critical", "normal"]
    message: str


@dataclass(slots=True)
class DocumentCompleteness:
    overall: float
    required: float
    optional: float


@dataclass(slots=True)
class DocumentSetValidation:
    visa_type: str
    application_type: str
    completeness: DocumentCompleteness
    missing_required: list[str]
    available_optional: list[str]
    suggestions: list[DocumentSuggestion]
    documents: list[DocumentCheck] = field(default_factory=list)
    expiry_checks: list[ExpiryCheck] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_required

    @property
    def expiring(self) -> list[ExpiryCheck]:
        return [check for check in self.expiry_checks if check.status != "valid"]


# ---------------------------------------------------------------------------
# Representative matching
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class RepresentativeCandidate:
    id: str
    name: str
    grade: RepresentativeGrade
    specialties: frozenset[str]
    experience_years: float
    success_rate_percent: float
    location: str
    languages: frozenset[str]
    fee_range: FeeRange
    availability: Availability = "AVAILABLE"
    rating: float = 0.0
    avg_response_hours: float | None = None


@dataclass(slots=True)
class ClientPreferences:
    budget: float | None = None
    preferred_language: str | None = None
    location: str | None = None
    urgency: Urgency = "NORMAL"


@dataclass(slots=True)
class TimelineEstimate:
    estimated_days: int
    min_days: int
    max_days: int


@dataclass(slots=True)
class MatchRecommendation:
    rank: int
    candidate: RepresentativeCandidate
    matching_score: float
    score_breakdown: dict[str, float]
    strengths: list[str]
    considerations: list[str]
    estimated_timeline: TimelineEstimate
    recommendation_reason: str
    included_services: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ServicePhase:
    name: str
    description: str
    min_days: int
    max_days: int


@dataclass(slots=True)
class ServicePlan:
    representative_id: str
    phases: list[ServicePhase]
    total_min_days: int
    total_max_days: int
    legal_fees: FeeRange
    government_fee: int
    additional_costs: dict[str, int]


@dataclass(slots=True)
class MatchOutcome:
    recommended_grade: RepresentativeGrade
    required_specialties: list[str]
    total_candidates: int
    recommendations: list[MatchRecommendation]
    filter_reasons: dict[str, int] = field(default_factory=dict)
    service_plan: ServicePlan | None = None

    @property
    def exhausted(self) -> bool:
        """True when no candidate survived the hard filters."""
        return not self.recommendations
