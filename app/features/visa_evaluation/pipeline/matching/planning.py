"""
Staged service plan for the top representative recommendation.
"""

from __future__ import annotations

from app.features.visa_evaluation.domain.models import (
    ClientPreferences,
    EvaluationResult,
    MatchRecommendation,
    ServicePhase,
    ServicePlan,
)

BASE_PHASES = (
    ("discovery", "Case review, eligibility check and strategy consultation", 1, 2),
    ("document_preparation", "Collect, translate and verify supporting documents", 7, 21),
    ("submission", "File the application and follow up with the immigration office", 14, 28),
)

GRADE_DURATION_FACTORS = {"EXPERT": 0.8, "SENIOR": 0.9, "INTERMEDIATE": 1.0, "JUNIOR": 1.15}
URGENCY_DURATION_FACTORS = {"HIGH": 0.75, "NORMAL": 1.0, "LOW": 1.1}

GOVERNMENT_FEES = {"NEW": 200_000, "EXTENSION": 60_000, "CHANGE": 130_000}

TRANSLATION_COST = 150_000
APOSTILLE_COST = 100_000
DOCUMENT_ISSUANCE_COST = 50_000
TRANSPORTATION_COST = 30_000


class ServicePlanner:
    """Builds discovery -> document preparation -> submission plans."""

    def build(
        self,
        recommendation: MatchRecommendation,
        evaluation_result: EvaluationResult,
        preferences: ClientPreferences,
    ) -> ServicePlan:
        candidate = recommendation.candidate
        factor = (
            GRADE_DURATION_FACTORS.get(candidate.grade, 1.0)
            * self._response_factor(candidate.avg_response_hours)
            * URGENCY_DURATION_FACTORS.get(preferences.urgency, 1.0)
        )

        phases = []
        for name, description, min_days, max_days in BASE_PHASES:
            scaled_min = max(1, round(min_days * factor))
            scaled_max = max(scaled_min, round(max_days * factor))
            phases.append(ServicePhase(name, description, scaled_min, scaled_max))

        return ServicePlan(
            representative_id=candidate.id,
            phases=phases,
            total_min_days=sum(phase.min_days for phase in phases),
            total_max_days=sum(phase.max_days for phase in phases),
            legal_fees=candidate.fee_range,
            government_fee=GOVERNMENT_FEES.get(evaluation_result.application_type, GOVERNMENT_FEES["NEW"]),
            additional_costs=self._additional_costs(evaluation_result),
        )

    def _response_factor(self, hours: float | None) -> float:
        if hours is None:
            return 1.0
        if hours <= 3:
            return 0.9
        if hours >= 6:
            return 1.1
        return 1.0

    def _additional_costs(self, evaluation_result: EvaluationResult) -> dict[str, int]:
        factor_names = {factor.factor for factor in evaluation_result.diagnostics.factors}
        costs = {}
        if factor_names & {"MULTILINGUAL", "FOREIGN_DEGREE_VERIFICATION"}:
            costs["translation"] = TRANSLATION_COST
        if "APOSTILLE_REQUIRED" in factor_names:
            costs["apostille"] = APOSTILLE_COST
        costs["document_issuance"] = DOCUMENT_ISSUANCE_COST
        costs["transportation"] = TRANSPORTATION_COST
        return costs
