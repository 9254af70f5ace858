"""
Representative matching service - filters, scores and ranks a candidate pool
against an evaluated case.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from app.config import Settings, settings as default_settings
from app.features.visa_evaluation.domain.models import (
    GRADE_ORDER,
    ClientPreferences,
    EvaluationResult,
    MatchOutcome,
    MatchRecommendation,
    RepresentativeCandidate,
    TimelineEstimate,
    grade_rank,
)
from app.infrastructure.observability.logging import get_logger

from .planning import ServicePlanner

logger = get_logger(__name__)

COMPLEXITY_GRADE = {
    "SIMPLE": "JUNIOR",
    "STANDARD": "INTERMEDIATE",
    "COMPLEX": "SENIOR",
    "VERY_COMPLEX": "EXPERT",
}
RISK_GRADE = {
    "LOW": "JUNIOR",
    "MEDIUM": "INTERMEDIATE",
    "HIGH": "SENIOR",
    "VERY_HIGH": "EXPERT",
}

# complexity tier -> grade -> fit score
COMPLEXITY_FIT = {
    "SIMPLE": {"EXPERT": 100, "SENIOR": 100, "INTERMEDIATE": 100, "JUNIOR": 100},
    "STANDARD": {"EXPERT": 100, "SENIOR": 95, "INTERMEDIATE": 85, "JUNIOR": 70},
    "COMPLEX": {"EXPERT": 100, "SENIOR": 90, "INTERMEDIATE": 70, "JUNIOR": 40},
    "VERY_COMPLEX": {"EXPERT": 100, "SENIOR": 80, "INTERMEDIATE": 50, "JUNIOR": 20},
}

CATEGORY_SPECIALTIES = {
    "EDUCATION": ["Degree verification"],
    "LEGAL": ["Immigration law", "Violation response"],
    "DOCUMENTS": ["Document verification"],
}
FACTOR_SPECIALTIES = {
    "FOREIGN_DEGREE_VERIFICATION": ["Foreign degree recognition"],
    "APOSTILLE_REQUIRED": ["Apostille procedure"],
    "CHANGE_APPLICATION": ["Status change"],
}
REJECTION_SPECIALTIES = ["Rejected case reapplication", "Appeal response"]
DIFFICULT_CASE_SPECIALTY = "Difficult cases"

NATIVE_LANGUAGES = {"ko", "korean"}

BASE_SERVICES = [
    "Eligibility review and case strategy",
    "Document checklist and review",
    "Application form preparation",
    "Submission support",
]
PREMIUM_SERVICES = [
    "Rejection risk analysis",
    "Immigration office accompaniment",
    "Post-approval follow-up",
    "Priority communication channel",
]


class RepresentativeMatchingEngine:
    WEIGHTS = {
        "complexity": 0.40,
        "experience": 0.25,
        "specialty": 0.15,
        "location": 0.10,
        "language": 0.05,
        "budget": 0.05,
    }
    REFERENCE_EXPERIENCE_YEARS = 15
    BUDGET_SOFT_MARGIN = 1.2
    RECOMMENDATION_REASONS = {
        1: "Best overall match for the case complexity and required expertise",
        2: "Strong experience at a reasonable cost",
        3: "Budget-efficient option with solid qualifications",
    }

    def __init__(self, settings: Settings | None = None, planner: ServicePlanner | None = None):
        config = settings or default_settings
        self._limit = config.MATCH_RESULT_LIMIT
        self._budget_tolerance = config.MATCH_BUDGET_TOLERANCE
        self._planner = planner or ServicePlanner()

    def match(
        self,
        evaluation_result: EvaluationResult,
        preferences: ClientPreferences | None,
        candidate_pool: Iterable[RepresentativeCandidate],
    ) -> MatchOutcome:
        """
        Rank representatives for an evaluated case.

        Args:
            evaluation_result: Scored case including diagnostics
            preferences: Client budget, language, location and urgency
            candidate_pool: Candidates supplied by the directory

        Returns:
            MatchOutcome with at most MATCH_RESULT_LIMIT recommendations. When
            every candidate is filtered out the recommendations are empty and
            filter_reasons explains why.
        """
        preferences = preferences or ClientPreferences()
        candidates = list(candidate_pool)
        diagnostics = evaluation_result.diagnostics
        required_grade = self.recommended_grade(diagnostics.complexity, diagnostics.risk)
        required_specialties = self.required_specialties(evaluation_result)

        filter_reasons = {"grade": 0, "budget": 0, "language": 0}
        scored = []
        for index, candidate in enumerate(candidates):
            passed, reason = self._passes_filters(candidate, required_grade, preferences)
            if not passed:
                filter_reasons[reason] += 1
                logger.debug(
                    "Skipping representative - filter failed",
                    representative_id=candidate.id,
                    reason=reason,
                )
                continue
            total, breakdown = self._score_candidate(
                candidate, diagnostics.complexity, required_specialties, preferences
            )
            scored.append((index, candidate, total, breakdown))

        scored.sort(key=self._rank_key)

        recommendations = [
            self._build_recommendation(rank, candidate, total, breakdown, preferences)
            for rank, (_, candidate, total, breakdown) in enumerate(scored[: self._limit], start=1)
        ]

        service_plan = None
        if recommendations:
            service_plan = self._planner.build(recommendations[0], evaluation_result, preferences)
        else:
            logger.warning(
                "No representatives passed filters",
                required_grade=required_grade,
                total_candidates=len(candidates),
                filter_reasons=filter_reasons,
            )

        logger.info(
            "Representatives matched",
            visa_type=evaluation_result.visa_type,
            required_grade=required_grade,
            total_candidates=len(candidates),
            eligible=len(scored),
            returned=len(recommendations),
        )

        return MatchOutcome(
            recommended_grade=required_grade,
            required_specialties=required_specialties,
            total_candidates=len(candidates),
            recommendations=recommendations,
            filter_reasons=filter_reasons,
            service_plan=service_plan,
        )

    def recommended_grade(self, complexity: str, risk: str) -> str:
        """Minimum acceptable grade: the stricter of the complexity and risk lookups."""
        by_complexity = COMPLEXITY_GRADE.get(complexity, "INTERMEDIATE")
        by_risk = RISK_GRADE.get(risk, "INTERMEDIATE")
        return GRADE_ORDER[max(grade_rank(by_complexity), grade_rank(by_risk))]

    def required_specialties(self, evaluation_result: EvaluationResult) -> list[str]:
        diagnostics = evaluation_result.diagnostics
        specialties: list[str] = []
        for factor in diagnostics.factors:
            specialties.extend(CATEGORY_SPECIALTIES.get(factor.category, []))
            specialties.extend(FACTOR_SPECIALTIES.get(factor.factor, []))
        if diagnostics.rejection_reasons:
            specialties.extend(REJECTION_SPECIALTIES)
        if evaluation_result.overall_score < 60:
            specialties.append(DIFFICULT_CASE_SPECIALTY)
        return list(dict.fromkeys(specialties))

    def _passes_filters(
        self,
        candidate: RepresentativeCandidate,
        required_grade: str,
        preferences: ClientPreferences,
    ) -> tuple[bool, str | None]:
        if grade_rank(candidate.grade) < grade_rank(required_grade):
            return False, "grade"
        if preferences.budget is not None:
            ceiling = preferences.budget * (1 + self._budget_tolerance)
            if candidate.fee_range.min > ceiling:
                return False, "budget"
        if preferences.preferred_language:
            languages = {language.lower() for language in candidate.languages}
            if preferences.preferred_language.lower() not in languages:
                return False, "language"
        return True, None

    def _score_candidate(
        self,
        candidate: RepresentativeCandidate,
        complexity: str,
        required_specialties: list[str],
        preferences: ClientPreferences,
    ) -> tuple[float, dict[str, float]]:
        scores = {
            "complexity": self._complexity_fit(candidate, complexity),
            "experience": self._experience(candidate),
            "specialty": self._specialty(candidate, required_specialties),
            "location": self._location(candidate, preferences.location),
            "language": self._language(candidate, preferences.preferred_language),
            "budget": self._budget(candidate, preferences.budget),
        }
        scores = {key: max(0.0, min(100.0, value)) for key, value in scores.items()}
        breakdown = {key: round(self.WEIGHTS[key] * scores[key], 2) for key in self.WEIGHTS}
        total = sum(self.WEIGHTS[key] * scores[key] for key in self.WEIGHTS)
        return round(total, 1), breakdown

    def _rank_key(self, item: tuple[int, RepresentativeCandidate, float, dict[str, float]]):
        # Ties: success rate, experience, faster response, then pool order.
        index, candidate, total, _ = item
        response = candidate.avg_response_hours
        return (
            -total,
            -candidate.success_rate_percent,
            -candidate.experience_years,
            response if response is not None else math.inf,
            index,
        )

    def _complexity_fit(self, candidate: RepresentativeCandidate, complexity: str) -> float:
        return COMPLEXITY_FIT.get(complexity, COMPLEXITY_FIT["STANDARD"]).get(candidate.grade, 0)

    def _experience(self, candidate: RepresentativeCandidate) -> float:
        return min(100.0, candidate.experience_years / self.REFERENCE_EXPERIENCE_YEARS * 100)

    def _specialty(self, candidate: RepresentativeCandidate, required: list[str]) -> float:
        if not required:
            return 100.0
        offered = [specialty.lower() for specialty in candidate.specialties]
        matched = 0
        for specialty in required:
            wanted = specialty.lower()
            if any(wanted in item or item in wanted for item in offered):
                matched += 1
        return matched / len(required) * 100

    def _location(self, candidate: RepresentativeCandidate, location: str | None) -> float:
        if not location:
            return 80.0
        if candidate.location.strip().lower() == location.strip().lower():
            return 100.0
        return 60.0

    def _language(self, candidate: RepresentativeCandidate, language: str | None) -> float:
        if not language or language.lower() in NATIVE_LANGUAGES:
            return 100.0
        if language.lower() in {item.lower() for item in candidate.languages}:
            return 100.0
        return 70.0

    def _budget(self, candidate: RepresentativeCandidate, budget: float | None) -> float:
        if budget is None:
            return 80.0
        if candidate.fee_range.min <= budget:
            return 100.0
        if candidate.fee_range.min <= budget * self.BUDGET_SOFT_MARGIN:
            return 80.0
        return 40.0

    def _build_recommendation(
        self,
        rank: int,
        candidate: RepresentativeCandidate,
        total: float,
        breakdown: dict[str, float],
        preferences: ClientPreferences,
    ) -> MatchRecommendation:
        return MatchRecommendation(
            rank=rank,
            candidate=candidate,
            matching_score=total,
            score_breakdown=breakdown,
            strengths=self._strengths(candidate),
            considerations=self._considerations(candidate),
            estimated_timeline=self._timeline(candidate, preferences),
            recommendation_reason=self.RECOMMENDATION_REASONS.get(
                rank, self.RECOMMENDATION_REASONS[3]
            ),
            included_services=self._services(candidate),
        )

    def _strengths(self, candidate: RepresentativeCandidate) -> list[str]:
        strengths = []
        if candidate.success_rate_percent >= 95:
            strengths.append(f"High success rate ({candidate.success_rate_percent:g}%)")
        if candidate.experience_years >= 10:
            strengths.append(f"{candidate.experience_years:g} years of experience")
        if candidate.rating >= 4.7:
            strengths.append(f"Highly rated by clients ({candidate.rating:g})")
        if candidate.avg_response_hours is not None and candidate.avg_response_hours <= 3:
            strengths.append("Fast response time")
        return strengths

    def _considerations(self, candidate: RepresentativeCandidate) -> list[str]:
        considerations = []
        if candidate.fee_range.min >= 1_500_000:
            considerations.append("Premium fee range")
        if candidate.availability == "BUSY":
            considerations.append("Currently busy; scheduling may take longer")
        if candidate.avg_response_hours is not None and candidate.avg_response_hours >= 6:
            considerations.append("Slower average response time")
        return considerations

    def _timeline(
        self, candidate: RepresentativeCandidate, preferences: ClientPreferences
    ) -> TimelineEstimate:
        base = 30
        if candidate.grade == "EXPERT":
            base -= 5
        if candidate.avg_response_hours is not None and candidate.avg_response_hours <= 3:
            base -= 3
        if preferences.urgency == "HIGH":
            base -= 7
        if candidate.availability == "BUSY":
            base += 5
        return TimelineEstimate(
            estimated_days=max(15, base),
            min_days=max(10, base - 5),
            max_days=base + 10,
        )

    def _services(self, candidate: RepresentativeCandidate) -> list[str]:
        if grade_rank(candidate.grade) >= grade_rank("SENIOR"):
            return [*BASE_SERVICES, *PREMIUM_SERVICES]
        return list(BASE_SERVICES)
