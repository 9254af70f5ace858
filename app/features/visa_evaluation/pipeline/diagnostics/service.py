"""
Case diagnostics - complexity factors, risk tier and pre-screening.

The representative matching engine consumes these tiers; it never derives
them itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from app.features.visa_evaluation.domain.models import (
    CaseDiagnostics,
    CategoryScore,
    ComplexityFactor,
    EvaluationInput,
    FeeRange,
    QualificationCheck,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

APPLICATION_TYPE_FACTORS = {
    "NEW": ("NEW_APPLICATION", 2, "First application for this visa type"),
    "EXTENSION": ("EXTENSION_APPLICATION", 1, "Extension of an existing stay"),
    "CHANGE": ("CHANGE_APPLICATION", 3, "Change of status from another visa"),
}

LEGAL_FEE_RANGES = {
    "SIMPLE": (300_000, 800_000),
    "STANDARD": (800_000, 1_500_000),
    "COMPLEX": (1_500_000, 2_500_000),
    "VERY_COMPLEX": (2_500_000, 4_000_000),
}

DOMESTIC_COUNTRIES = {"KR", "KOR", "KOREA", "SOUTH KOREA", "REPUBLIC OF KOREA"}

LOW_SCORE_THRESHOLD = 60
WEAK_CATEGORY_PERCENT = 60
MAX_WEAK_CATEGORIES = 3


class CaseDiagnosticsAnalyzer:
    """Derives complexity and risk tiers for an evaluated case."""

    def analyze(
        self,
        evaluation_input: EvaluationInput,
        category_scores: Mapping[str, CategoryScore],
        overall_score: float,
        confidence: int,
        qualification: QualificationCheck | None = None,
    ) -> CaseDiagnostics:
        data = evaluation_input.evaluation_data
        factors = self._factors(evaluation_input.application_type, data, category_scores, overall_score)
        rejection_reasons = self._rejection_reasons(data, category_scores, qualification)
        complexity = self._complexity(factors)
        risk = self._risk(factors, rejection_reasons, overall_score, confidence)

        logger.debug(
            "Case diagnostics computed",
            visa_type=evaluation_input.visa_type,
            complexity=complexity,
            risk=risk,
            factors=[factor.factor for factor in factors],
            rejection_reasons=len(rejection_reasons),
        )

        return CaseDiagnostics(
            complexity=complexity,
            risk=risk,
            factors=factors,
            rejection_reasons=rejection_reasons,
            estimated_legal_fees=self._legal_fees(complexity, factors),
        )

    def _factors(
        self,
        application_type: str,
        data: Mapping[str, Any],
        category_scores: Mapping[str, CategoryScore],
        overall_score: float,
    ) -> list[ComplexityFactor]:
        factors = []

        if application_type in APPLICATION_TYPE_FACTORS:
            name, impact, description = APPLICATION_TYPE_FACTORS[application_type]
            factors.append(ComplexityFactor("APPLICATION_TYPE", name, impact, description))

        degree_country = data.get("degreeCountry")
        if isinstance(degree_country, str) and degree_country.strip():
            if degree_country.strip().upper() not in DOMESTIC_COUNTRIES:
                factors.append(
                    ComplexityFactor(
                        "EDUCATION", "FOREIGN_DEGREE_VERIFICATION", 2, "Degree awarded abroad"
                    )
                )
                factors.append(
                    ComplexityFactor(
                        "DOCUMENTS", "APOSTILLE_REQUIRED", 2, "Foreign documents need an apostille"
                    )
                )
        if data.get("isOnlineDegree") is True:
            factors.append(ComplexityFactor("EDUCATION", "ONLINE_DEGREE", 3, "Degree earned online"))
        if data.get("isAccreditedInstitution") is False:
            factors.append(
                ComplexityFactor(
                    "EDUCATION", "UNACCREDITED_INSTITUTION", 4, "Degree from an unaccredited institution"
                )
            )
        if data.get("hasMultilingualDocuments") is True:
            factors.append(
                ComplexityFactor("DOCUMENTS", "MULTILINGUAL", 1, "Documents need certified translation")
            )
        if data.get("hasCriminalRecord") is True:
            factors.append(ComplexityFactor("LEGAL", "CRIMINAL_RECORD", 4, "Criminal record disclosed"))
        if data.get("hasImmigrationViolations") is True:
            factors.append(
                ComplexityFactor("LEGAL", "PREVIOUS_VIOLATIONS", 4, "Previous immigration violations")
            )

        if overall_score < LOW_SCORE_THRESHOLD:
            factors.append(
                ComplexityFactor("EVALUATION", "LOW_EVALUATION_SCORE", 3, "Eligibility score below 60")
            )
        weak = [score for score in category_scores.values() if score.percentage < WEAK_CATEGORY_PERCENT]
        if len(weak) > MAX_WEAK_CATEGORIES:
            factors.append(
                ComplexityFactor(
                    "EVALUATION", "MULTIPLE_WEAK_CATEGORIES", 3, f"{len(weak)} categories below 60%"
                )
            )

        return factors

    def _rejection_reasons(
        self,
        data: Mapping[str, Any],
        category_scores: Mapping[str, CategoryScore],
        qualification: QualificationCheck | None,
    ) -> list[str]:
        reasons = []
        if qualification is not None and not qualification.passed:
            reasons.append(qualification.message or "Minimum qualification points not met")
        if data.get("hasCriminalRecord") is True:
            reasons.append("Criminal record disclosed")
        education = category_scores.get("education")
        if education is not None and education.score <= 0:
            reasons.append("No qualifying education")
        return reasons

    def _complexity(self, factors: list[ComplexityFactor]) -> str:
        if not factors:
            return "SIMPLE"
        impacts = [factor.impact for factor in factors]
        highest = max(impacts)
        average = sum(impacts) / len(impacts)
        if highest >= 4 or average >= 3:
            return "VERY_COMPLEX"
        if highest >= 3 or average >= 2.5:
            return "COMPLEX"
        if highest >= 2 or average >= 1.5:
            return "STANDARD"
        return "SIMPLE"

    def _risk(
        self,
        factors: list[ComplexityFactor],
        rejection_reasons: list[str],
        overall_score: float,
        confidence: int,
    ) -> str:
        if rejection_reasons or any(factor.category == "LEGAL" for factor in factors):
            return "VERY_HIGH"
        if overall_score < 50:
            return "HIGH"
        if overall_score < 70 or confidence < 60:
            return "MEDIUM"
        return "LOW"

    def _legal_fees(self, complexity: str, factors: list[ComplexityFactor]) -> FeeRange:
        low, high = LEGAL_FEE_RANGES[complexity]
        legal_factors = sum(1 for factor in factors if factor.category == "LEGAL")
        multiplier = 1.0
        if legal_factors >= 2:
            multiplier = 1.3
        elif legal_factors == 1:
            multiplier = 1.2
        return FeeRange(min=round(low * multiplier), max=round(high * multiplier))
