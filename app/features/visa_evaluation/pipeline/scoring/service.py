"""
Eligibility scoring service - weighted multi-category visa scores.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from app.config import Settings, settings as default_settings
from app.features.visa_evaluation.domain.errors import DataIntegrityError
from app.features.visa_evaluation.domain.models import (
    CategoryScore,
    DocumentSetValidation,
    EvaluationInput,
    EvaluationResult,
    GrowthAction,
    GrowthPotential,
    QualificationCheck,
    SubmittedDocument,
    VisaTypeSchema,
)
from app.features.visa_evaluation.pipeline.diagnostics import CaseDiagnosticsAnalyzer
from app.features.visa_evaluation.pipeline.normalization import build_evaluation_input
from app.features.visa_evaluation.registry import SchemaRegistry
from app.infrastructure.observability.logging import get_logger

from .confidence import calculate_confidence
from .recommendations import (
    band_recommendation,
    category_recommendations,
    document_recommendations,
    prioritize,
)
from .rules import category_points

logger = get_logger(__name__)


def _points(value: float) -> str:
    return f"{value:g}"


class ScoringEngine:
    """
    Scores applicant data against a visa type's category rule tables.

    The engine is stateless: every call returns a fresh EvaluationResult and
    identical inputs produce identical results apart from evaluated_at.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        settings: Settings | None = None,
        diagnostics: CaseDiagnosticsAnalyzer | None = None,
    ):
        self._registry = registry
        self._settings = settings or default_settings
        self._diagnostics = diagnostics or CaseDiagnosticsAnalyzer()

    def score(
        self,
        visa_type: str,
        application_type: str,
        evaluation_data: Mapping[str, Any],
        *,
        documents: Iterable[SubmittedDocument | Mapping[str, Any]] = (),
        declared_status: str | None = None,
        document_validation: DocumentSetValidation | None = None,
        now: datetime | None = None,
    ) -> EvaluationResult:
        """
        Score raw applicant data.

        Raises:
            SchemaNotFoundError: no rule set for the visa/application type
            DataIntegrityError: the rule set produced invalid category data
        """
        schema = self._registry.require(visa_type, application_type)
        evaluation_input = build_evaluation_input(
            schema,
            visa_type,
            application_type,
            evaluation_data,
            documents=documents,
            declared_status=declared_status,
        )
        return self._score(schema, evaluation_input, document_validation, now)

    def score_input(
        self,
        evaluation_input: EvaluationInput,
        *,
        document_validation: DocumentSetValidation | None = None,
        now: datetime | None = None,
    ) -> EvaluationResult:
        """Score an already-normalised EvaluationInput."""
        schema = self._registry.require(evaluation_input.visa_type, evaluation_input.application_type)
        return self._score(schema, evaluation_input, document_validation, now)

    def _score(
        self,
        schema: VisaTypeSchema,
        evaluation_input: EvaluationInput,
        document_validation: DocumentSetValidation | None,
        now: datetime | None,
    ) -> EvaluationResult:
        data = evaluation_input.evaluation_data
        category_scores = self._score_categories(schema, data)
        overall_score = self._overall_score(category_scores)
        qualification = self._qualification(schema, category_scores)
        confidence = calculate_confidence(
            schema,
            data,
            overall_score,
            documents=evaluation_input.documents,
            declared_status=evaluation_input.declared_status,
        )
        status = self._status(overall_score, confidence, qualification)
        diagnostics = self._diagnostics.analyze(
            evaluation_input, category_scores, overall_score, confidence, qualification
        )

        definitions = {category.name: category for category in schema.categories}
        recommendations = prioritize(
            [
                band_recommendation(overall_score),
                *category_recommendations(
                    category_scores.values(),
                    definitions,
                    self._settings.CATEGORY_RECOMMENDATION_THRESHOLD,
                ),
                *document_recommendations(document_validation),
            ],
            self._settings.EVALUATION_RECOMMENDATION_LIMIT,
        )

        logger.info(
            "Eligibility scored",
            visa_type=schema.visa_type,
            application_type=schema.application_type,
            schema_version=schema.schema_version,
            overall_score=overall_score,
            confidence=confidence,
            status=status,
        )

        return EvaluationResult(
            visa_type=schema.visa_type,
            application_type=schema.application_type,
            schema_version=schema.schema_version,
            overall_score=overall_score,
            confidence=confidence,
            category_scores=category_scores,
            status=status,
            strengths=self._strengths(category_scores),
            weaknesses=self._weaknesses(category_scores),
            growth_potential=self._growth_potential(schema, category_scores),
            recommendations=recommendations,
            diagnostics=diagnostics,
            evaluated_at=now or datetime.now(UTC),
            qualification=qualification,
        )

    def _score_categories(
        self, schema: VisaTypeSchema, data: Mapping[str, Any]
    ) -> dict[str, CategoryScore]:
        scores = {}
        for category in schema.categories:
            if category.max_score <= 0:
                logger.error(
                    "Invalid category maximum",
                    visa_type=schema.visa_type,
                    category=category.name,
                    max_score=category.max_score,
                )
                raise DataIntegrityError(
                    f"Category {category.name} has non-positive max score {category.max_score}",
                    category=category.name,
                )
            if category.weight < 0:
                logger.error("Invalid category weight", visa_type=schema.visa_type, category=category.name)
                raise DataIntegrityError(
                    f"Category {category.name} has negative weight {category.weight}",
                    category=category.name,
                )

            points = category_points(category, data)
            if points < 0:
                logger.error(
                    "Negative category score",
                    visa_type=schema.visa_type,
                    category=category.name,
                    score=points,
                )
                raise DataIntegrityError(
                    f"Category {category.name} produced negative score {points}",
                    category=category.name,
                )

            scores[category.name] = CategoryScore(
                name=category.name,
                label=category.label,
                score=points,
                max_score=category.max_score,
                weight=category.weight,
            )
        return scores

    def _overall_score(self, category_scores: Mapping[str, CategoryScore]) -> float:
        total = sum(score.weight * score.percentage for score in category_scores.values())
        return round(max(0.0, min(100.0, total)), 1)

    def _qualification(
        self, schema: VisaTypeSchema, category_scores: Mapping[str, CategoryScore]
    ) -> QualificationCheck | None:
        gate = schema.qualification_gate
        if gate is None:
            return None
        actual = sum(category_scores[name].score for name in gate.categories if name in category_scores)
        passed = actual >= gate.minimum_points
        if not passed:
            logger.debug(
                "Qualification gate failed",
                visa_type=schema.visa_type,
                actual_points=actual,
                required_points=gate.minimum_points,
            )
        return QualificationCheck(
            passed=passed,
            actual_points=actual,
            required_points=gate.minimum_points,
            message=gate.message,
        )

    def _status(
        self, overall_score: float, confidence: int, qualification: QualificationCheck | None
    ) -> str:
        if qualification is not None and not qualification.passed:
            return "UNQUALIFIED"
        if overall_score >= 85 and confidence >= 80:
            return "HIGHLY_LIKELY"
        if overall_score >= 70 and confidence >= 70:
            return "LIKELY"
        if overall_score >= 50:
            return "UNCERTAIN"
        if overall_score >= 30:
            return "UNLIKELY"
        return "VERY_UNLIKELY"

    def _strengths(self, category_scores: Mapping[str, CategoryScore]) -> list[str]:
        threshold = self._settings.STRENGTH_THRESHOLD
        strong = [score for score in category_scores.values() if score.percentage >= threshold]
        strong.sort(key=lambda score: score.percentage, reverse=True)
        return [
            f"{score.label} ({_points(score.score)}/{_points(score.max_score)} points)"
            for score in strong
        ]

    def _weaknesses(self, category_scores: Mapping[str, CategoryScore]) -> list[str]:
        threshold = self._settings.CATEGORY_RECOMMENDATION_THRESHOLD
        weak = [score for score in category_scores.values() if score.percentage < threshold]
        weak.sort(key=lambda score: score.percentage)
        return [
            f"{score.label} ({_points(score.score)}/{_points(score.max_score)} points)"
            for score in weak
        ]

    def _growth_potential(
        self, schema: VisaTypeSchema, category_scores: Mapping[str, CategoryScore]
    ) -> GrowthPotential:
        definitions = {category.name: category for category in schema.categories}
        actions = []
        total_gap = 0.0
        for score in category_scores.values():
            gap = score.max_score - score.score
            total_gap += gap
            if gap <= 0:
                continue
            definition = definitions[score.name]
            actions.append(
                GrowthAction(
                    category=score.name,
                    label=score.label,
                    gap_points=gap,
                    potential_score_gain=round(score.weight * gap / score.max_score * 100, 1),
                    action=definition.recommendation or f"Improve {score.label.lower()}.",
                )
            )

        # Largest gap first; ties go to the heavier category, then by name.
        weights = {name: definition.weight for name, definition in definitions.items()}
        actions.sort(key=lambda action: (-action.gap_points, -weights[action.category], action.category))
        return GrowthPotential(total_potential=round(total_gap), priority_actions=actions)
