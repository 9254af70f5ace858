"""
Recommendation passes for eligibility results.

Three independent passes (score band, weak categories, documents) feed one
prioritisation step: dedupe on (type, message), stable sort by priority,
truncate.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.features.visa_evaluation.domain.models import (
    CategoryDefinition,
    CategoryScore,
    DocumentSetValidation,
    Recommendation,
)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def band_recommendation(overall_score: float) -> Recommendation:
    if overall_score < 40:
        return Recommendation(
            type="general",
            priority="high",
            message="Eligibility is currently low. Strengthen core qualifications or consider another visa type.",
        )
    if overall_score < 60:
        return Recommendation(
            type="qualification",
            priority="medium",
            message="Improve the weakest qualifications before filing the application.",
        )
    if overall_score < 80:
        return Recommendation(
            type="document",
            priority="medium",
            message="Prepare supporting evidence to reinforce the application.",
        )
    return Recommendation(
        type="general",
        priority="low",
        message="The profile is strong. Proceed with the application.",
    )


def category_recommendations(
    category_scores: Iterable[CategoryScore],
    definitions: dict[str, CategoryDefinition],
    threshold: float,
) -> list[Recommendation]:
    recommendations = []
    for category in category_scores:
        percentage = category.percentage
        if percentage >= threshold:
            continue
        definition = definitions.get(category.name)
        message = (definition.recommendation if definition else "") or f"Improve {category.label.lower()}."
        recommendations.append(
            Recommendation(
                type="category",
                priority="high" if percentage < 40 else "medium",
                message=message,
                category=category.name,
            )
        )
    return recommendations


def document_recommendations(validation: DocumentSetValidation | None) -> list[Recommendation]:
    if validation is None:
        return []

    recommendations = [
        Recommendation(
            type="document",
            priority="high" if suggestion.urgency == "critical" else "medium",
            message=suggestion.message,
            category=suggestion.document_type,
        )
        for suggestion in validation.suggestions
    ]

    for check in validation.expiring:
        if check.status == "expired":
            priority, message = "high", f"Reissue {check.document_type}: it expired on {check.expiry_date.isoformat()}."
        elif check.status == "expiring_soon":
            priority, message = "high", f"Renew {check.document_type}: it expires in {check.days_remaining} days."
        else:
            priority, message = "low", f"Plan to renew {check.document_type} before {check.expiry_date.isoformat()}."
        recommendations.append(
            Recommendation(type="document_expiry", priority=priority, message=message, category=check.document_type)
        )

    return recommendations


def prioritize(recommendations: Iterable[Recommendation], limit: int) -> list[Recommendation]:
    """Dedupe by (type, message), order high > medium > low keeping first-seen order, truncate."""
    seen: set[tuple[str, str]] = set()
    unique = []
    for recommendation in recommendations:
        key = (recommendation.type, recommendation.message)
        if key in seen:
            continue
        seen.add(key)
        unique.append(recommendation)

    unique.sort(key=lambda item: PRIORITY_ORDER.get(item.priority, len(PRIORITY_ORDER)))
    return unique[:limit]
