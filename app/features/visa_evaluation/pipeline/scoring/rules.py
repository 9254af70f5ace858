"""
Rule table evaluation for eligibility categories.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from app.features.visa_evaluation.domain.models import CategoryDefinition, ScoringRule
from app.features.visa_evaluation.pipeline.normalization import is_present


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _lookup(rule: ScoringRule, value: Any) -> float:
    key = str(value).strip().lower()
    if key in rule.table:
        return rule.table[key]
    return rule.table.get(key.replace("-", "_").replace(" ", "_"), 0.0)


def _threshold(rule: ScoringRule, value: Any) -> float:
    if not _is_number(value):
        return 0.0
    for minimum, points in rule.thresholds:
        if value >= minimum:
            return points
    return 0.0


def _count(rule: ScoringRule, value: Any) -> float:
    if isinstance(value, (list, tuple, set, frozenset)):
        count = len(value)
    elif _is_number(value):
        count = max(value, 0)
    else:
        return 0.0
    points = count * rule.per_unit
    if rule.cap is not None:
        points = min(points, rule.cap)
    return points


def rule_points(rule: ScoringRule, value: Any) -> float:
    """Points awarded by one rule; absent values score zero."""
    if not is_present(value):
        return 0.0
    if rule.kind == "lookup":
        return _lookup(rule, value)
    if rule.kind == "threshold":
        return _threshold(rule, value)
    if rule.kind == "count":
        return _count(rule, value)
    if rule.kind == "boolean":
        return rule.points if isinstance(value, bool) and value == rule.expected else 0.0
    return 0.0


def category_points(category: CategoryDefinition, data: Mapping[str, Any]) -> float:
    """Sum of rule points for a category, capped at its maximum."""
    total = sum(rule_points(rule, data.get(rule.field_name)) for rule in category.rules)
    return min(total, category.max_score)
