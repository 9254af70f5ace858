"""
Pydantic models for the schema registry file.

The YAML document is validated once at load time and flattened into frozen
VisaTypeSchema records, one per (visa type, application type) pair.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, Field, PositiveInt, model_validator

from app.features.visa_evaluation.domain.models import (
    CategoryDefinition,
    QualificationGate,
    ScoringRule,
    VisaTypeSchema,
)

FieldTypeName = Literal["number", "integer", "boolean", "string", "list", "date"]

APPLICATION_TYPES = ("NEW", "EXTENSION", "CHANGE")

_VISA_CODE = re.compile(r"^([A-Z]+)[-_ ]?(\d+)$")


def normalize_visa_type(value: str | None) -> str:
    """Canonicalise a visa code, e.g. ``e1`` or ``E_1`` -> ``E-1``."""
    code = (value or "").strip().upper()
    match = _VISA_CODE.match(code)
    if match:
        return f"{match.group(1)}-{match.group(2)}"
    return code


def normalize_application_type(value: str | None) -> str:
    return (value or "NEW").strip().upper()


def _overlap(first: list[str], second: list[str]) -> list[str]:
    second_set = set(second)
    return [item for item in first if item in second_set]


class DocumentTypeConfig(BaseModel):
    name: str
    category: str = "other"
    validity_months: PositiveInt | None = None
    critical: bool = False


class RuleConfig(BaseModel):
    field: str
    kind: Literal["lookup", "threshold", "count", "boolean"]
    table: dict[str, float] = Field(default_factory=dict)
    thresholds: list[tuple[float, float]] = Field(default_factory=list)
    per_unit: float = 0.0
    cap: float | None = None
    points: float = 0.0
    expected: bool = True

    @model_validator(mode="after")
    def _check_kind(self) -> RuleConfig:
        if self.kind == "lookup" and not self.table:
            raise ValueError(f"lookup rule for {self.field} needs a table")
        if self.kind == "threshold" and not self.thresholds:
            raise ValueError(f"threshold rule for {self.field} needs thresholds")
        if self.kind == "count" and self.per_unit <= 0:
            raise ValueError(f"count rule for {self.field} needs a positive per_unit")
        return self

    def to_rule(self) -> ScoringRule:
        ordered = sorted(self.thresholds, key=lambda pair: pair[0], reverse=True)
        return ScoringRule(
            field_name=self.field,
            kind=self.kind,
            table=MappingProxyType({str(key).lower(): value for key, value in self.table.items()}),
            thresholds=tuple((float(minimum), float(points)) for minimum, points in ordered),
            per_unit=self.per_unit,
            cap=self.cap,
            points=self.points,
            expected=self.expected,
        )


class CategoryConfig(BaseModel):
    name: str
    label: str
    max_score: float = Field(gt=0)
    weight: float = Field(ge=0, le=1)
    recommendation: str = ""
    rules: list[RuleConfig] = Field(min_length=1)

    def to_definition(self) -> CategoryDefinition:
        return CategoryDefinition(
            name=self.name,
            label=self.label,
            max_score=self.max_score,
            weight=self.weight,
            rules=tuple(rule.to_rule() for rule in self.rules),
            recommendation=self.recommendation,
        )


class FieldSetConfig(BaseModel):
    required: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_disjoint(self) -> FieldSetConfig:
        overlap = _overlap(self.required, self.optional)
        if overlap:
            raise ValueError(f"fields both required and optional: {', '.join(overlap)}")
        return self


class AdministrativeConfig(FieldSetConfig):
    fields: dict[str, FieldTypeName] = Field(default_factory=dict)


class GateConfig(BaseModel):
    categories: list[str] = Field(min_length=1)
    minimum_points: float = Field(ge=0)
    message: str = ""


class ApplicationTypeConfig(BaseModel):
    required_evaluation: list[str] = Field(default_factory=list)
    required_administrative: list[str] = Field(default_factory=list)
    required_documents: list[str] = Field(default_factory=list)
    optional_documents: list[str] = Field(default_factory=list)
    document_alternatives: dict[str, list[str]] = Field(default_factory=dict)
    document_validity_months: dict[str, PositiveInt] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_disjoint(self) -> ApplicationTypeConfig:
        overlap = _overlap(self.required_documents, self.optional_documents)
        if overlap:
            raise ValueError(f"documents both required and optional: {', '.join(overlap)}")
        return self


class VisaTypeConfig(BaseModel):
    name: str
    rules_version: str = "1.0"
    empirical_adjustment: float = 0.0
    fields: dict[str, FieldTypeName] = Field(default_factory=dict)
    evaluation: FieldSetConfig
    categories: list[CategoryConfig] = Field(min_length=1)
    qualification_gate: GateConfig | None = None
    application_types: dict[str, ApplicationTypeConfig] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_categories(self) -> VisaTypeConfig:
        names = [category.name for category in self.categories]
        if len(names) != len(set(names)):
            raise ValueError("category names must be unique")
        total_weight = sum(category.weight for category in self.categories)
        if abs(total_weight - 1.0) > 1e-6:
            raise ValueError(f"category weights sum to {total_weight:.4f}, expected 1.0")
        if self.qualification_gate:
            unknown = [name for name in self.qualification_gate.categories if name not in names]
            if unknown:
                raise ValueError(f"qualification gate references unknown categories: {unknown}")
        for application_type in self.application_types:
            if application_type.upper() not in APPLICATION_TYPES:
                raise ValueError(f"unsupported application type: {application_type}")
        return self


class RegistryDocument(BaseModel):
    """Root of the registry YAML file."""

    schema_version: str
    default_validity_months: PositiveInt = 12
    document_types: dict[str, DocumentTypeConfig] = Field(default_factory=dict)
    document_alternatives: dict[str, list[str]] = Field(default_factory=dict)
    shared_fields: dict[str, FieldTypeName] = Field(default_factory=dict)
    administrative: AdministrativeConfig = Field(default_factory=AdministrativeConfig)
    visa_types: dict[str, VisaTypeConfig]

    @model_validator(mode="after")
    def _check_references(self) -> RegistryDocument:
        known = set(self.document_types)
        referenced: set[str] = set()
        for primary, alternatives in self.document_alternatives.items():
            referenced.update([primary, *alternatives])
        for code, visa in self.visa_types.items():
            declared = set(visa.fields) | set(self.shared_fields)
            for category in visa.categories:
                for rule in category.rules:
                    if rule.field not in declared:
                        raise ValueError(
                            f"{code}/{category.name}: rule field {rule.field} is not declared"
                        )
            for app_config in visa.application_types.values():
                referenced.update(app_config.required_documents)
                referenced.update(app_config.optional_documents)
                for primary, alternatives in app_config.document_alternatives.items():
                    referenced.update([primary, *alternatives])
        unknown = sorted(referenced - known)
        if unknown:
            raise ValueError(f"unknown document types referenced: {', '.join(unknown)}")
        return self

    def build_schemas(self) -> dict[tuple[str, str], VisaTypeSchema]:
        """Flatten the document into one frozen schema per visa/application pair."""
        global_validity = {
            doc_type: config.validity_months
            for doc_type, config in self.document_types.items()
            if config.validity_months
        }
        schemas: dict[tuple[str, str], VisaTypeSchema] = {}

        for raw_code, visa in self.visa_types.items():
            visa_type = normalize_visa_type(raw_code)
            categories = tuple(category.to_definition() for category in visa.categories)
            gate = None
            if visa.qualification_gate:
                gate = QualificationGate(
                    categories=tuple(visa.qualification_gate.categories),
                    minimum_points=visa.qualification_gate.minimum_points,
                    message=visa.qualification_gate.message,
                )
            field_types = {
                **self.shared_fields,
                **self.administrative.fields,
                **visa.fields,
            }

            for raw_app_type, app_config in visa.application_types.items():
                application_type = normalize_application_type(raw_app_type)

                # Fields promoted to required for this application type leave the optional list.
                required_eval = _dedupe([*visa.evaluation.required, *app_config.required_evaluation])
                optional_eval = [f for f in visa.evaluation.optional if f not in required_eval]
                required_admin = _dedupe(
                    [*self.administrative.required, *app_config.required_administrative]
                )
                optional_admin = [f for f in self.administrative.optional if f not in required_admin]

                alternatives = {
                    primary: tuple(options)
                    for primary, options in {
                        **self.document_alternatives,
                        **app_config.document_alternatives,
                    }.items()
                }
                validity = {**global_validity, **app_config.document_validity_months}

                schemas[(visa_type, application_type)] = VisaTypeSchema(
                    visa_type=visa_type,
                    application_type=application_type,
                    display_name=visa.name,
                    schema_version=self.schema_version,
                    rules_version=visa.rules_version,
                    required_evaluation_fields=tuple(required_eval),
                    optional_evaluation_fields=tuple(optional_eval),
                    required_administrative_fields=tuple(required_admin),
                    optional_administrative_fields=tuple(optional_admin),
                    field_types=MappingProxyType(dict(field_types)),
                    required_documents=tuple(app_config.required_documents),
                    optional_documents=tuple(app_config.optional_documents),
                    document_alternatives=MappingProxyType(alternatives),
                    document_validity_months=MappingProxyType(validity),
                    default_validity_months=self.default_validity_months,
                    categories=categories,
                    qualification_gate=gate,
                    empirical_adjustment=visa.empirical_adjustment,
                )

        return schemas


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
