"""
Eligibility validator - reports missing required fields before scoring.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from app.config import Settings, settings as default_settings
from app.features.visa_evaluation.domain.errors import SchemaNotFoundError
from app.features.visa_evaluation.domain.models import (
    EvaluationInput,
    ValidationReport,
    VisaTypeSchema,
)
from app.features.visa_evaluation.pipeline.normalization import is_present, normalize_fields
from app.features.visa_evaluation.registry import (
    SchemaRegistry,
    normalize_application_type,
    normalize_visa_type,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class EligibilityValidator:
    """
    Completeness gate over the schema registry.

    Unregistered visa/application types fail open (empty missing lists) unless
    the validator runs in strict mode, in which case SchemaNotFoundError is raised.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        settings: Settings | None = None,
        strict: bool | None = None,
    ):
        self._registry = registry
        config = settings or default_settings
        self._strict = config.VISA_SCHEMA_STRICT if strict is None else strict

    def validate(
        self,
        visa_type: str,
        application_type: str,
        evaluation_data: Mapping[str, Any] | None,
        administrative_data: Mapping[str, Any] | None = None,
    ) -> ValidationReport:
        """
        Check applicant data against the registered required fields.

        Args:
            visa_type: Visa code (any common spelling, e.g. "E1" or "E-1")
            application_type: NEW, EXTENSION or CHANGE
            evaluation_data: Applicant evaluation fields
            administrative_data: Applicant administrative fields

        Returns:
            ValidationReport listing missing fields in registry order
        """
        schema = self._lookup(visa_type, application_type)
        if schema is None:
            return ValidationReport(
                visa_type=normalize_visa_type(visa_type),
                application_type=normalize_application_type(application_type),
                schema_found=False,
            )

        evaluation = normalize_fields(evaluation_data, schema.field_types)
        administrative = normalize_fields(administrative_data, schema.field_types)
        return self._check(schema, evaluation, administrative)

    def validate_input(self, evaluation_input: EvaluationInput) -> ValidationReport:
        """Validate an already-normalised EvaluationInput."""
        schema = self._lookup(evaluation_input.visa_type, evaluation_input.application_type)
        if schema is None:
            return ValidationReport(
                visa_type=evaluation_input.visa_type,
                application_type=evaluation_input.application_type,
                schema_found=False,
            )
        return self._check(
            schema, evaluation_input.evaluation_data, evaluation_input.administrative_data
        )

    def _lookup(self, visa_type: str, application_type: str) -> VisaTypeSchema | None:
        schema = self._registry.get(visa_type, application_type)
        if schema is not None:
            return schema
        if self._strict:
            raise SchemaNotFoundError(
                normalize_visa_type(visa_type), normalize_application_type(application_type)
            )
        logger.warning(
            "No schema registered - validation skipped",
            visa_type=visa_type,
            application_type=application_type,
            fail_open=True,
        )
        return None

    def _check(
        self,
        schema: VisaTypeSchema,
        evaluation: Mapping[str, Any],
        administrative: Mapping[str, Any],
    ) -> ValidationReport:
        report = ValidationReport(
            visa_type=schema.visa_type,
            application_type=schema.application_type,
            missing_evaluation=self._missing(schema.required_evaluation_fields, evaluation),
            missing_administrative=self._missing(
                schema.required_administrative_fields, administrative
            ),
        )
        logger.debug(
            "Eligibility data validated",
            visa_type=schema.visa_type,
            application_type=schema.application_type,
            missing_evaluation=report.missing_evaluation,
            missing_administrative=report.missing_administrative,
        )
        return report

    def _missing(self, required: Iterable[str], data: Mapping[str, Any]) -> list[str]:
        return [field for field in required if not is_present(data.get(field))]
