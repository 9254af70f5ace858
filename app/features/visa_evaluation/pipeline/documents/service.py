"""
Document completeness engine - required/optional/alternative matching and
expiry-based document aging.
"""

from __future__ import annotations

import calendar
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Any

from app.config import Settings, settings as default_settings
from app.features.visa_evaluation.domain.models import (
    DocumentCheck,
    DocumentCompleteness,
    DocumentSetValidation,
    DocumentSuggestion,
    ExpiryCheck,
    SubmittedDocument,
    VisaTypeSchema,
)
from app.features.visa_evaluation.pipeline.normalization import coerce_document
from app.features.visa_evaluation.registry import (
    SchemaRegistry,
    normalize_application_type,
    normalize_visa_type,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

REQUIRED_WEIGHT = 0.8
OPTIONAL_WEIGHT = 0.2


@dataclass(slots=True)
class ChecklistItem:
    document_type: str
    name: str
    category: str
    alternatives: list[str]
    validity_months: int
    critical: bool = False


def add_months(start: date, months: int) -> date:
    """Calendar-month offset; the day is clamped to the end of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _as_datetime(value: date | datetime | None, tzinfo) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=tzinfo)


class DocumentCompletenessEngine:
    """
    Evaluates a submitted document set against a visa type's requirements.

    Independent of scoring: callers re-run it whenever the document set changes.
    """

    def __init__(self, registry: SchemaRegistry, settings: Settings | None = None):
        self._registry = registry
        config = settings or default_settings
        windows = config.get_document_expiry_windows()
        self._expiring_soon_days = windows["expiring_soon"]
        self._renewal_days = windows["renewal_recommended"]

    def evaluate_set(
        self,
        documents: Iterable[SubmittedDocument | Mapping[str, Any]],
        visa_type: str,
        application_type: str = "NEW",
        *,
        now: datetime | date | None = None,
    ) -> DocumentSetValidation:
        """
        Evaluate document completeness and expiry.

        Args:
            documents: Submitted document metadata
            visa_type: Visa code
            application_type: NEW, EXTENSION or CHANGE
            now: Reference time for expiry checks (defaults to current UTC time)

        Returns:
            DocumentSetValidation for the set
        """
        visa_type = normalize_visa_type(visa_type)
        application_type = normalize_application_type(application_type)
        submitted = [coerce_document(document) for document in documents]
        schema = self._registry.get(visa_type, application_type)
        if schema is None:
            logger.warning(
                "No schema registered - document requirements empty",
                visa_type=visa_type,
                application_type=application_type,
            )

        current = self._reference_time(now)
        required = schema.required_documents if schema else ()
        optional = schema.optional_documents if schema else ()
        submitted_types = {document.document_type for document in submitted}

        checks = [self._check_document(document, schema, current) for document in submitted]
        missing_required = self._missing_required(schema, submitted_types)
        available_optional = [doc_type for doc_type in optional if doc_type in submitted_types]
        completeness = self._completeness(required, optional, missing_required, available_optional)

        validation = DocumentSetValidation(
            visa_type=visa_type,
            application_type=application_type,
            completeness=completeness,
            missing_required=missing_required,
            available_optional=available_optional,
            suggestions=self._suggestions(schema, missing_required),
            documents=checks,
            expiry_checks=[check.expiry for check in checks if check.expiry is not None],
        )

        logger.info(
            "Document set evaluated",
            visa_type=visa_type,
            application_type=application_type,
            submitted=len(submitted),
            missing_required=len(missing_required),
            completeness=completeness.overall,
            expiring=len(validation.expiring),
        )
        return validation

    def check_document_type(
        self, document_type: str, visa_type: str, application_type: str = "NEW"
    ) -> str:
        """Return required, optional or other for a document type."""
        schema = self._registry.get(visa_type, application_type)
        if schema is None:
            return "other"
        if document_type in schema.required_documents:
            return "required"
        if document_type in schema.optional_documents:
            return "optional"
        return "other"

    def alternatives_for(
        self, document_type: str, visa_type: str, application_type: str = "NEW"
    ) -> list[str]:
        schema = self._registry.get(visa_type, application_type)
        if schema is None:
            return []
        return list(schema.document_alternatives.get(document_type, ()))

    def document_checklist(
        self, visa_type: str, application_type: str = "NEW"
    ) -> dict[str, list[ChecklistItem]]:
        """Essential and optional documents with names and accepted alternatives."""
        schema = self._registry.get(visa_type, application_type)
        if schema is None:
            return {"essential": [], "optional": []}
        return {
            "essential": [self._checklist_item(schema, doc_type) for doc_type in schema.required_documents],
            "optional": [self._checklist_item(schema, doc_type) for doc_type in schema.optional_documents],
        }

    def check_expiry(
        self,
        document_type: str,
        issue_date: date | datetime,
        validity_months: int,
        now: datetime | date | None = None,
    ) -> ExpiryCheck:
        current = self._reference_time(now)
        issued = issue_date.date() if isinstance(issue_date, datetime) else issue_date
        expiry_date = add_months(issued, validity_months)
        expiry_moment = _as_datetime(expiry_date, current.tzinfo)
        days_remaining = math.ceil((expiry_moment - current).total_seconds() / 86400)

        if days_remaining < 0:
            status = "expired"
        elif days_remaining <= self._expiring_soon_days:
            status = "expiring_soon"
        elif days_remaining <= self._renewal_days:
            status = "renewal_recommended"
        else:
            status = "valid"

        return ExpiryCheck(
            document_type=document_type,
            issue_date=issued,
            expiry_date=expiry_date,
            days_remaining=days_remaining,
            status=status,
        )

    def _reference_time(self, now: datetime | date | None) -> datetime:
        if now is None:
            return datetime.now(UTC)
        return _as_datetime(now, UTC)

    def _check_document(
        self, document: SubmittedDocument, schema: VisaTypeSchema | None, now: datetime
    ) -> DocumentCheck:
        if schema and document.document_type in schema.required_documents:
            requirement = "required"
        elif schema and document.document_type in schema.optional_documents:
            requirement = "optional"
        else:
            requirement = "other"

        category = "other"
        if requirement != "other":
            category = self._registry.document_category(document.document_type)

        expiry = None
        if document.issue_date is not None:
            months = (
                schema.validity_months(document.document_type)
                if schema
                else self._registry.validity_months(document.document_type)
            )
            expiry = self.check_expiry(document.document_type, document.issue_date, months, now)

        logger.debug(
            "Document classified",
            document_type=document.document_type,
            requirement=requirement,
            category=category,
            expiry_status=expiry.status if expiry else None,
        )
        return DocumentCheck(
            document_type=document.document_type,
            original_name=document.original_name,
            requirement=requirement,
            category=category,
            expiry=expiry,
        )

    def _missing_required(
        self, schema: VisaTypeSchema | None, submitted_types: set[str]
    ) -> list[str]:
        if schema is None:
            return []
        missing = []
        for doc_type in schema.required_documents:
            if doc_type in submitted_types:
                continue
            alternatives = schema.document_alternatives.get(doc_type, ())
            present = [alt for alt in alternatives if alt in submitted_types]
            if present:
                logger.debug(
                    "Required document satisfied by alternative",
                    document_type=doc_type,
                    alternative=present[0],
                )
                continue
            missing.append(doc_type)
        return missing

    def _completeness(
        self,
        required: tuple[str, ...],
        optional: tuple[str, ...],
        missing_required: list[str],
        available_optional: list[str],
    ) -> DocumentCompleteness:
        required_pct = 100.0
        if required:
            required_pct = (len(required) - len(missing_required)) / len(required) * 100
        optional_pct = 100.0
        if optional:
            optional_pct = len(available_optional) / len(optional) * 100
        overall = REQUIRED_WEIGHT * required_pct + OPTIONAL_WEIGHT * optional_pct
        return DocumentCompleteness(
            overall=round(overall, 1),
            required=round(required_pct, 1),
            optional=round(optional_pct, 1),
        )

    def _suggestions(
        self, schema: VisaTypeSchema | None, missing_required: list[str]
    ) -> list[DocumentSuggestion]:
        if schema is None:
            return []
        suggestions = []
        for doc_type in missing_required:
            name = self._registry.document_name(doc_type)
            alternatives = list(schema.document_alternatives.get(doc_type, ()))
            message = f"Submit the {name.lower()}."
            if alternatives:
                alternative_names = ", ".join(
                    self._registry.document_name(alt).lower() for alt in alternatives
                )
                message = f"Submit the {name.lower()} or one of: {alternative_names}."
            suggestions.append(
                DocumentSuggestion(
                    document_type=doc_type,
                    name=name,
                    alternatives=alternatives,
                    urgency="critical" if self._registry.is_critical(doc_type) else "normal",
                    message=message,
                )
            )
        suggestions.sort(key=lambda suggestion: suggestion.urgency != "critical")
        return suggestions

    def _checklist_item(self, schema: VisaTypeSchema, doc_type: str) -> ChecklistItem:
        return ChecklistItem(
            document_type=doc_type,
            name=self._registry.document_name(doc_type),
            category=self._registry.document_category(doc_type),
            alternatives=list(schema.document_alternatives.get(doc_type, ())),
            validity_months=schema.validity_months(doc_type),
            critical=self._registry.is_critical(doc_type),
        )
