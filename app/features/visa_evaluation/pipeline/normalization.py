"""
Input normalisation - the single place applicant values are coerced.

Field types come from the schema registry:

    number   -> int or float ("12" -> 12, "3.5" -> 3.5)
    integer  -> int ("4" -> 4, 4.0 -> 4)
    boolean  -> bool ("true"/"false", "1"/"0", "yes"/"no")
    string   -> stripped str
    list     -> list (comma separated strings are split)
    date     -> date (ISO strings)

Undeclared fields get the generic numeric/boolean coercion. Values that cannot
be coerced are kept unchanged; scoring treats them as matching no rule.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

from app.features.visa_evaluation.domain.models import (
    EvaluationInput,
    SubmittedDocument,
    VisaTypeSchema,
)
from app.features.visa_evaluation.registry.schema import (
    normalize_application_type,
    normalize_visa_type,
)

_NUMERIC = re.compile(r"^[+-]?\d+(\.\d+)?$")
_TRUE_STRINGS = {"true", "1", "yes", "y", "on"}
_FALSE_STRINGS = {"false", "0", "no", "n", "off"}


def is_present(value: Any) -> bool:
    """A value is present when it is not None and not an empty string."""
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _to_number(value: Any) -> Any:
    if isinstance(value, bool) or isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if _NUMERIC.match(text):
            return float(text) if "." in text else int(text)
        return value.strip()
    return value


def _to_boolean(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        return value.strip()
    return value


def _to_list(value: Any) -> Any:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    if isinstance(value, str):
        if not value.strip():
            return ""
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def _to_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return text
    return value


def _generic(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()
    if _NUMERIC.match(text):
        return float(text) if "." in text else int(text)
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    return text


def coerce_value(value: Any, field_type: str | None) -> Any:
    """Coerce one raw value according to its declared field type."""
    if value is None:
        return None
    if field_type == "number":
        return _to_number(value)
    if field_type == "integer":
        number = _to_number(value)
        if isinstance(number, float) and number.is_integer():
            return int(number)
        return number
    if field_type == "boolean":
        return _to_boolean(value)
    if field_type == "string":
        return value.strip() if isinstance(value, str) else str(value)
    if field_type == "list":
        return _to_list(value)
    if field_type == "date":
        return _to_date(value)
    return _generic(value)


def normalize_fields(
    data: Mapping[str, Any] | None, field_types: Mapping[str, str]
) -> dict[str, Any]:
    """Return a coerced copy of ``data``; the caller's mapping is left untouched."""
    return {key: coerce_value(value, field_types.get(key)) for key, value in (data or {}).items()}


def coerce_document(document: SubmittedDocument | Mapping[str, Any]) -> SubmittedDocument:
    """Accept a SubmittedDocument or a storage metadata mapping."""
    if isinstance(document, SubmittedDocument):
        return document

    issue_date = document.get("issue_date", document.get("issueDate"))
    if isinstance(issue_date, str):
        issue_date = _to_date(issue_date) if issue_date.strip() else None
        if isinstance(issue_date, str):
            issue_date = None

    return SubmittedDocument(
        document_type=str(document.get("document_type") or document.get("documentType") or ""),
        original_name=str(document.get("original_name") or document.get("originalName") or ""),
        issue_date=issue_date,
        size_bytes=document.get("size_bytes", document.get("size")),
        mime_type=document.get("mime_type", document.get("mimeType")),
        verification_status=str(
            document.get("verification_status")
            or document.get("verificationStatus")
            or "PENDING"
        ).upper(),
    )


def build_evaluation_input(
    schema: VisaTypeSchema | None,
    visa_type: str,
    application_type: str,
    evaluation_data: Mapping[str, Any] | None,
    administrative_data: Mapping[str, Any] | None = None,
    documents: Iterable[SubmittedDocument | Mapping[str, Any]] = (),
    declared_status: str | None = None,
) -> EvaluationInput:
    """Build the immutable, normalised input for one evaluation call."""
    field_types: Mapping[str, str] = schema.field_types if schema else {}
    return EvaluationInput(
        visa_type=normalize_visa_type(visa_type),
        application_type=normalize_application_type(application_type),
        evaluation_data=MappingProxyType(normalize_fields(evaluation_data, field_types)),
        administrative_data=MappingProxyType(normalize_fields(administrative_data, field_types)),
        documents=tuple(coerce_document(document) for document in documents),
        declared_status=declared_status.upper() if declared_status else None,
    )
