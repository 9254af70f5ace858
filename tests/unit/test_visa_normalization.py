from datetime import date

import pytest

from app.features.visa_evaluation.pipeline.normalization import (
    build_evaluation_input,
    coerce_document,
    coerce_value,
    is_present,
)


def test_numeric_strings_coerced_by_field_type():
    assert coerce_value("12", "number") == 12
    assert coerce_value("3.5", "number") == 3.5
    assert coerce_value("1,500,000", "number") == 1_500_000
    assert coerce_value("4.0", "integer") == 4
    assert coerce_value("ten", "number") == "ten"


def test_boolean_strings_coerced_by_field_type():
    assert coerce_value("true", "boolean") is True
    assert coerce_value("FALSE", "boolean") is False
    assert coerce_value("1", "boolean") is True
    assert coerce_value("0", "boolean") is False
    assert coerce_value(1, "boolean") is True
    assert coerce_value("maybe", "boolean") == "maybe"


def test_list_and_date_fields():
    assert coerce_value("a, b,,c", "list") == ["a", "b", "c"]
    assert coerce_value(("x",), "list") == ["x"]
    assert coerce_value("  ", "list") == ""
    assert is_present(coerce_value("", "list")) is False
    assert coerce_value("2025-03-01", "date") == date(2025, 3, 1)
    assert coerce_value("not a date", "date") == "not a date"


def test_undeclared_fields_use_generic_coercion():
    assert coerce_value("7", None) == 7
    assert coerce_value("true", None) is True
    assert coerce_value("  Seoul ", None) == "Seoul"


@pytest.mark.parametrize(
    "value, expected",
    [(None, False), ("", False), ("   ", False), (0, True), (False, True), ([], True), ("x", True)],
)
def test_is_present(value, expected):
    assert is_present(value) is expected


def test_build_evaluation_input_copies_and_freezes(registry, e1_evaluation_data):
    original = dict(e1_evaluation_data)
    schema = registry.get("E-1", "NEW")

    evaluation_input = build_evaluation_input(
        schema, "e1", "new", e1_evaluation_data, declared_status="likely"
    )

    assert e1_evaluation_data == original
    assert evaluation_input.visa_type == "E-1"
    assert evaluation_input.application_type == "NEW"
    assert evaluation_input.evaluation_data["experienceYears"] == 0
    assert evaluation_input.declared_status == "LIKELY"
    with pytest.raises(TypeError):
        evaluation_input.evaluation_data["experienceYears"] = 10


def test_coerce_document_from_storage_metadata():
    document = coerce_document(
        {
            "documentType": "passport",
            "originalName": "passport.pdf",
            "issueDate": "2024-05-02T09:00:00Z",
            "size": 1024,
            "verificationStatus": "verified",
        }
    )

    assert document.document_type == "passport"
    assert document.issue_date == date(2024, 5, 2)
    assert document.size_bytes == 1024
    assert document.verification_status == "VERIFIED"


def test_coerce_document_ignores_unparseable_issue_date():
    document = coerce_document({"document_type": "photo", "issue_date": "yesterday"})

    assert document.issue_date is None
