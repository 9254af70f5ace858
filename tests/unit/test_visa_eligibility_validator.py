import pytest

from app.features.visa_evaluation.domain.errors import SchemaNotFoundError
from app.features.visa_evaluation.pipeline.normalization import build_evaluation_input
from app.features.visa_evaluation.pipeline.validation import EligibilityValidator


def test_missing_research_field_reported(registry, e1_evaluation_data, administrative_data):
    validator = EligibilityValidator(registry, strict=False)
    data = dict(e1_evaluation_data)
    del data["researchField"]

    report = validator.validate("E-1", "NEW", data, administrative_data)

    assert report.missing_evaluation == ["researchField"]
    assert report.missing_administrative == []
    assert report.is_complete is False


def test_missing_fields_follow_registry_order(registry):
    validator = EligibilityValidator(registry, strict=False)

    report = validator.validate("E-1", "NEW", {"position": "Professor"}, {})

    assert report.missing_evaluation == [
        "educationLevel",
        "experienceYears",
        "publications",
        "institutionType",
        "institution",
        "researchField",
    ]
    assert report.missing_administrative == ["fullName", "nationality", "email", "phone", "currentCity"]


def test_blank_strings_count_as_missing(registry, e1_evaluation_data, administrative_data):
    validator = EligibilityValidator(registry, strict=False)
    data = {**e1_evaluation_data, "institution": "   ", "position": None}

    report = validator.validate("E-1", "NEW", data, administrative_data)

    assert report.missing_evaluation == ["institution", "position"]


@pytest.mark.parametrize("blank", ["", "   "])
def test_blank_list_field_counts_as_missing(registry, e1_evaluation_data, administrative_data, blank):
    validator = EligibilityValidator(registry, strict=False)
    data = {**e1_evaluation_data, "publications": blank}

    report = validator.validate("E-1", "NEW", data, administrative_data)

    assert report.missing_evaluation == ["publications"]
    assert report.is_complete is False


def test_zero_and_false_values_are_present(registry, administrative_data):
    validator = EligibilityValidator(registry, strict=False)
    data = {
        "educationLevel": "bachelor",
        "experienceYears": "0",
        "institutionType": "public_school",
        "language": "English",
        "citizenship": "Canada",
        "isNativeSpeaker": "false",
    }

    report = validator.validate("E-2", "NEW", data, administrative_data)

    assert report.is_complete is True


def test_extension_requires_stay_details(registry, e1_evaluation_data, administrative_data):
    validator = EligibilityValidator(registry, strict=False)

    report = validator.validate("E-1", "EXTENSION", e1_evaluation_data, administrative_data)

    assert report.missing_administrative == [
        "currentVisaType",
        "visaExpiryDate",
        "alienRegistrationNumber",
    ]


def test_unregistered_visa_type_fails_open(registry):
    validator = EligibilityValidator(registry, strict=False)

    report = validator.validate("D-99", "NEW", {}, {})

    assert report.schema_found is False
    assert report.missing_evaluation == []
    assert report.missing_administrative == []


def test_strict_mode_raises_for_unregistered_visa_type(registry):
    validator = EligibilityValidator(registry, strict=True)

    with pytest.raises(SchemaNotFoundError):
        validator.validate("D-99", "NEW", {}, {})


def test_strict_flag_defaults_from_settings(registry, test_settings):
    strict_settings = test_settings.model_copy(update={"VISA_SCHEMA_STRICT": True})
    validator = EligibilityValidator(registry, strict_settings)

    with pytest.raises(SchemaNotFoundError):
        validator.validate("E-9", "NEW", {}, {})


def test_validate_input_uses_normalised_values(registry, e1_evaluation_data, administrative_data):
    validator = EligibilityValidator(registry, strict=False)
    evaluation_input = build_evaluation_input(
        registry.get("E-1", "NEW"),
        "E-1",
        "NEW",
        e1_evaluation_data,
        administrative_data,
    )

    report = validator.validate_input(evaluation_input)

    assert report.is_complete is True
