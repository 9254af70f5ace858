import copy

import pytest
import yaml

from app.features.visa_evaluation.domain.errors import RegistryLoadError, SchemaNotFoundError
from app.features.visa_evaluation.registry import (
    SchemaRegistry,
    normalize_visa_type,
    read_snapshot,
)


def test_bundled_registry_exposes_every_application_type(registry):
    assert registry.visa_types() == ["E-1", "E-2", "E-3"]
    for visa_type in registry.visa_types():
        for application_type in ("NEW", "EXTENSION", "CHANGE"):
            assert registry.get(visa_type, application_type) is not None


def test_visa_codes_are_normalised_on_lookup(registry):
    schema = registry.get("e1", "new")

    assert schema is not None
    assert schema.key == ("E-1", "NEW")
    assert normalize_visa_type(" e_2 ") == "E-2"
    assert normalize_visa_type("D-10") == "D-10"


def test_bundled_schemas_keep_required_and_optional_disjoint(registry):
    for key in registry.keys():
        schema = registry.get(*key)
        assert not set(schema.required_evaluation_fields) & set(schema.optional_evaluation_fields)
        assert not set(schema.required_administrative_fields) & set(
            schema.optional_administrative_fields
        )
        assert not set(schema.required_documents) & set(schema.optional_documents)


def test_extension_promotes_administrative_fields(registry):
    new = registry.get("E-1", "NEW")
    extension = registry.get("E-1", "EXTENSION")

    assert "alienRegistrationNumber" not in new.required_administrative_fields
    assert "alienRegistrationNumber" in extension.required_administrative_fields
    assert "alienRegistrationNumber" not in extension.optional_administrative_fields


def test_schema_carries_alternatives_and_validity(registry):
    schema = registry.get("E-1", "NEW")

    assert schema.document_alternatives["career_certificate"] == (
        "employment_contract",
        "recommendation_letter",
    )
    assert schema.validity_months("passport") == 36
    assert schema.validity_months("diploma") == 12
    assert schema.schema_version == registry.schema_version


def test_unknown_pair_returns_none_and_require_raises(registry):
    assert registry.get("D-99", "NEW") is None

    with pytest.raises(SchemaNotFoundError) as exc_info:
        registry.require("d99", "new")

    assert exc_info.value.visa_type == "D-99"
    assert exc_info.value.recoverable is True


def test_overlapping_required_and_optional_fields_rejected(registry_document):
    document = registry_document(evaluation={"required": ["gpa", "school"], "optional": ["gpa"]})

    with pytest.raises(RegistryLoadError):
        SchemaRegistry.from_document(document)


def test_weights_must_sum_to_one(registry_document):
    document = registry_document()
    document["visa_types"]["D-2"]["categories"][0]["weight"] = 0.5

    with pytest.raises(RegistryLoadError) as exc_info:
        SchemaRegistry.from_document(document)

    assert exc_info.value.recoverable is False


def test_unknown_document_reference_rejected(registry_document):
    document = registry_document(
        application_types={"NEW": {"required_documents": ["passport", "bank_book"]}}
    )

    with pytest.raises(RegistryLoadError):
        SchemaRegistry.from_document(document)


def test_undeclared_rule_field_rejected(registry_document):
    document = registry_document()
    document["visa_types"]["D-2"]["categories"][0]["rules"][0]["field"] = "grade_point"

    with pytest.raises(RegistryLoadError):
        SchemaRegistry.from_document(document)


def test_missing_file_raises_load_error(tmp_path):
    with pytest.raises(RegistryLoadError):
        SchemaRegistry.load_from_path(tmp_path / "missing.yaml")


def test_swap_replaces_snapshot_atomically(tmp_path, registry_document):
    original = registry_document()
    path = tmp_path / "registry.yaml"
    path.write_text(yaml.safe_dump(original), encoding="utf-8")
    registry = SchemaRegistry.load_from_path(path)
    first_snapshot = registry.snapshot

    updated = copy.deepcopy(original)
    updated["schema_version"] = "test-2"
    path.write_text(yaml.safe_dump(updated), encoding="utf-8")

    previous = registry.reload()

    assert previous is first_snapshot
    assert registry.schema_version == "test-2"
    assert registry.get("D-2").schema_version == "test-2"
    # Schemas handed out before the swap keep describing the old rule set.
    assert first_snapshot.schemas[("D-2", "NEW")].schema_version == "test-1"


def test_failed_reload_keeps_active_snapshot(tmp_path, registry_document):
    path = tmp_path / "registry.yaml"
    path.write_text(yaml.safe_dump(registry_document()), encoding="utf-8")
    registry = SchemaRegistry.load_from_path(path)

    path.write_text("schema_version: [unterminated", encoding="utf-8")

    with pytest.raises(RegistryLoadError):
        registry.reload()
    assert registry.schema_version == "test-1"


def test_read_snapshot_builds_document_taxonomy(registry):
    snapshot = read_snapshot(registry.snapshot.source)

    assert snapshot.document_categories["passport"] == "identity"
    assert snapshot.critical_documents == frozenset({"passport", "employment_contract"})
    assert registry.document_name("unknown_doc") == "Unknown doc"
    assert registry.document_category("unknown_doc") == "other"
