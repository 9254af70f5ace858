from datetime import UTC, datetime

import pytest

from app.config import Settings
from app.features.visa_evaluation.registry import SchemaRegistry


@pytest.fixture(scope="session")
def registry():
    return SchemaRegistry.load_from_path()


@pytest.fixture
def test_settings():
    return Settings(
        environment="test",
        VISA_SCHEMA_STRICT=False,
        MATCH_BUDGET_TOLERANCE=0.0,
    )


@pytest.fixture
def now():
    return datetime(2026, 10, 19, tzinfo=UTC)


@pytest.fixture
def e1_evaluation_data():
    """Complete E-1 data: education maxed, no experience."""
    return {
        "educationLevel": "doctorate",
        "experienceYears": "0",
        "publications": ["paper-1", "paper-2", "paper-3"],
        "institutionType": "university",
        "institution": "Seoul National University",
        "position": "Assistant Professor",
        "researchField": "Computer Science",
    }


@pytest.fixture
def administrative_data():
    return {
        "fullName": "Jordan Lee",
        "nationality": "CA",
        "email": "jordan@example.com",
        "phone": "+82-10-0000-0000",
        "currentCity": "Seoul",
    }


def _minimal_registry_document(**visa_overrides):
    visa = {
        "name": "Student",
        "fields": {"gpa": "number", "school": "string"},
        "evaluation": {"required": ["gpa", "school"], "optional": []},
        "categories": [
            {
                "name": "academics",
                "label": "Academics",
                "max_score": 10,
                "weight": 1.0,
                "rules": [{"field": "gpa", "kind": "threshold", "thresholds": [[3.5, 10], [3.0, 6]]}],
            }
        ],
        "application_types": {
            "NEW": {"required_documents": ["passport", "diploma"], "optional_documents": []}
        },
    }
    visa.update(visa_overrides)
    return {
        "schema_version": "test-1",
        "document_types": {
            "passport": {"name": "Passport", "category": "identity", "critical": True},
            "diploma": {"name": "Diploma", "category": "education"},
            "transcript": {"name": "Transcript", "category": "education"},
        },
        "document_alternatives": {"diploma": ["transcript"]},
        "visa_types": {"D-2": visa},
    }


@pytest.fixture
def registry_document():
    """Factory for a small single-visa registry document."""
    return _minimal_registry_document
