import pytest

from app.features.visa_evaluation.domain.models import CategoryScore, QualificationCheck
from app.features.visa_evaluation.pipeline.diagnostics import CaseDiagnosticsAnalyzer
from app.features.visa_evaluation.pipeline.normalization import build_evaluation_input


def _input(application_type="NEW", **data):
    return build_evaluation_input(None, "E-1", application_type, data)


def _scores(**points):
    """Category scores out of 25; defaults to four strong categories."""
    points = points or {"education": 25, "experience": 20, "research": 20, "institution": 20}
    return {
        name: CategoryScore(name=name, label=name.title(), score=value, max_score=25, weight=0.25)
        for name, value in points.items()
    }


def _factor_names(diagnostics):
    return [factor.factor for factor in diagnostics.factors]


def test_new_application_with_strong_profile_is_standard():
    diagnostics = CaseDiagnosticsAnalyzer().analyze(_input("NEW"), _scores(), 85.0, 80)

    assert _factor_names(diagnostics) == ["NEW_APPLICATION"]
    assert diagnostics.complexity == "STANDARD"
    assert diagnostics.risk == "LOW"
    assert diagnostics.rejection_reasons == []
    assert (diagnostics.estimated_legal_fees.min, diagnostics.estimated_legal_fees.max) == (
        800_000,
        1_500_000,
    )


def test_extension_with_strong_profile_is_simple():
    diagnostics = CaseDiagnosticsAnalyzer().analyze(_input("EXTENSION"), _scores(), 85.0, 80)

    assert diagnostics.complexity == "SIMPLE"
    assert diagnostics.estimated_legal_fees.min == 300_000
    assert diagnostics.estimated_legal_fees.max == 800_000


def test_lone_change_application_averages_into_very_complex():
    diagnostics = CaseDiagnosticsAnalyzer().analyze(_input("CHANGE"), _scores(), 85.0, 80)

    assert _factor_names(diagnostics) == ["CHANGE_APPLICATION"]
    assert diagnostics.complexity == "VERY_COMPLEX"


def test_change_application_with_minor_factor_is_complex():
    diagnostics = CaseDiagnosticsAnalyzer().analyze(
        _input("CHANGE", hasMultilingualDocuments=True), _scores(), 85.0, 80
    )

    assert _factor_names(diagnostics) == ["CHANGE_APPLICATION", "MULTILINGUAL"]
    assert diagnostics.complexity == "COMPLEX"


def test_criminal_record_is_very_complex_and_very_high_risk():
    diagnostics = CaseDiagnosticsAnalyzer().analyze(
        _input("NEW", hasCriminalRecord=True), _scores(), 85.0, 80
    )

    assert "CRIMINAL_RECORD" in _factor_names(diagnostics)
    assert diagnostics.complexity == "VERY_COMPLEX"
    assert diagnostics.risk == "VERY_HIGH"
    assert "Criminal record disclosed" in diagnostics.rejection_reasons
    assert diagnostics.estimated_legal_fees.min == 3_000_000
    assert diagnostics.estimated_legal_fees.max == 4_800_000


def test_two_legal_factors_raise_fee_multiplier():
    diagnostics = CaseDiagnosticsAnalyzer().analyze(
        _input("NEW", hasCriminalRecord=True, hasImmigrationViolations=True), _scores(), 85.0, 80
    )

    assert diagnostics.estimated_legal_fees.min == 3_250_000
    assert diagnostics.estimated_legal_fees.max == 5_200_000


@pytest.mark.parametrize("country", ["USA", "Canada"])
def test_foreign_degree_adds_verification_and_apostille(country):
    diagnostics = CaseDiagnosticsAnalyzer().analyze(
        _input("NEW", degreeCountry=country), _scores(), 85.0, 80
    )

    assert _factor_names(diagnostics) == [
        "NEW_APPLICATION",
        "FOREIGN_DEGREE_VERIFICATION",
        "APOSTILLE_REQUIRED",
    ]
    assert diagnostics.complexity == "STANDARD"


def test_domestic_degree_adds_nothing():
    diagnostics = CaseDiagnosticsAnalyzer().analyze(
        _input("EXTENSION", degreeCountry="kr"), _scores(), 85.0, 80
    )

    assert _factor_names(diagnostics) == ["EXTENSION_APPLICATION"]


def test_education_red_flags():
    diagnostics = CaseDiagnosticsAnalyzer().analyze(
        _input("EXTENSION", isOnlineDegree=True, isAccreditedInstitution=False, hasMultilingualDocuments=True),
        _scores(),
        85.0,
        80,
    )

    assert _factor_names(diagnostics) == [
        "EXTENSION_APPLICATION",
        "ONLINE_DEGREE",
        "UNACCREDITED_INSTITUTION",
        "MULTILINGUAL",
    ]
    assert diagnostics.complexity == "VERY_COMPLEX"
    assert diagnostics.risk == "LOW"


def test_low_score_with_many_weak_categories():
    scores = _scores(education=10, experience=5, research=0, institution=10, language=5)

    diagnostics = CaseDiagnosticsAnalyzer().analyze(_input("EXTENSION"), scores, 45.0, 80)

    assert "LOW_EVALUATION_SCORE" in _factor_names(diagnostics)
    assert "MULTIPLE_WEAK_CATEGORIES" in _factor_names(diagnostics)
    assert diagnostics.complexity == "COMPLEX"
    assert diagnostics.risk == "HIGH"


def test_failed_gate_is_a_rejection_reason():
    qualification = QualificationCheck(
        passed=False, actual_points=5, required_points=20, message="Below the minimum."
    )

    diagnostics = CaseDiagnosticsAnalyzer().analyze(
        _input("NEW"), _scores(), 75.0, 80, qualification
    )

    assert diagnostics.rejection_reasons == ["Below the minimum."]
    assert diagnostics.risk == "VERY_HIGH"


def test_zero_education_is_a_rejection_reason():
    scores = _scores(education=0, experience=25, research=25, institution=25)

    diagnostics = CaseDiagnosticsAnalyzer().analyze(_input("EXTENSION"), scores, 75.0, 80)

    assert diagnostics.rejection_reasons == ["No qualifying education"]
    assert diagnostics.risk == "VERY_HIGH"


@pytest.mark.parametrize(
    "overall, confidence, expected",
    [(85.0, 80, "LOW"), (65.0, 80, "MEDIUM"), (85.0, 55, "MEDIUM"), (49.9, 90, "HIGH")],
)
def test_risk_tiers_follow_score_and_confidence(overall, confidence, expected):
    diagnostics = CaseDiagnosticsAnalyzer().analyze(_input("NEW"), _scores(), overall, confidence)

    assert diagnostics.risk == expected
