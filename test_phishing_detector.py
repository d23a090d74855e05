"""
Detection engine tests: end-to-end scenarios and result-level properties
"""
import pytest

from phishlens.config import settings
from phishlens.core import EmptyInputError, analyze
from phishlens.core.aggregator import REC_APPEARS_SAFE, REC_REPORT
from phishlens.core.phishing_detector import PhishingDetector
from phishlens.schemas import ThreatLevel, UrlStatus
from phishlens.core.aggregator import threat_level_for_score

PHISHING_SAMPLE = "URGENT: verify your account now, click here http://paypal-secure-login.tk"
SAFE_SAMPLE = "Hi, let's meet for lunch tomorrow at noon."

VARIED_INPUTS = [
    PHISHING_SAMPLE,
    SAFE_SAMPLE,
    "Your PayPal account has been suspended. Verify your identity at https://bit.ly/xyz",
    "Congratulations winner!!! Claim your money, cash prize, lottery, bitcoin, wire transfer!!! FREE!!!",
    "Invoice attached. Regards, Tom",
    "http://[broken http://10.0.0.1/login http://a-b-c-d.example.co.uk",
    "LEGAL ACTION. ACCOUNT LOCKED. SECURITY BREACH. FINAL NOTICE. ACT NOW.",
]


def test_phishing_scenario(detector):
    result = detector.analyze(PHISHING_SAMPLE)

    matched = {(e.text.lower(), e.type) for e in result.suspicious_elements}
    assert ("urgent", "Urgency Manipulation") in matched
    assert ("verify your account", "Credential Harvesting") in matched
    assert ("click here", "Generic Phishing") in matched
    assert ("paypal", "Brand Impersonation") in matched

    assert len(result.url_analysis) == 1
    finding = result.url_analysis[0]
    assert finding.domain == "paypal-secure-login.tk"
    assert finding.status == UrlStatus.MALICIOUS
    assert finding.risk_score > 30

    assert result.risk_score == 100
    assert result.threat_level == ThreatLevel.CRITICAL


def test_phishing_scenario_tactics_and_recommendations(detector):
    result = detector.analyze(PHISHING_SAMPLE)

    assert [t.name for t in result.phishing_tactics] == [
        "Time Pressure", "Authority Impersonation", "Credential Theft", "Social Engineering"
    ]
    assert len(result.recommendations) == 6
    assert result.recommendations[-1] == REC_REPORT


def test_safe_scenario(detector):
    result = detector.analyze(SAFE_SAMPLE)

    assert result.suspicious_elements == []
    assert result.url_analysis == []
    assert result.detected_threats == []
    assert result.phishing_tactics == []
    assert result.risk_score == 0
    assert result.threat_level == ThreatLevel.SAFE
    assert result.recommendations == [REC_APPEARS_SAFE]


def test_malformed_url_scenario(detector):
    result = detector.analyze("Please look at http://[garbled before Friday")

    assert len(result.url_analysis) == 1
    finding = result.url_analysis[0]
    assert finding.status == UrlStatus.MALICIOUS
    assert finding.risk_score == 30
    assert finding.issues == ["Malformed URL structure"]


@pytest.mark.parametrize("text", ["", "   ", "\n\t  \r\n", None])
def test_empty_input_raises(detector, text):
    with pytest.raises(EmptyInputError):
        detector.analyze(text)


def test_empty_input_error_is_value_error():
    assert issubclass(EmptyInputError, ValueError)


def test_word_boundaries(detector):
    partial = detector.analyze("this is urgently needed")
    assert not any(e.text.lower() == "urgent" for e in partial.suspicious_elements)

    whole = detector.analyze("this is urgent")
    assert [e.text for e in whole.suspicious_elements] == ["urgent"]


@pytest.mark.parametrize("text", VARIED_INPUTS)
def test_offsets_map_back_to_original_text(detector, text):
    result = detector.analyze(text)
    for element in result.suspicious_elements:
        assert text[element.start_index:element.end_index] == element.text


@pytest.mark.parametrize("text", VARIED_INPUTS)
def test_score_bounds_and_level(detector, text):
    result = detector.analyze(text)
    assert 0 <= result.risk_score <= 100
    assert result.threat_level == threat_level_for_score(result.risk_score)
    assert 1 <= len(result.recommendations) <= 6


@pytest.mark.parametrize("text", VARIED_INPUTS)
def test_analysis_is_idempotent(detector, text):
    first = detector.analyze(text).model_dump(mode="json", by_alias=True)
    second = detector.analyze(text).model_dump(mode="json", by_alias=True)
    first["metadata"].pop("analysisTimeMs")
    second["metadata"].pop("analysisTimeMs")
    assert first == second


def test_separate_detectors_agree():
    a = PhishingDetector().analyze(PHISHING_SAMPLE)
    b = PhishingDetector().analyze(PHISHING_SAMPLE)
    assert a.risk_score == b.risk_score
    assert a.suspicious_elements == b.suspicious_elements


def test_original_case_is_preserved(detector):
    result = detector.analyze("Your PAYPAL and PayPal accounts")
    texts = [e.text for e in result.suspicious_elements]
    assert texts == ["PAYPAL", "PayPal"]

    summary = result.detected_threats[0]
    assert summary.type == "Brand Impersonation"
    assert summary.count == 2
    assert summary.keywords == ["PAYPAL", "PayPal"]


def test_cross_category_overlap_counts_twice(detector):
    # "security" belongs to both "social security" and "security breach"
    result = detector.analyze("a social security breach")
    types = sorted(e.type for e in result.suspicious_elements)
    assert types == ["Credential Harvesting", "Threat Language"]
    assert result.risk_score == 28 + 30


def test_repeated_keyword_is_counted_per_occurrence(detector):
    result = detector.analyze("urgent, urgent and urgent please")
    assert len(result.suspicious_elements) == 3
    assert result.detected_threats[0].count == 3
    assert result.detected_threats[0].keywords == ["urgent"]
    assert result.risk_score == 75


def test_metadata(detector):
    result = detector.analyze(SAFE_SAMPLE)
    assert result.metadata.analysis_time_ms >= 0
    assert result.metadata.version
    assert result.metadata.engine_name


def test_engine_name_and_version_overrides():
    custom = PhishingDetector(engine_name="Inbox Screener", version="9.1").analyze(SAFE_SAMPLE)
    assert custom.metadata.engine_name == "Inbox Screener"
    assert custom.metadata.version == "9.1"

    default = PhishingDetector(engine_name=None, version=None).analyze(SAFE_SAMPLE)
    assert default.metadata.engine_name == settings.ENGINE_NAME
    assert default.metadata.version == settings.ENGINE_VERSION


def test_wire_format_uses_camel_case(detector):
    payload = detector.analyze(PHISHING_SAMPLE).model_dump(mode="json", by_alias=True)
    assert set(payload) == {
        "riskScore", "threatLevel", "detectedThreats", "suspiciousElements",
        "urlAnalysis", "phishingTactics", "recommendations", "metadata"
    }
    assert payload["threatLevel"] == "Critical"
    assert "startIndex" in payload["suspiciousElements"][0]
    assert payload["urlAnalysis"][0]["status"] == "malicious"


def test_module_level_analyze():
    assert analyze(SAFE_SAMPLE).risk_score == 0
