import pytest
from pydantic import ValidationError

from phishlens.core.aggregator import (
    MAX_RECOMMENDATIONS, REC_APPEARS_SAFE, REC_DO_NOT_CLICK, REC_ENABLE_2FA,
    REC_NO_CREDENTIALS, REC_NO_PERSONAL_INFO, REC_REPORT, REC_SUSPICIOUS_URLS,
    REC_TYPE_URLS, REC_VERIFY_SENDER, Aggregator, build_recommendations,
    clamp_score, identify_tactics, summarize_threats, threat_level_for_score
)
from phishlens.core.detection_rules import (
    DEFAULT_EXPLANATION, DEFAULT_RECOMMENDATION, DetectionRules, build_category
)
from phishlens.core.phishing_detector import PhishingDetector
from phishlens.schemas import MatchedElement, ThreatLevel, ThreatSummary, UrlFinding, UrlStatus

ALL_TYPES = [
    'Urgency Manipulation', 'Threat Language', 'Financial Lure',
    'Credential Harvesting', 'Generic Phishing', 'Brand Impersonation'
]


def make_element(text, type_, start=0):
    return MatchedElement(
        text=text,
        start_index=start,
        end_index=start + len(text),
        type=type_,
        risk_level='high',
        explanation=f'explains {text}',
        recommendation='be careful'
    )


def make_threat(type_):
    return ThreatSummary(type=type_, description='', severity='high', count=1, keywords=['x'])


def make_url(status):
    return UrlFinding(url='http://x.example', domain='x.example', status=status, risk_score=0)


@pytest.mark.parametrize("score,level", [
    (0, ThreatLevel.SAFE),
    (19, ThreatLevel.SAFE),
    (20, ThreatLevel.LOW_RISK),
    (39, ThreatLevel.LOW_RISK),
    (40, ThreatLevel.MEDIUM_RISK),
    (59, ThreatLevel.MEDIUM_RISK),
    (60, ThreatLevel.HIGH_RISK),
    (79, ThreatLevel.HIGH_RISK),
    (80, ThreatLevel.CRITICAL),
    (100, ThreatLevel.CRITICAL),
])
def test_threat_level_boundaries(score, level):
    assert threat_level_for_score(score) == level


def test_clamp_score():
    assert clamp_score(-5) == 0
    assert clamp_score(42) == 42
    assert clamp_score(187) == 100


def test_summarize_groups_by_type_in_first_seen_order():
    elements = [
        make_element('PayPal', 'Brand Impersonation', 0),
        make_element('urgent', 'Urgency Manipulation', 10),
        make_element('paypal', 'Brand Impersonation', 20),
        make_element('PayPal', 'Brand Impersonation', 30),
    ]
    threats = summarize_threats(elements)

    assert [t.type for t in threats] == ['Brand Impersonation', 'Urgency Manipulation']
    brand = threats[0]
    assert brand.count == 3
    assert brand.keywords == ['PayPal', 'paypal']
    assert brand.description == 'explains PayPal'
    assert brand.severity == 'high'


def test_summarize_empty():
    assert summarize_threats([]) == []


def test_tactics_follow_gate_order():
    threats = [make_threat(t) for t in reversed(ALL_TYPES)]
    names = [t.name for t in identify_tactics(50, threats)]
    assert names == [
        'Time Pressure', 'Fear Tactics', 'Authority Impersonation',
        'Credential Theft', 'Financial Manipulation'
    ]


def test_social_engineering_needs_score_above_fifty():
    assert identify_tactics(50, []) == []

    tactics = identify_tactics(51, [])
    assert [t.name for t in tactics] == ['Social Engineering']
    assert tactics[0].confidence == 0.75


def test_generic_phishing_has_no_tactic():
    assert identify_tactics(10, [make_threat('Generic Phishing')]) == []


@pytest.mark.parametrize("score,closing", [
    (0, REC_APPEARS_SAFE),
    (29, REC_APPEARS_SAFE),
    (30, REC_ENABLE_2FA),
    (59, REC_ENABLE_2FA),
])
def test_closing_recommendation_bands(score, closing):
    assert build_recommendations(score, [], []) == [closing]


def test_high_score_recommendations():
    assert build_recommendations(60, [], []) == [REC_DO_NOT_CLICK, REC_NO_PERSONAL_INFO, REC_REPORT]


def test_questionable_urls_do_not_trigger_url_advice():
    recs = build_recommendations(10, [], [make_url(UrlStatus.QUESTIONABLE)])
    assert REC_SUSPICIOUS_URLS not in recs

    recs = build_recommendations(10, [], [make_url(UrlStatus.SUSPICIOUS)])
    assert recs == [REC_SUSPICIOUS_URLS, REC_APPEARS_SAFE]


def test_recommendations_are_truncated():
    threats = [make_threat('Credential Harvesting'), make_threat('Threat Language')]
    recs = build_recommendations(90, threats, [make_url(UrlStatus.MALICIOUS)])
    assert len(recs) == MAX_RECOMMENDATIONS
    assert recs == [
        REC_DO_NOT_CLICK, REC_NO_PERSONAL_INFO, REC_SUSPICIOUS_URLS,
        REC_NO_CREDENTIALS, REC_TYPE_URLS, REC_VERIFY_SENDER
    ]


def test_aggregate_sums_and_clamps():
    elements = [make_element('urgent', 'Urgency Manipulation')]
    result = Aggregator().aggregate(
        {'elements': elements, 'risk': 60},
        {'details': [], 'risk': 45},
        {'risk': 15},
        {'risk': 12}
    )
    assert result['risk_score'] == 100
    assert result['threat_level'] == ThreatLevel.CRITICAL
    assert result['suspicious_elements'] == elements
    assert [t.name for t in result['phishing_tactics']] == ['Time Pressure', 'Social Engineering']


def test_rules_are_read_only():
    rules = DetectionRules()
    with pytest.raises(TypeError):
        rules.explanations['Brand Impersonation'] = 'changed'
    with pytest.raises(AttributeError):
        rules.categories[0].weight = 1
    assert isinstance(rules.categories, tuple)


def test_results_are_frozen(detector):
    result = detector.analyze("hello there")
    with pytest.raises(ValidationError):
        result.risk_score = 99


@pytest.mark.parametrize("weight", [0, -3])
def test_category_weight_must_be_positive(weight):
    definition = {'keywords': ['x'], 'risk_level': 'low', 'type': 'X', 'weight': weight}
    with pytest.raises(ValueError):
        build_category('x', definition)
    with pytest.raises(ValueError):
        DetectionRules(categories={'x': definition})


def test_custom_category_uses_fallback_templates():
    rules = DetectionRules(categories={
        'animals': {'keywords': ['zebra'], 'risk_level': 'low', 'type': 'Zebra Talk', 'weight': 5}
    })
    result = PhishingDetector(rules).analyze("look, a zebra")

    assert result.risk_score == 5
    element = result.suspicious_elements[0]
    assert element.explanation == DEFAULT_EXPLANATION
    assert element.recommendation == DEFAULT_RECOMMENDATION
    assert rules.explanation_for('Zebra Talk', 'zebra') == DEFAULT_EXPLANATION


def test_explanation_template_includes_keyword():
    rules = DetectionRules()
    assert 'PayPal' in rules.explanation_for('Brand Impersonation', 'PayPal')
