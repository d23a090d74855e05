from typing import Dict, List
import logging

from phishlens.schemas import (
    MatchedElement, ThreatLevel, ThreatSummary, Tactic, UrlFinding, UrlStatus
)

logger = logging.getLogger(__name__)

MAX_RISK_SCORE = 100
MAX_RECOMMENDATIONS = 6

# (threshold, level), evaluated highest first; thresholds are inclusive
THREAT_LEVEL_THRESHOLDS = (
    (80, ThreatLevel.CRITICAL),
    (60, ThreatLevel.HIGH_RISK),
    (40, ThreatLevel.MEDIUM_RISK),
    (20, ThreatLevel.LOW_RISK),
)

# Gate order is emission order
TACTIC_GATES = (
    ('Urgency Manipulation', 'Time Pressure',
     'Creating artificial urgency to bypass critical thinking', 0.85),
    ('Threat Language', 'Fear Tactics',
     'Using threats to intimidate and force compliance', 0.90),
    ('Brand Impersonation', 'Authority Impersonation',
     'Pretending to be from trusted organizations', 0.88),
    ('Credential Harvesting', 'Credential Theft',
     'Attempting to steal login credentials or personal data', 0.92),
    ('Financial Lure', 'Financial Manipulation',
     'Using money as bait to lure victims', 0.80),
)
SOCIAL_ENGINEERING_SCORE = 50
SOCIAL_ENGINEERING = Tactic(
    name='Social Engineering',
    description='Manipulating emotions to bypass logical thinking',
    confidence=0.75
)

REC_DO_NOT_CLICK = 'DO NOT click any links or download attachments from this message'
REC_NO_PERSONAL_INFO = 'DO NOT provide any personal information or credentials'
REC_SUSPICIOUS_URLS = 'Suspicious URLs detected - verify destinations before clicking'
REC_NO_CREDENTIALS = 'Never provide passwords or credentials through email links'
REC_TYPE_URLS = 'Visit websites directly by typing the URL in your browser'
REC_VERIFY_SENDER = 'Verify sender identity through official contact methods'
REC_REPORT = 'Report this message to your IT security team immediately'
REC_ENABLE_2FA = 'Enable two-factor authentication on all accounts'
REC_APPEARS_SAFE = 'While this message appears safe, always verify sender identity'


def clamp_score(total_risk: int) -> int:
    return max(0, min(total_risk, MAX_RISK_SCORE))


def threat_level_for_score(risk_score: int) -> ThreatLevel:
    for threshold, level in THREAT_LEVEL_THRESHOLDS:
        if risk_score >= threshold:
            return level
    return ThreatLevel.SAFE


def summarize_threats(elements: List[MatchedElement]) -> List[ThreatSummary]:
    """Group matches by type; first occurrence seeds description and severity"""
    grouped: Dict[str, Dict] = {}
    for element in elements:
        entry = grouped.get(element.type)
        if entry is None:
            grouped[element.type] = {
                'type': element.type,
                'description': element.explanation,
                'severity': element.risk_level,
                'count': 1,
                'keywords': [element.text]
            }
        else:
            entry['count'] += 1
            if element.text not in entry['keywords']:
                entry['keywords'].append(element.text)

    return [ThreatSummary(**entry) for entry in grouped.values()]


def identify_tactics(risk_score: int, threats: List[ThreatSummary]) -> List[Tactic]:
    present = {t.type for t in threats}
    tactics = [
        Tactic(name=name, description=description, confidence=confidence)
        for threat_type, name, description, confidence in TACTIC_GATES
        if threat_type in present
    ]
    if risk_score > SOCIAL_ENGINEERING_SCORE:
        tactics.append(SOCIAL_ENGINEERING)
    return tactics


def build_recommendations(risk_score: int,
                          threats: List[ThreatSummary],
                          url_findings: List[UrlFinding]) -> List[str]:
    recommendations = []
    present = {t.type for t in threats}

    if risk_score >= 60:
        recommendations.append(REC_DO_NOT_CLICK)
        recommendations.append(REC_NO_PERSONAL_INFO)

    if any(u.status in (UrlStatus.SUSPICIOUS, UrlStatus.MALICIOUS) for u in url_findings):
        recommendations.append(REC_SUSPICIOUS_URLS)

    if 'Credential Harvesting' in present:
        recommendations.append(REC_NO_CREDENTIALS)
        recommendations.append(REC_TYPE_URLS)

    if 'Threat Language' in present:
        recommendations.append(REC_VERIFY_SENDER)

    # Exactly one closing line, chosen by score band
    if risk_score >= 60:
        recommendations.append(REC_REPORT)
    elif risk_score >= 30:
        recommendations.append(REC_ENABLE_2FA)
    else:
        recommendations.append(REC_APPEARS_SAFE)

    return recommendations[:MAX_RECOMMENDATIONS]


class Aggregator:
    """Merges the pass outputs into score, level, summary, tactics and advice"""

    def aggregate(self, pattern_result: Dict, url_result: Dict,
                  linguistic_result: Dict, sentiment_result: Dict) -> Dict:
        total_risk = (
            pattern_result['risk']
            + url_result['risk']
            + linguistic_result['risk']
            + sentiment_result['risk']
        )
        risk_score = clamp_score(total_risk)
        threats = summarize_threats(pattern_result['elements'])

        logger.debug(f"Aggregated risk {total_risk} -> score {risk_score}")
        return {
            'risk_score': risk_score,
            'threat_level': threat_level_for_score(risk_score),
            'detected_threats': threats,
            'suspicious_elements': list(pattern_result['elements']),
            'url_analysis': list(url_result['details']),
            'phishing_tactics': identify_tactics(risk_score, threats),
            'recommendations': build_recommendations(risk_score, threats, url_result['details'])
        }
