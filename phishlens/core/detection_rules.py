import json
import re
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, NamedTuple, Optional, Tuple

from nltk.stem import PorterStemmer

LEXICON_PATH = Path(__file__).resolve().parent.parent / "data" / "polarity_lexicon.json"


# ============================================================================
# CATEGORY TABLE
# ============================================================================

DEFAULT_CATEGORIES = {
    'urgency': {
        'keywords': [
            'urgent', 'immediate', 'expires today', 'act now', 'limited time',
            'hurry', 'deadline', 'expires soon', 'time sensitive', 'last chance',
            "don't miss out", 'only today', 'final notice', 'respond immediately'
        ],
        'risk_level': 'high',
        'type': 'Urgency Manipulation',
        'weight': 25
    },
    'threats': {
        'keywords': [
            'suspend', 'terminate', 'close account', 'legal action', 'penalty',
            'frozen', 'locked', 'deactivated', 'blocked', 'restricted',
            'unauthorized access', 'security breach', 'compromised'
        ],
        'risk_level': 'high',
        'type': 'Threat Language',
        'weight': 30
    },
    'financial': {
        'keywords': [
            'refund', 'tax return', 'prize', 'lottery', 'inheritance',
            'wire transfer', 'bitcoin', 'cryptocurrency', 'payment required',
            'claim your money', 'cash prize', 'million dollars', 'unclaimed funds'
        ],
        'risk_level': 'medium',
        'type': 'Financial Lure',
        'weight': 20
    },
    'credentials': {
        'keywords': [
            'verify account', 'verify your account', 'update password',
            'confirm identity', 'login credentials', 'security code',
            'validate account', 'verify your identity', 'confirm your account',
            'update billing', 'payment information', 'credit card', 'social security'
        ],
        'risk_level': 'high',
        'type': 'Credential Harvesting',
        'weight': 28
    },
    'generic': {
        'keywords': [
            'click here', 'download now', 'free', 'congratulations',
            'winner', 'selected', "you've been chosen", 'exclusive offer',
            'limited offer', 'special promotion', 'act fast'
        ],
        'risk_level': 'medium',
        'type': 'Generic Phishing',
        'weight': 15
    },
    'impersonation': {
        'keywords': [
            'paypal', 'amazon', 'microsoft', 'apple', 'google', 'facebook',
            'bank', 'irs', 'fedex', 'ups', 'dhl', 'netflix', 'spotify',
            'government', 'tax office', 'customer support'
        ],
        'risk_level': 'high',
        'type': 'Brand Impersonation',
        'weight': 22
    }
}

# {keyword} is replaced with the matched text as it appears in the input
EXPLANATION_TEMPLATES = {
    'Urgency Manipulation': 'The phrase "{keyword}" creates artificial time pressure, preventing critical thinking about the request.',
    'Threat Language': '"{keyword}" is threatening language used to intimidate recipients into complying without verification.',
    'Financial Lure': '"{keyword}" is a common financial incentive used to entice victims with promises of money or rewards.',
    'Credential Harvesting': '"{keyword}" is typically used to trick users into providing login credentials or personal information.',
    'Generic Phishing': '"{keyword}" is a common phrase used in phishing attempts to encourage immediate action.',
    'Brand Impersonation': '"{keyword}" may indicate an attempt to impersonate a trusted brand or organization.'
}
DEFAULT_EXPLANATION = 'This phrase is commonly associated with phishing attempts.'

RECOMMENDATION_TEMPLATES = {
    'Urgency Manipulation': 'Take time to verify urgent requests through official channels.',
    'Threat Language': 'Legitimate organizations rarely use threatening language.',
    'Financial Lure': 'Be skeptical of unexpected financial offers and verify through official sources.',
    'Credential Harvesting': 'Never provide credentials through email links. Visit websites directly.',
    'Generic Phishing': 'Verify sender and content through alternative communication methods.',
    'Brand Impersonation': 'Contact the organization directly using official contact information.'
}
DEFAULT_RECOMMENDATION = 'Exercise caution and verify the authenticity of this communication.'


# ============================================================================
# URL HEURISTIC TABLES
# ============================================================================

URL_SHORTENERS = ('bit.ly', 'tinyurl.com', 't.co', 'goo.gl', 'ow.ly')
FREE_TLDS = ('tk', 'ml', 'ga', 'cf', 'gq')
SUSPICIOUS_HOST_KEYWORDS = ('secure', 'verify', 'account', 'login', 'update')


def compile_keyword(keyword: str) -> re.Pattern:
    """Whole-word, case-insensitive pattern for a literal keyword"""
    return re.compile(r'\b' + re.escape(keyword) + r'\b', re.IGNORECASE)


class Category(NamedTuple):
    """One named keyword group sharing a weight and a label"""
    key: str
    keywords: Tuple[str, ...]
    risk_level: str
    type: str
    weight: int
    patterns: Tuple[re.Pattern, ...]


def build_category(key: str, definition: Dict) -> Category:
    weight = int(definition['weight'])
    if weight <= 0:
        raise ValueError(f"Category {key!r} must have a positive weight")
    keywords = tuple(definition['keywords'])
    return Category(
        key=key,
        keywords=keywords,
        risk_level=definition['risk_level'],
        type=definition['type'],
        weight=weight,
        patterns=tuple(compile_keyword(k) for k in keywords)
    )


class DetectionRules:
    """
    Read-only configuration shared by every analysis call.

    Holds the category table with precompiled keyword patterns, the
    explanation/recommendation templates, the URL heuristic tables and the
    stemmed polarity lexicon. Build it once and pass it to the detector.
    """

    def __init__(self,
                 categories: Optional[Dict[str, Dict]] = None,
                 explanations: Optional[Dict[str, str]] = None,
                 recommendations: Optional[Dict[str, str]] = None,
                 lexicon: Optional[Dict[str, float]] = None):
        categories = categories if categories is not None else DEFAULT_CATEGORIES

        self.categories: Tuple[Category, ...] = tuple(
            build_category(key, definition) for key, definition in categories.items()
        )
        self.explanations: Mapping[str, str] = MappingProxyType(
            dict(explanations if explanations is not None else EXPLANATION_TEMPLATES)
        )
        self.recommendations: Mapping[str, str] = MappingProxyType(
            dict(recommendations if recommendations is not None else RECOMMENDATION_TEMPLATES)
        )

        self.url_shorteners = URL_SHORTENERS
        self.free_tlds = FREE_TLDS
        self.suspicious_host_pattern = re.compile(
            r'-(?:' + '|'.join(SUSPICIOUS_HOST_KEYWORDS) + r')', re.IGNORECASE
        )

        self.stemmer = PorterStemmer()
        raw_lexicon = lexicon if lexicon is not None else load_polarity_lexicon()
        self.polarity: Mapping[str, float] = MappingProxyType(self._stem_lexicon(raw_lexicon))

    def explanation_for(self, threat_type: str, keyword: str) -> str:
        template = self.explanations.get(threat_type)
        if template is None:
            return DEFAULT_EXPLANATION
        return template.format(keyword=keyword)

    def recommendation_for(self, threat_type: str) -> str:
        return self.recommendations.get(threat_type, DEFAULT_RECOMMENDATION)

    def _stem_lexicon(self, lexicon: Dict[str, float]) -> Dict[str, float]:
        stemmed = {}
        for word, score in lexicon.items():
            stemmed[self.stemmer.stem(word.lower())] = float(score)
        return stemmed


def load_polarity_lexicon(path: Path = LEXICON_PATH) -> Dict[str, float]:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


@lru_cache(maxsize=1)
def get_detection_rules() -> DetectionRules:
    """Default rules, built on first use and reused afterwards"""
    return DetectionRules()
