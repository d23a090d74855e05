"""
Text-level signal passes.

Neither pass emits findings: each returns a bare risk contribution.
"""
import re
import logging
from typing import Dict, List

from nltk.tokenize import RegexpTokenizer

from phishlens.core.detection_rules import DetectionRules

logger = logging.getLogger(__name__)

word_tokenizer = RegexpTokenizer(r'\w+')


class LinguisticAnalyzer:
    """Capitalisation, vocabulary richness and punctuation bursts"""

    CAPS_RATIO_THRESHOLD = 0.3
    CAPS_RISK = 15
    MIN_CAPS_SENTENCE_LENGTH = 5

    RICHNESS_THRESHOLD = 0.3
    RICHNESS_MIN_WORDS = 20
    RICHNESS_RISK = 10

    PUNCTUATION_BURST_LIMIT = 2
    PUNCTUATION_RISK = 8

    def __init__(self):
        self.sentence_splitter = re.compile(r'[.!?]+')
        self.punctuation_burst = re.compile(r'[!?]{2,}')

    def analyze(self, text: str) -> Dict:
        risk = 0

        if self.caps_ratio(text) > self.CAPS_RATIO_THRESHOLD:
            risk += self.CAPS_RISK

        words = word_tokenizer.tokenize(text)
        if len(words) > self.RICHNESS_MIN_WORDS and self.vocabulary_richness(words) < self.RICHNESS_THRESHOLD:
            risk += self.RICHNESS_RISK

        if len(self.punctuation_burst.findall(text)) > self.PUNCTUATION_BURST_LIMIT:
            risk += self.PUNCTUATION_RISK

        logger.debug(f"Linguistic pass: risk {risk}")
        return {'risk': risk}

    def caps_ratio(self, text: str) -> float:
        sentences = self.sentence_splitter.split(text)
        shouting = [
            s for s in sentences
            if len(s) > self.MIN_CAPS_SENTENCE_LENGTH and s == s.upper()
        ]
        return len(shouting) / max(len(sentences), 1)

    @staticmethod
    def vocabulary_richness(words: List[str]) -> float:
        unique = {w.lower() for w in words}
        return len(unique) / max(len(words), 1)


class SentimentAnalyzer:
    """
    Lexicon polarity pass.

    Tokens are stemmed and looked up in the rules' polarity table; the
    score is the mean polarity over all tokens, unknown tokens counting 0.
    """

    NEGATIVE_THRESHOLD = -0.5
    NEGATIVE_RISK = 12

    def __init__(self, rules: DetectionRules):
        self.rules = rules

    def polarity(self, text: str) -> float:
        tokens = word_tokenizer.tokenize(text.lower())
        if not tokens:
            return 0.0
        stem = self.rules.stemmer.stem
        total = sum(self.rules.polarity.get(stem(token), 0.0) for token in tokens)
        return total / len(tokens)

    def analyze(self, text: str) -> Dict:
        score = self.polarity(text)
        risk = self.NEGATIVE_RISK if score < self.NEGATIVE_THRESHOLD else 0
        logger.debug(f"Sentiment pass: polarity {score:.3f}, risk {risk}")
        return {'risk': risk}
