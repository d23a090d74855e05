import time
import logging
from typing import Optional

from phishlens.config import settings
from phishlens.core.aggregator import Aggregator
from phishlens.core.detection_rules import DetectionRules, get_detection_rules
from phishlens.core.pattern_matcher import PatternMatcher
from phishlens.core.text_signals import LinguisticAnalyzer, SentimentAnalyzer
from phishlens.core.url_analyzer import UrlAnalyzer
from phishlens.schemas import AnalysisMetadata, AnalysisResult

logger = logging.getLogger(__name__)


class EmptyInputError(ValueError):
    """Raised when there is no usable text to analyze"""

    def __init__(self, message: str = "Please provide text to analyze"):
        super().__init__(message)


class PhishingDetector:
    """
    Deterministic phishing risk engine.

    Four independent passes (patterns, URLs, linguistics, sentiment) read
    the same input; the aggregator combines their risk and findings into a
    single AnalysisResult. The rules are read-only and may be shared.
    """

    def __init__(self, rules: Optional[DetectionRules] = None,
                 engine_name: Optional[str] = None, version: Optional[str] = None):
        self.rules = rules or get_detection_rules()
        self.engine_name = engine_name or settings.ENGINE_NAME
        self.version = version or settings.ENGINE_VERSION

        self.pattern_matcher = PatternMatcher(self.rules)
        self.url_analyzer = UrlAnalyzer(self.rules)
        self.linguistic_analyzer = LinguisticAnalyzer()
        self.sentiment_analyzer = SentimentAnalyzer(self.rules)
        self.aggregator = Aggregator()

    def analyze(self, input_text: Optional[str]) -> AnalysisResult:
        """Analyze text and return the full threat assessment"""
        if input_text is None or not input_text.strip():
            raise EmptyInputError()

        start_time = time.perf_counter()

        pattern_result = self.pattern_matcher.analyze(input_text)
        url_result = self.url_analyzer.analyze(input_text)
        linguistic_result = self.linguistic_analyzer.analyze(input_text)
        sentiment_result = self.sentiment_analyzer.analyze(input_text)

        summary = self.aggregator.aggregate(
            pattern_result, url_result, linguistic_result, sentiment_result
        )

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"Analysis complete in {elapsed_ms}ms - "
            f"score {summary['risk_score']} ({summary['threat_level'].value})"
        )

        return AnalysisResult(
            **summary,
            metadata=AnalysisMetadata(
                analysis_time_ms=elapsed_ms,
                version=self.version,
                engine_name=self.engine_name
            )
        )


_default_detector: Optional[PhishingDetector] = None


def get_detector() -> PhishingDetector:
    global _default_detector
    if _default_detector is None:
        _default_detector = PhishingDetector()
    return _default_detector


def analyze(input_text: Optional[str]) -> AnalysisResult:
    """Analyze text with the default detector"""
    return get_detector().analyze(input_text)
