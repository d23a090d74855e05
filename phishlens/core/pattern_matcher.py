from typing import Dict, List
import logging

from phishlens.core.detection_rules import DetectionRules
from phishlens.schemas import MatchedElement

logger = logging.getLogger(__name__)


class PatternMatcher:
    """
    Keyword pattern pass.

    Every category keyword is matched as a whole word, case-insensitively,
    against the original text so offsets map back to the input exactly.
    Each occurrence adds the category weight. The same span may be matched
    by more than one category; those matches are kept independently.
    """

    def __init__(self, rules: DetectionRules):
        self.rules = rules

    def analyze(self, text: str) -> Dict:
        elements: List[MatchedElement] = []
        risk = 0

        for category in self.rules.categories:
            for pattern in category.patterns:
                for match in pattern.finditer(text):
                    risk += category.weight
                    matched = match.group(0)
                    elements.append(MatchedElement(
                        text=matched,
                        start_index=match.start(),
                        end_index=match.end(),
                        type=category.type,
                        risk_level=category.risk_level,
                        explanation=self.rules.explanation_for(category.type, matched),
                        recommendation=self.rules.recommendation_for(category.type)
                    ))

        logger.debug(f"Pattern pass: {len(elements)} matches, risk {risk}")
        return {'elements': elements, 'risk': risk}
