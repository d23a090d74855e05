from phishlens.core.phishing_detector import EmptyInputError, PhishingDetector, analyze

__all__ = ["EmptyInputError", "PhishingDetector", "analyze"]
