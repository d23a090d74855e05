"""PhishLens - rule-based phishing risk analysis service"""

__version__ = "2.0.0"
