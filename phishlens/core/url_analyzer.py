import re
import logging
import ipaddress
from typing import Dict, List, Tuple
from urllib.parse import urlparse

import tldextract

from phishlens.core.detection_rules import DetectionRules
from phishlens.schemas import UrlFinding, UrlStatus

logger = logging.getLogger(__name__)

MALFORMED_URL_RISK = 30
MALFORMED_URL_ISSUE = "Malformed URL structure"
INVALID_DOMAIN = "Invalid URL"

# Offline extractor: the bundled public suffix snapshot keeps results stable
_tld_extractor = tldextract.TLDExtract(suffix_list_urls=())


def url_status_for_score(risk_score: int) -> UrlStatus:
    """Map an accumulated per-URL score to its status"""
    if risk_score > 30:
        return UrlStatus.MALICIOUS
    if risk_score > 15:
        return UrlStatus.SUSPICIOUS
    if risk_score > 0:
        return UrlStatus.QUESTIONABLE
    return UrlStatus.SAFE


class UrlAnalyzer:
    """
    URL heuristic pass.

    Candidates are every http(s)://<non-space>+ run in the text, in order of
    appearance; repeated URLs are analyzed again. Checks are additive and
    the status is derived from the final score only.
    """

    def __init__(self, rules: DetectionRules):
        self.rules = rules
        self.url_pattern = re.compile(r'https?://\S+', re.IGNORECASE)
        self.ipv4_pattern = re.compile(r'\d{1,3}(?:\.\d{1,3}){3}')
        # Characters a host may never contain (controls, space, delimiters)
        self.forbidden_host_chars = re.compile(r'[\x00-\x20#%/:<>?@\[\\\]^|\x7f]')

    def extract_urls(self, text: str) -> List[str]:
        return self.url_pattern.findall(text)

    def analyze(self, text: str) -> Dict:
        details: List[UrlFinding] = []
        risk = 0

        for url in self.extract_urls(text):
            finding = self.analyze_url(url)
            details.append(finding)
            risk += finding.risk_score

        logger.debug(f"URL pass: {len(details)} urls, risk {risk}")
        return {'details': details, 'risk': risk}

    def analyze_url(self, url: str) -> UrlFinding:
        try:
            scheme, host = self._parse(url)
        except ValueError as e:
            logger.debug(f"Malformed URL candidate: {e}")
            return UrlFinding(
                url=url,
                domain=INVALID_DOMAIN,
                status=UrlStatus.MALICIOUS,
                issues=[MALFORMED_URL_ISSUE],
                risk_score=MALFORMED_URL_RISK
            )

        issues = []
        url_risk = 0

        # ===== 1. URL SHORTENERS =====
        if self._is_shortener(host):
            issues.append('Shortened URL - destination unclear')
            url_risk += 15

        # ===== 2. DEEP SUBDOMAIN NESTING =====
        if len(host.split('.')) > 3:
            issues.append('Suspicious subdomain structure')
            url_risk += 18

        # ===== 3. RAW IP HOST =====
        if self.ipv4_pattern.fullmatch(host):
            issues.append('IP address instead of domain name')
            url_risk += 25

        # ===== 4. FREE / LOW-TRUST TLDs =====
        # last label only: "com.ml" is its own public suffix
        if _tld_extractor(host).suffix.rsplit('.', 1)[-1] in self.rules.free_tlds:
            issues.append('Free or suspicious top-level domain')
            url_risk += 20

        # ===== 5. KEYWORD-HYPHEN HOSTS (paypal-secure, bank-verify, ...) =====
        if self.rules.suspicious_host_pattern.search(host):
            issues.append('Suspicious keywords in domain')
            url_risk += 22

        # ===== 6. PLAIN HTTP =====
        if scheme == 'http':
            issues.append('Insecure HTTP connection')
            url_risk += 10

        # ===== 7. HYPHEN STUFFING =====
        if host.count('-') > 2:
            issues.append('Excessive hyphens in domain')
            url_risk += 12

        return UrlFinding(
            url=url,
            domain=host,
            status=url_status_for_score(url_risk),
            issues=issues,
            risk_score=url_risk
        )

    def _parse(self, url: str) -> Tuple[str, str]:
        """Return (scheme, host); raise ValueError when the URL can't be parsed"""
        parsed = urlparse(url)
        host = parsed.hostname
        # Accessing the port validates it
        parsed.port
        if not host:
            raise ValueError(f"missing host in {url!r}")
        if self.forbidden_host_chars.search(host) and not self._is_ipv6(host):
            raise ValueError(f"invalid host {host!r}")
        return parsed.scheme.lower(), host

    def _is_shortener(self, host: str) -> bool:
        return any(host == s or host.endswith('.' + s) for s in self.rules.url_shorteners)

    @staticmethod
    def _is_ipv6(host: str) -> bool:
        try:
            ipaddress.IPv6Address(host)
        except ValueError:
            return False
        return True
