import logging
from datetime import datetime
from typing import Dict, List

from fpdf import FPDF
from fpdf.enums import XPos, YPos

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 500
MAX_KEYWORDS = 5

LEVEL_COLORS = {
    'Critical': (220, 38, 38),
    'HighRisk': (234, 88, 12),
    'MediumRisk': (202, 138, 4),
    'LowRisk': (37, 99, 235),
    'Safe': (22, 163, 74),
}
LEVEL_LABELS = {
    'Critical': 'CRITICAL',
    'HighRisk': 'HIGH RISK',
    'MediumRisk': 'MEDIUM RISK',
    'LowRisk': 'LOW RISK',
    'Safe': 'SAFE',
}
STATUS_COLORS = {
    'malicious': (220, 38, 38),
    'suspicious': (234, 88, 12),
    'questionable': (202, 138, 4),
    'safe': (22, 163, 74),
}
BRAND_COLOR = (102, 126, 234)


def latin1(value) -> str:
    """Core PDF fonts only cover Latin-1"""
    return str(value).encode('latin-1', 'replace').decode('latin-1')


class ReportPDF(FPDF):
    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"PhishLens analysis report - page {self.page_no()}/{{nb}}", align="C")

    def section_title(self, title: str):
        self.ensure_space(20)
        self.ln(4)
        self.set_font("Helvetica", "B", 13)
        self.set_text_color(*BRAND_COLOR)
        self.cell(0, 8, latin1(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_text_color(0, 0, 0)

    def line_text(self, text: str, size: int = 10, style: str = "", height: float = 5):
        self.set_font("Helvetica", style, size)
        self.multi_cell(0, height, latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def ensure_space(self, height: float):
        if self.get_y() + height > self.h - self.b_margin:
            self.add_page()


class ReportService:
    """Renders a stored analysis record as a paginated PDF"""

    def generate_report(self, record: Dict, user: Dict) -> bytes:
        """
        Build the report document

        Args:
            record: stored analysis in its camelCase wire form
            user: owner details with 'name' and 'email'

        Returns:
            PDF file content
        """
        pdf = ReportPDF(format="A4")
        pdf.set_auto_page_break(auto=True, margin=20)
        pdf.set_margins(20, 20, 20)
        pdf.add_page()

        self._add_header(pdf, record, user)
        self._add_threat_banner(pdf, record)
        self._add_risk_bar(pdf, record)

        if record.get('detectedThreats'):
            self._add_detected_threats(pdf, record['detectedThreats'])
        if record.get('urlAnalysis'):
            self._add_url_analysis(pdf, record['urlAnalysis'])
        if record.get('phishingTactics'):
            self._add_tactics(pdf, record['phishingTactics'])

        self._add_analyzed_content(pdf, record.get('inputText') or '')

        if record.get('recommendations'):
            self._add_recommendations(pdf, record['recommendations'])

        content = bytes(pdf.output())
        logger.info(f"Rendered report for analysis {record.get('id')} ({len(content)} bytes)")
        return content

    def _add_header(self, pdf: ReportPDF, record: Dict, user: Dict):
        pdf.set_font("Helvetica", "B", 24)
        pdf.set_text_color(*BRAND_COLOR)
        pdf.cell(0, 12, "PhishLens", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        pdf.set_font("Helvetica", "", 12)
        pdf.set_text_color(100, 100, 100)
        pdf.cell(0, 7, "Phishing Risk Analysis Report", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        pdf.set_font("Helvetica", "", 9)
        pdf.set_text_color(140, 140, 140)
        created = record.get('createdAt') or datetime.utcnow().isoformat()
        lines = [
            f"Generated: {datetime.utcnow().strftime('%Y-%m-%d %H:%M UTC')}",
            f"Analyzed: {created}",
            f"Report ID: {record.get('id', 'N/A')}",
            f"Analyst: {user.get('name', '')} <{user.get('email', '')}>",
        ]
        metadata = record.get('metadata') or {}
        if metadata:
            lines.append(
                f"Engine: {metadata.get('engineName', '')} v{metadata.get('version', '')}"
                f" ({metadata.get('analysisTimeMs', 0)} ms)"
            )
        for line in lines:
            pdf.cell(0, 5, latin1(line), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_text_color(0, 0, 0)
        pdf.ln(4)

    def _add_threat_banner(self, pdf: ReportPDF, record: Dict):
        level = record.get('threatLevel', 'Safe')
        pdf.set_fill_color(*LEVEL_COLORS.get(level, LEVEL_COLORS['Safe']))
        pdf.set_text_color(255, 255, 255)
        pdf.set_font("Helvetica", "B", 16)
        label = LEVEL_LABELS.get(level, level)
        pdf.cell(0, 14, latin1(f"Threat level: {label}"), align="C", fill=True,
                 new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_text_color(0, 0, 0)
        pdf.ln(3)

    def _add_risk_bar(self, pdf: ReportPDF, record: Dict):
        score = max(0, min(int(record.get('riskScore', 0)), 100))
        level = record.get('threatLevel', 'Safe')

        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(0, 7, f"Risk score: {score}/100", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

        width = pdf.w - pdf.l_margin - pdf.r_margin
        y = pdf.get_y()
        pdf.set_fill_color(229, 231, 235)
        pdf.rect(pdf.l_margin, y, width, 5, style="F")
        if score:
            pdf.set_fill_color(*LEVEL_COLORS.get(level, LEVEL_COLORS['Safe']))
            pdf.rect(pdf.l_margin, y, width * score / 100, 5, style="F")
        pdf.set_y(y + 8)

    def _add_detected_threats(self, pdf: ReportPDF, threats: List[Dict]):
        pdf.section_title("Detected Threats")
        for threat in threats:
            pdf.ensure_space(22)
            pdf.line_text(threat.get('type', ''), size=11, style="B")
            pdf.line_text(
                f"Severity: {str(threat.get('severity', '')).upper()}   "
                f"Occurrences: {threat.get('count', 0)}",
                size=9
            )
            keywords = threat.get('keywords') or []
            if keywords:
                pdf.line_text("Keywords: " + ", ".join(keywords[:MAX_KEYWORDS]), size=9)
            if threat.get('description'):
                pdf.line_text(threat['description'], size=9, style="I")
            pdf.ln(2)

    def _add_url_analysis(self, pdf: ReportPDF, findings: List[Dict]):
        pdf.section_title("URL Analysis")
        for finding in findings:
            pdf.ensure_space(22)
            status = finding.get('status', 'safe')
            pdf.line_text(finding.get('domain', ''), size=11, style="B")
            pdf.set_text_color(*STATUS_COLORS.get(status, (0, 0, 0)))
            pdf.line_text(f"Status: {status.upper()}   Risk: {finding.get('riskScore', 0)}", size=9, style="B")
            pdf.set_text_color(0, 0, 0)
            pdf.line_text(finding.get('url', ''), size=8)
            for issue in finding.get('issues') or []:
                pdf.line_text(f"- {issue}", size=9)
            pdf.ln(2)

    def _add_tactics(self, pdf: ReportPDF, tactics: List[Dict]):
        pdf.section_title("Phishing Tactics")
        for tactic in tactics:
            pdf.ensure_space(16)
            confidence = round(float(tactic.get('confidence', 0)) * 100)
            pdf.line_text(f"{tactic.get('name', '')} ({confidence}% confidence)", size=11, style="B")
            pdf.line_text(tactic.get('description', ''), size=9)
            pdf.ln(2)

    def _add_analyzed_content(self, pdf: ReportPDF, text: str):
        pdf.section_title("Analyzed Content")
        preview = text[:PREVIEW_CHARS]
        if len(text) > PREVIEW_CHARS:
            preview += "..."
        pdf.set_fill_color(243, 244, 246)
        pdf.set_font("Courier", "", 9)
        pdf.multi_cell(0, 5, latin1(preview), fill=True, new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def _add_recommendations(self, pdf: ReportPDF, recommendations: List[str]):
        pdf.section_title("Recommendations")
        for index, recommendation in enumerate(recommendations, start=1):
            pdf.ensure_space(10)
            pdf.line_text(f"{index}. {recommendation}", size=10)
