"""
Reporter Agent
Builds the structured report once and derives every rendering from it
"""

import json
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.invoice import WIRE_CONFIG, WireDecimal
from models.validation import (
    IssueValue,
    Severity,
    ValidationCheck,
    ValidationIssue,
    ValidationResult,
)


DISCLAIMER = (
    "This validation is based on user-entered data. Verify with a qualified CA "
    "before GST filing. Not a substitute for professional tax advice. "
    "Maximum liability: ₹99."
)


class ReportSummary(BaseModel):
    model_config = WIRE_CONFIG

    check_id: str
    health_score: int
    risk_level: str
    total_issues: int
    critical_count: int
    warning_count: int
    info_count: int
    passed_count: int
    processing_time_ms: float
    verdict: str


class ReportItem(BaseModel):
    model_config = WIRE_CONFIG

    title: str
    description: str
    severity: Optional[str] = None
    location: Optional[str] = None
    expected: Optional[IssueValue] = None
    found: Optional[IssueValue] = None
    difference: Optional[WireDecimal] = None
    how_to_fix: Optional[str] = None
    impact: Optional[str] = None
    gst_law_context: Optional[str] = None


class ReportSection(BaseModel):
    model_config = WIRE_CONFIG

    title: str
    type: str
    icon: str
    items: List[ReportItem] = Field(default_factory=list)


class StructuredReport(BaseModel):
    model_config = WIRE_CONFIG

    summary: ReportSummary
    sections: List[ReportSection]
    disclaimer: str = DISCLAIMER
    generated_at: datetime


def get_verdict(health_score: int) -> str:
    """Human-readable verdict from score bands"""
    if health_score >= 95:
        return "Excellent! Invoice is GST-compliant and ready for submission."
    if health_score >= 85:
        return "Good overall, but fix the warnings before filing."
    if health_score >= 70:
        return "Several issues found. Fix critical issues before submitting."
    if health_score >= 50:
        return "Significant problems detected. Invoice needs major corrections."
    return "Invoice has critical compliance failures. Do NOT submit without fixing all issues."


def issue_to_report_item(issue: ValidationIssue) -> ReportItem:
    return ReportItem(
        title=issue.title,
        description=issue.description,
        severity=issue.severity.value,
        location=issue.location,
        expected=issue.expected,
        found=issue.found,
        difference=issue.difference,
        how_to_fix=issue.how_to_fix,
        impact=issue.impact,
        gst_law_context=issue.gst_law_context,
    )


def check_to_report_item(check: ValidationCheck) -> ReportItem:
    return ReportItem(title=check.title, description=check.description)


# (severity, section type, heading, icon) in report order
ISSUE_SECTIONS = (
    (Severity.CRITICAL, "critical", "Critical Issues", "🔴"),
    (Severity.WARNING, "warning", "Warnings", "🟡"),
    (Severity.INFO, "info", "Notes", "🔵"),
)


class ReporterAgent:
    """
    Reporter Agent

    Generates reports in various formats, all from build_report():
    - Structured (UI / PDF)
    - Plain text (email / PDF)
    - Console (colored text)
    - JSON (machine readable)
    """

    def __init__(self, config: dict = None):
        self.config = config or {}

        # ANSI color codes
        self.colors = {
            'green': '\033[92m',
            'red': '\033[91m',
            'yellow': '\033[93m',
            'blue': '\033[94m',
            'gray': '\033[90m',
            'bold': '\033[1m',
            'reset': '\033[0m'
        }

    def build_report(self, result: ValidationResult) -> StructuredReport:
        """Build structured report from validation result"""

        sections = []
        counts = {}
        for severity, section_type, heading, icon in ISSUE_SECTIONS:
            issues = result.issues_by_severity(severity)
            counts[severity] = len(issues)
            if issues:
                sections.append(ReportSection(
                    title=f"{heading} ({len(issues)})",
                    type=section_type,
                    icon=icon,
                    items=[issue_to_report_item(i) for i in issues],
                ))

        sections.append(ReportSection(
            title=f"Checks Passed ({len(result.checks_passed)})",
            type="passed",
            icon="✅",
            items=[check_to_report_item(c) for c in result.checks_passed],
        ))

        return StructuredReport(
            summary=ReportSummary(
                check_id=result.check_id,
                health_score=result.health_score,
                risk_level=result.risk_level.value,
                total_issues=len(result.issues_found),
                critical_count=counts[Severity.CRITICAL],
                warning_count=counts[Severity.WARNING],
                info_count=counts[Severity.INFO],
                passed_count=len(result.checks_passed),
                processing_time_ms=result.processing_time_ms,
                verdict=get_verdict(result.health_score),
            ),
            sections=sections,
            disclaimer=DISCLAIMER,
            generated_at=result.timestamp,
        )

    def build_plain_text_report(self, result: ValidationResult) -> str:
        """Plain text report for email / PDF rendering"""
        return "\n".join(self._render_lines(self.build_report(result), colored=False))

    def generate_console_report(self, result: ValidationResult) -> str:
        """Detailed console report with colors"""
        return "\n".join(self._render_lines(self.build_report(result), colored=True))

    def generate_json_report(self, result: ValidationResult) -> str:
        """JSON report: the structured report plus the raw result"""
        report = self.build_report(result)
        return json.dumps(
            {
                'report': report.model_dump(mode="json", by_alias=True),
                'result': result.to_wire(),
            },
            indent=2,
            ensure_ascii=False,
        )

    def _paint(self, value: str, color: str, colored: bool) -> str:
        if not colored:
            return value
        return f"{self.colors[color]}{value}{self.colors['reset']}"

    def _render_lines(self, report: StructuredReport, colored: bool) -> List[str]:
        summary = report.summary
        risk_color = {'low': 'green', 'medium': 'yellow', 'high': 'red'}.get(summary.risk_level, 'gray')

        lines = []
        lines.append("═══ GST INVOICE VALIDATION REPORT ═══")
        lines.append(f"Check ID: {summary.check_id}")
        lines.append(
            "Health Score: "
            + self._paint(f"{summary.health_score}/100 ({summary.risk_level} risk)", risk_color, colored)
        )
        lines.append(f"Verdict: {summary.verdict}")
        lines.append(f"Processed in: {summary.processing_time_ms:.0f}ms")
        lines.append("")

        section_colors = {'critical': 'red', 'warning': 'yellow', 'info': 'blue', 'passed': 'green'}
        for section in report.sections:
            heading = f"─── {section.icon} {section.title} ───"
            lines.append(self._paint(heading, section_colors.get(section.type, 'bold'), colored))
            for i, item in enumerate(section.items, 1):
                lines.append(f"  {i}. {item.title}")
                if item.description:
                    lines.append(f"     {item.description}")
                if item.location:
                    lines.append(f"     Where: {item.location}")
                if item.expected is not None or item.found is not None:
                    expected = item.expected.display() if item.expected is not None else "-"
                    found = item.found.display() if item.found is not None else "-"
                    lines.append(f"     Expected: {expected} | Found: {found}")
                if item.how_to_fix:
                    lines.append(f"     Fix: {item.how_to_fix}")
                if item.gst_law_context:
                    lines.append(self._paint(f"     Law: {item.gst_law_context}", 'gray', colored))
            lines.append("")

        lines.append(report.disclaimer)
        return lines
