"""
Score Engine
Turns a list of issues into a 0-100 health score and a risk tier.
Weights and thresholds are passed in explicitly so they can be tuned
without touching rule logic.
"""

from typing import Any, Dict, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from models.validation import RiskLevel, ScoreBreakdown, Severity, ValidationIssue


class ScoreConfig(BaseModel):
    """Per-severity deductions and risk thresholds"""
    model_config = ConfigDict(frozen=True)

    critical_weight: int = Field(default=15, ge=0)
    warning_weight: int = Field(default=5, ge=0)
    info_weight: int = Field(default=2, ge=0)
    max_score: int = Field(default=100, ge=1, le=100)
    high_risk_below: int = 70
    medium_risk_below: int = 90

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> "ScoreConfig":
        """Build from the `scoring` and `risk` sections of the app config"""
        config = config or {}
        values = dict(config.get('scoring') or {})
        values.update(config.get('risk') or {})
        return cls(**values)

    def weight_for(self, severity: Severity) -> int:
        return {
            Severity.CRITICAL: self.critical_weight,
            Severity.WARNING: self.warning_weight,
            Severity.INFO: self.info_weight,
        }[severity]


DEFAULT_SCORE_CONFIG = ScoreConfig()


class ScoreResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    health_score: int
    risk_level: RiskLevel
    breakdown: ScoreBreakdown


def calculate_health_score(
    issues: Sequence[ValidationIssue],
    config: ScoreConfig = DEFAULT_SCORE_CONFIG,
) -> int:
    """Start at max_score, deduct per issue, clamp to [0, max_score]"""
    score = config.max_score
    for issue in issues:
        score -= config.weight_for(issue.severity)
    return max(0, min(config.max_score, score))


def determine_risk_level(
    health_score: int,
    issues: Sequence[ValidationIssue],
    config: ScoreConfig = DEFAULT_SCORE_CONFIG,
) -> RiskLevel:
    """Any critical issue is high risk regardless of score"""
    has_critical = any(i.severity == Severity.CRITICAL for i in issues)

    if has_critical or health_score < config.high_risk_below:
        return RiskLevel.HIGH
    if health_score < config.medium_risk_below:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def get_score_breakdown(
    issues: Sequence[ValidationIssue],
    config: ScoreConfig = DEFAULT_SCORE_CONFIG,
) -> ScoreBreakdown:
    critical = sum(1 for i in issues if i.severity == Severity.CRITICAL)
    warnings = sum(1 for i in issues if i.severity == Severity.WARNING)
    info = sum(1 for i in issues if i.severity == Severity.INFO)

    critical_deduction = critical * config.critical_weight
    warning_deduction = warnings * config.warning_weight
    info_deduction = info * config.info_weight

    return ScoreBreakdown(
        total_issues=len(issues),
        critical_count=critical,
        warning_count=warnings,
        info_count=info,
        critical_deduction=critical_deduction,
        warning_deduction=warning_deduction,
        info_deduction=info_deduction,
        total_deduction=critical_deduction + warning_deduction + info_deduction,
    )


def score(
    issues: Sequence[ValidationIssue],
    config: Optional[ScoreConfig] = None,
) -> ScoreResult:
    """Score a list of issues"""
    config = config or DEFAULT_SCORE_CONFIG
    health_score = calculate_health_score(issues, config)
    return ScoreResult(
        health_score=health_score,
        risk_level=determine_risk_level(health_score, issues, config),
        breakdown=get_score_breakdown(issues, config),
    )
