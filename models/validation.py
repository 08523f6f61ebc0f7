"""
Validation result models
"""

from pydantic import BaseModel, Field, field_validator
from typing import Annotated, List, Literal, Optional, Union
from decimal import Decimal
from enum import Enum
from datetime import datetime, timezone

from models.invoice import WIRE_CONFIG, WireDecimal


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TextValue(BaseModel):
    """Free-text expected/found value"""
    model_config = WIRE_CONFIG

    kind: Literal["text"] = "text"
    value: str

    def display(self) -> str:
        return self.value


class AmountValue(BaseModel):
    """Money expected/found value"""
    model_config = WIRE_CONFIG

    kind: Literal["amount"] = "amount"
    value: WireDecimal

    def display(self) -> str:
        return f"₹{self.value:,.2f}"


IssueValue = Annotated[Union[TextValue, AmountValue], Field(discriminator="kind")]


def text(value: str) -> TextValue:
    return TextValue(value=value)


def amount(value: Decimal) -> AmountValue:
    return AmountValue(value=value)


class ValidationIssue(BaseModel):
    """A single compliance problem detected by a rule"""
    model_config = WIRE_CONFIG

    id: str
    rule_id: str
    severity: Severity
    category: str
    title: str
    description: str
    location: Optional[str] = None
    expected: Optional[IssueValue] = None
    found: Optional[IssueValue] = None
    difference: Optional[WireDecimal] = None
    how_to_fix: str
    impact: str
    gst_law_context: Optional[str] = None

    @field_validator('expected', 'found', mode='before')
    @classmethod
    def coerce_value(cls, v):
        # Plain values are accepted and tagged: numbers are amounts, strings are text
        if v is None or isinstance(v, (TextValue, AmountValue, dict)):
            return v
        if isinstance(v, bool):
            return TextValue(value=str(v))
        if isinstance(v, (int, float, Decimal)):
            return AmountValue(value=Decimal(str(v)))
        return TextValue(value=str(v))


class ValidationCheck(BaseModel):
    """A category whose checks all succeeded"""
    model_config = WIRE_CONFIG

    id: str
    category: str
    title: str
    description: str


class ScoreBreakdown(BaseModel):
    model_config = WIRE_CONFIG

    total_issues: int = 0
    critical_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    critical_deduction: int = 0
    warning_deduction: int = 0
    info_deduction: int = 0
    total_deduction: int = 0


class RuleRunResult(BaseModel):
    """Raw output of running the rule set over one invoice"""
    model_config = WIRE_CONFIG

    issues: List[ValidationIssue] = Field(default_factory=list)
    passed: List[ValidationCheck] = Field(default_factory=list)


class ValidationResult(BaseModel):
    """Complete validation result"""
    model_config = WIRE_CONFIG

    check_id: str
    invoice_hash: str
    health_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    issues_found: List[ValidationIssue] = Field(default_factory=list)
    checks_passed: List[ValidationCheck] = Field(default_factory=list)
    score_breakdown: ScoreBreakdown
    processing_time_ms: float = 0.0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def issues_by_severity(self, severity: Severity) -> List[ValidationIssue]:
        return [i for i in self.issues_found if i.severity == severity]

    def get_critical_issues(self) -> List[ValidationIssue]:
        """Get all critical issues"""
        return self.issues_by_severity(Severity.CRITICAL)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
