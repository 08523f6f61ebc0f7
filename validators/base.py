"""
Rule primitives shared by every validator module
"""

import re
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable, Iterator, List, Optional, Tuple

from models.invoice import InvoiceData
from models.validation import Severity, ValidationIssue


# Real-world rounding slack for "equal enough" money comparisons (₹1)
MONEY_TOLERANCE = Decimal("1")

VALID_GST_RATES = tuple(Decimal(r) for r in ("0", "0.25", "3", "5", "12", "18", "28"))

VALID_STATE_CODES = frozenset(
    [f"{code:02d}" for code in range(1, 39)] + ["97"]
)

GSTIN_PATTERN = re.compile(r'^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[0-9A-Z]{1}Z[0-9A-Z]{1}$')


def format_rate(rate: Decimal) -> str:
    """18.00 -> '18', 0.25 -> '0.25'"""
    normalized = rate.normalize()
    if normalized == normalized.to_integral():
        return str(normalized.quantize(Decimal("1")))
    return format(normalized, "f")


def format_money(value: Decimal) -> str:
    return f"₹{value:,.2f}"


class Rule(ABC):
    """
    A single stateless compliance rule

    Subclasses set the class attributes and implement evaluate(). A rule
    never mutates the invoice it inspects.
    """

    rule_id: str = ""
    name: str = ""
    categories: Tuple[str, ...] = ()
    gst_law_ref: Optional[str] = None

    @abstractmethod
    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        """Return zero or more issues for the invoice"""

    @property
    def category(self) -> str:
        return self.categories[0]

    def issue(
        self,
        issue_id: str,
        title: str,
        description: str,
        how_to_fix: str,
        impact: str,
        severity: Severity = Severity.CRITICAL,
        category: Optional[str] = None,
        gst_law_context: Optional[str] = None,
        **details,
    ) -> ValidationIssue:
        """Build an issue stamped with this rule's id, category and citation"""
        return ValidationIssue(
            id=issue_id,
            rule_id=self.rule_id,
            severity=severity,
            category=category or self.category,
            title=title,
            description=description,
            how_to_fix=how_to_fix,
            impact=impact,
            gst_law_context=gst_law_context or self.gst_law_ref,
            **details,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.rule_id}>"


class RuleSet:
    """Immutable, ordered collection of rules assembled once"""

    def __init__(self, rules: Iterable[Rule]):
        self._rules: Tuple[Rule, ...] = tuple(rules)

        ids = [rule.rule_id for rule in self._rules]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate rule ids in rule set: {ids}")

        categories: List[str] = []
        law_refs = {}
        for rule in self._rules:
            for category in rule.categories:
                if category not in law_refs:
                    categories.append(category)
                    law_refs[category] = rule.gst_law_ref
        self._categories: Tuple[str, ...] = tuple(categories)
        self._law_refs = law_refs

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    @property
    def categories(self) -> Tuple[str, ...]:
        return self._categories

    def law_ref_for(self, category: str) -> Optional[str]:
        return self._law_refs.get(category)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)
