"""
Orchestrator Agent
Coordinates the validation workflow: normalize, run every rule, score,
and assemble the final result.
"""

import logging
import re
import time
import uuid
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from agents.score_engine import ScoreConfig, score
from models.errors import ValidationFailedError
from models.invoice import InvoiceData
from models.validation import (
    RuleRunResult,
    Severity,
    ValidationCheck,
    ValidationIssue,
    ValidationResult,
    text,
)
from utils.cache import ResultCache
from utils.normalizer import generate_invoice_hash, normalize_invoice
from validators.base import Rule, RuleSet
from validators.registry import default_rule_set

logger = logging.getLogger(__name__)

RawInvoice = Union[InvoiceData, Mapping[str, Any]]


def generate_check_id(now: Optional[datetime] = None) -> str:
    """IC-<year>-<9 uppercase alphanumerics>"""
    year = (now or datetime.now(timezone.utc)).year
    return f"IC-{year}-{uuid.uuid4().hex[:9].upper()}"


def category_slug(category: str) -> str:
    return re.sub(r'[^a-z0-9]+', '-', category.lower()).strip('-')


class OrchestratorAgent:
    """
    Orchestrator Agent

    Coordinates validation workflow:
    1. Normalize the invoice
    2. Run every rule in registry order, isolating failures per rule
    3. Record a passed check for every category without issues
    4. Score the issues
    5. Return a complete ValidationResult (or raise, never a partial one)
    """

    def __init__(
        self,
        config: Optional[dict] = None,
        rule_set: Optional[RuleSet] = None,
        score_config: Optional[ScoreConfig] = None,
        cache: Optional[ResultCache] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.config = config or {}
        self.clock = clock
        self.rule_set = rule_set or default_rule_set(clock=clock)
        self.score_config = score_config or ScoreConfig.from_config(self.config)

        cache_config = self.config.get('cache') or {}
        if cache is None and cache_config.get('enabled', False):
            cache = ResultCache(max_entries=int(cache_config.get('max_entries', 1000)))
        self.cache = cache

    def _execute_rule(self, rule: Rule, invoice: InvoiceData) -> List[ValidationIssue]:
        try:
            return list(rule.evaluate(invoice))
        except Exception as e:
            logger.exception(f"Rule {rule.rule_id} failed on invoice {invoice.invoice_number!r}")
            # One error per category: none of them were checked
            return [rule.issue(
                f"rule-error-{rule.rule_id}" if len(rule.categories) == 1
                else f"rule-error-{rule.rule_id}-{category_slug(category)}",
                title=f"Rule Execution Error - {rule.name}",
                description=f"The {rule.name} check could not be completed: {type(e).__name__}",
                severity=Severity.CRITICAL,
                found=text("Check did not run"),
                how_to_fix="Review the invoice data for unusual values and re-run the check",
                impact="This aspect of the invoice was not verified",
                category=category,
            ) for category in rule.categories]

    def _passed_checks(self, issues: List[ValidationIssue]) -> List[ValidationCheck]:
        failed_categories = {issue.category for issue in issues}
        passed = []
        for category in self.rule_set.categories:
            if category in failed_categories:
                continue
            passed.append(ValidationCheck(
                id=f"{category_slug(category)}-passed",
                category=category,
                title=f"{category} ✓",
                description=f"Passed — {self.rule_set.law_ref_for(category) or 'Verified'}",
            ))
        return passed

    def run_validation(self, invoice: RawInvoice) -> RuleRunResult:
        """Normalize, run every rule and split categories into issues / passed"""

        normalized = normalize_invoice(invoice)

        issues: List[ValidationIssue] = []
        for rule in self.rule_set:
            issues.extend(self._execute_rule(rule, normalized))

        return RuleRunResult(issues=issues, passed=self._passed_checks(issues))

    def validate(self, invoice: RawInvoice) -> ValidationResult:
        """Run the full pipeline synchronously"""

        start = time.perf_counter()
        try:
            normalized = normalize_invoice(invoice)
            invoice_hash = generate_invoice_hash(normalized)
            # Date checks depend on "today", so a cached result only holds for one day
            cache_key = f"{invoice_hash}@{self.clock().isoformat()}"

            if self.cache is not None:
                cached = self.cache.get(cache_key)
                if cached is not None:
                    logger.debug(f"Cache hit for invoice {normalized.invoice_number!r}")
                    return cached.model_copy(update={'processing_time_ms': 0.0})

            outcome = self.run_validation(normalized)
            scored = score(outcome.issues, self.score_config)

            result = ValidationResult(
                check_id=generate_check_id(),
                invoice_hash=invoice_hash,
                health_score=scored.health_score,
                risk_level=scored.risk_level,
                issues_found=outcome.issues,
                checks_passed=outcome.passed,
                score_breakdown=scored.breakdown,
                processing_time_ms=round((time.perf_counter() - start) * 1000, 3),
                timestamp=datetime.now(timezone.utc),
            )
        except Exception as e:
            logger.error(f"Validation failed: {e}")
            raise ValidationFailedError("Validation failed") from e

        if self.cache is not None:
            self.cache.put(cache_key, result)

        logger.info(
            f"Validated invoice {normalized.invoice_number!r}: score={result.health_score} "
            f"risk={result.risk_level.value} issues={len(result.issues_found)}"
        )
        return result

    async def validate_invoice(self, invoice: RawInvoice) -> ValidationResult:
        """Awaitable entry point for async callers (HTTP handlers etc.)"""
        return self.validate(invoice)

    async def process_invoice(self, invoice: RawInvoice) -> Dict:
        """
        Validate one invoice without raising

        Returns:
            {
                'status': 'success' | 'failed',
                'validation_result': ValidationResult | None,
                'error': str (failed only),
                'processing_time_ms': float
            }
        """
        start = time.perf_counter()
        try:
            result = await self.validate_invoice(invoice)
            return {
                'status': 'success',
                'validation_result': result,
                'processing_time_ms': result.processing_time_ms,
            }
        except ValidationFailedError as e:
            return {
                'status': 'failed',
                'validation_result': None,
                'error': str(e.__cause__ or e),
                'processing_time_ms': (time.perf_counter() - start) * 1000,
            }

    async def process_batch(self, invoices: List[RawInvoice]) -> Dict:
        """
        Process multiple invoices

        Returns summary statistics
        """

        logger.info(f"Processing batch of {len(invoices)} invoices")

        results = []
        for invoice in invoices:
            results.append(await self.process_invoice(invoice))

        validated = [r['validation_result'] for r in results if r['validation_result']]
        successful = len(validated)

        risk_counts = {'low': 0, 'medium': 0, 'high': 0}
        for result in validated:
            risk_counts[result.risk_level.value] += 1

        avg_score = sum(r.health_score for r in validated) / successful if successful else 0
        avg_time = sum(r.get('processing_time_ms', 0) for r in results) / len(results) if results else 0

        return {
            'total_invoices': len(invoices),
            'successful': successful,
            'failed': len(invoices) - successful,
            'total_issues': sum(len(r.issues_found) for r in validated),
            'critical_issues': sum(r.score_breakdown.critical_count for r in validated),
            'risk_levels': risk_counts,
            'average_health_score': avg_score,
            'average_processing_time_ms': avg_time,
            'results': results,
        }


async def validate_invoice(
    invoice: RawInvoice,
    orchestrator: Optional[OrchestratorAgent] = None,
) -> ValidationResult:
    """Validate a single invoice with a default orchestrator"""
    orchestrator = orchestrator or OrchestratorAgent()
    return await orchestrator.validate_invoice(invoice)
