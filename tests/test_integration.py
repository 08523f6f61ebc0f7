"""
Integration tests for the complete validation workflow
Runs invoices through normalizer, every rule, and the score engine

Run with: pytest tests/test_integration.py -v
"""

import re
from datetime import date
from decimal import Decimal

import pytest

from agents.orchestrator import OrchestratorAgent, validate_invoice
from models.errors import ValidationFailedError
from models.invoice import InvoiceData
from models.validation import RiskLevel, Severity
from utils.cache import ResultCache
from validators.base import Rule, RuleSet
from validators.gstin_validator import GSTINFormatRule


SCENARIOS = {
    "valid": {},
    "igst_same_state": {"line": {"taxType": "IGST"}},
    "missing_buyer_gstin": {"buyerGSTIN": ""},
    "total_mismatch": {"invoiceTotalAmount": 1500},
    "bill_of_supply_with_tax": {"invoiceType": "bill_of_supply"},
    "everything_wrong": {
        "line": {"taxType": "IGST", "hsnCode": "", "taxRate": 15},
        "invoiceNumber": "",
        "invoiceDate": "2030-01-01",
        "supplierGSTIN": "99AABCT1234F1ZP",
        "buyerGSTIN": "99AABCT1234F1ZP",
        "placeOfSupply": "27",
        "invoiceTotalAmount": 0,
        "reverseCharge": True,
    },
}


class BrokenRule(Rule):
    rule_id = "broken"
    name = "Broken Check"
    categories = ("Broken Check",)

    def evaluate(self, invoice):
        raise ZeroDivisionError("boom")


class BrokenGSTINFormatRule(GSTINFormatRule):

    def evaluate(self, invoice):
        raise KeyError("supplierGSTIN")


def assert_category_partition(result, rule_set):
    """Every category is either failed (>= 1 issue) or passed (exactly once)"""
    failed = {issue.category for issue in result.issues_found}
    passed = [check.category for check in result.checks_passed]

    assert len(passed) == len(set(passed))
    assert failed.isdisjoint(passed)
    assert failed | set(passed) == set(rule_set.categories)


class TestScenarios:
    """End-to-end behaviour of the reference scenarios"""

    def test_fully_correct_invoice(self, orchestrator, valid_payload):
        result = orchestrator.validate(valid_payload)

        assert result.issues_found == []
        assert result.health_score == 100
        assert result.risk_level == RiskLevel.LOW
        assert len(result.checks_passed) == len(orchestrator.rule_set.categories) == 16

    def test_igst_on_same_state_supply(self, orchestrator, make_payload):
        result = orchestrator.validate(make_payload(line={"taxType": "IGST", "cgst": 0, "sgst": 0, "igst": 180}))

        assert len(result.issues_found) == 1
        issue = result.issues_found[0]
        assert issue.rule_id == "tax-type"
        assert issue.category == "Tax Type"
        assert issue.severity == Severity.CRITICAL
        assert issue.expected.display() == "CGST + SGST"
        assert not any(i.rule_id == "cgst-sgst-split" for i in result.issues_found)
        assert result.health_score <= 85

    def test_missing_buyer_gstin(self, orchestrator, make_payload):
        result = orchestrator.validate(make_payload(buyerGSTIN=""))

        assert [i.id for i in result.issues_found] == ["gstin-missing-buyer"]
        assert "GSTIN Missing" in result.issues_found[0].title
        passed = [c.category for c in result.checks_passed]
        assert "Supplier GSTIN" in passed
        assert "Buyer GSTIN" not in passed

    def test_invoice_total_mismatch(self, orchestrator, make_payload):
        result = orchestrator.validate(make_payload(invoiceTotalAmount=1500))

        assert len(result.issues_found) == 1
        issue = result.issues_found[0]
        assert issue.title == "Invoice Total Wrong"
        assert issue.severity == Severity.CRITICAL
        assert issue.difference == Decimal("320")

    def test_bill_of_supply_with_tax(self, orchestrator, make_payload):
        result = orchestrator.validate(make_payload(invoiceType="bill_of_supply"))

        titles = [i.title for i in result.get_critical_issues()]
        assert titles == ["Bill of Supply Cannot Have GST"]

    @pytest.mark.parametrize("name", sorted(SCENARIOS))
    def test_category_partition(self, orchestrator, make_payload, name):
        overrides = dict(SCENARIOS[name])
        result = orchestrator.validate(make_payload(overrides.pop("line", None), **overrides))

        assert_category_partition(result, orchestrator.rule_set)
        assert 0 <= result.health_score <= 100


class TestOrchestrator:

    def test_issues_follow_rule_order(self, orchestrator, make_payload):
        overrides = dict(SCENARIOS["everything_wrong"])
        result = orchestrator.validate(make_payload(overrides.pop("line"), **overrides))

        order = [rule.rule_id for rule in orchestrator.rule_set]
        positions = [order.index(issue.rule_id) for issue in result.issues_found]
        assert positions == sorted(positions)
        assert result.risk_level == RiskLevel.HIGH
        assert result.health_score == 0

    def test_passed_check_format(self, orchestrator, valid_payload):
        result = orchestrator.validate(valid_payload)

        check = next(c for c in result.checks_passed if c.category == "CGST/SGST Split")
        assert check.id == "cgst-sgst-split-passed"
        assert check.title == "CGST/SGST Split ✓"
        assert check.description.startswith("Passed — Section 9(1)")

    def test_check_id_and_hash(self, orchestrator, valid_payload):
        result = orchestrator.validate(valid_payload)

        assert re.match(r"^IC-\d{4}-[0-9A-F]{9}$", result.check_id)
        assert len(result.invoice_hash) == 64
        assert result.timestamp.tzinfo is not None

    def test_accepts_invoice_model(self, orchestrator, valid_payload):
        invoice = InvoiceData.model_validate(valid_payload)
        assert orchestrator.validate(invoice).health_score == 100

    def test_repeat_validation_is_deterministic(self, orchestrator, make_payload):
        payload = make_payload(line={"taxType": "IGST", "hsnCode": "12"})

        first = orchestrator.validate(payload)
        second = orchestrator.validate(payload)

        assert [i.model_dump() for i in first.issues_found] == [i.model_dump() for i in second.issues_found]
        assert first.invoice_hash == second.invoice_hash
        assert first.health_score == second.health_score

    def test_wire_format_is_camel_case(self, orchestrator, make_payload):
        wire = orchestrator.validate(make_payload(invoiceTotalAmount=1500)).to_wire()

        assert {"checkId", "healthScore", "riskLevel", "issuesFound", "checksPassed",
                "scoreBreakdown", "processingTimeMs"} <= set(wire)
        issue = wire["issuesFound"][0]
        assert issue["ruleId"] == "invoice-total"
        assert issue["howToFix"]
        assert issue["gstLawContext"]
        assert issue["expected"]["kind"] == "amount"
        assert wire["scoreBreakdown"]["criticalCount"] == 1

    def test_wire_amounts_are_numbers(self, orchestrator, make_payload):
        wire = orchestrator.validate(make_payload(invoiceTotalAmount=1500)).to_wire()

        issue = wire["issuesFound"][0]
        assert issue["difference"] == 320.0
        assert isinstance(issue["difference"], float)
        assert isinstance(issue["expected"]["value"], float)
        assert isinstance(issue["found"]["value"], float)

    def test_huge_quantity_does_not_fail_validation(self, orchestrator, make_payload):
        result = orchestrator.validate(make_payload(line={"quantity": "1e30"}))

        assert 0 <= result.health_score <= 100


class TestRuleIsolation:

    @pytest.fixture
    def orchestrator(self, clock):
        return OrchestratorAgent(rule_set=RuleSet([GSTINFormatRule(), BrokenRule()]), clock=clock)

    def test_failing_rule_becomes_critical_issue(self, orchestrator, valid_payload):
        result = orchestrator.validate(valid_payload)

        assert [i.id for i in result.issues_found] == ["rule-error-broken"]
        issue = result.issues_found[0]
        assert issue.severity == Severity.CRITICAL
        assert issue.category == "Broken Check"
        assert "ZeroDivisionError" in issue.description
        assert {c.category for c in result.checks_passed} == {"Supplier GSTIN", "Buyer GSTIN"}

    def test_failing_rule_fails_every_category_it_owns(self, clock, valid_payload):
        orchestrator = OrchestratorAgent(rule_set=RuleSet([BrokenGSTINFormatRule()]), clock=clock)

        result = orchestrator.validate(valid_payload)

        assert [i.category for i in result.issues_found] == ["Supplier GSTIN", "Buyer GSTIN"]
        assert [i.id for i in result.issues_found] == [
            "rule-error-gstin-format-supplier-gstin",
            "rule-error-gstin-format-buyer-gstin",
        ]
        assert result.checks_passed == []
        assert_category_partition(result, orchestrator.rule_set)

    def test_duplicate_rule_ids_rejected(self):
        with pytest.raises(ValueError):
            RuleSet([GSTINFormatRule(), GSTINFormatRule()])

    def test_fault_outside_rules_raises(self, valid_payload, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("scoring unavailable")

        monkeypatch.setattr("agents.orchestrator.score", explode)

        with pytest.raises(ValidationFailedError) as exc_info:
            OrchestratorAgent().validate(valid_payload)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestResultCache:

    def test_cache_returns_previous_result(self, clock, valid_payload):
        orchestrator = OrchestratorAgent(cache=ResultCache(), clock=clock)

        first = orchestrator.validate(valid_payload)
        second = orchestrator.validate(valid_payload)

        assert second.check_id == first.check_id
        assert second.processing_time_ms == 0
        assert len(orchestrator.cache) == 1

    def test_cache_does_not_outlive_the_day(self, valid_payload):
        today = [date(2024, 10, 1)]
        orchestrator = OrchestratorAgent(cache=ResultCache(), clock=lambda: today[0])

        first = orchestrator.validate(valid_payload)
        today[0] = date(2024, 10, 2)
        second = orchestrator.validate(valid_payload)

        assert second.check_id != first.check_id
        assert second.invoice_hash == first.invoice_hash
        assert len(orchestrator.cache) == 2

    def test_cache_enabled_from_config(self):
        orchestrator = OrchestratorAgent({'cache': {'enabled': True, 'max_entries': 2}})
        assert orchestrator.cache is not None
        assert orchestrator.cache.max_entries == 2

    def test_cache_disabled_by_default(self, orchestrator):
        assert orchestrator.cache is None

    def test_oldest_entry_evicted(self, orchestrator, valid_payload):
        cache = ResultCache(max_entries=2)
        result = orchestrator.validate(valid_payload)
        for key in ("a", "b", "c"):
            cache.put(key, result)

        assert len(cache) == 2
        assert "a" not in cache
        assert cache.get("c") is result

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            ResultCache(max_entries=0)


class TestAsyncContract:

    @pytest.mark.asyncio
    async def test_validate_invoice(self, orchestrator, valid_payload):
        result = await validate_invoice(valid_payload, orchestrator)
        assert result.health_score == 100

    @pytest.mark.asyncio
    async def test_process_invoice_reports_failure(self, orchestrator, valid_payload, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("scoring unavailable")

        monkeypatch.setattr("agents.orchestrator.score", explode)

        outcome = await orchestrator.process_invoice(valid_payload)

        assert outcome['status'] == 'failed'
        assert outcome['validation_result'] is None
        assert "scoring unavailable" in outcome['error']

    @pytest.mark.asyncio
    async def test_process_batch(self, orchestrator, make_payload):
        invoices = [
            make_payload(),
            make_payload(line={"hsnCode": ""}),
            make_payload(invoiceTotalAmount=1500),
        ]

        batch = await orchestrator.process_batch(invoices)

        assert batch['total_invoices'] == 3
        assert batch['successful'] == 3
        assert batch['failed'] == 0
        assert batch['total_issues'] == 2
        assert batch['critical_issues'] == 1
        assert batch['risk_levels'] == {'low': 2, 'medium': 0, 'high': 1}
        assert batch['average_health_score'] == pytest.approx((100 + 95 + 85) / 3)
