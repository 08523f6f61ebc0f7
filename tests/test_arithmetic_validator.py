"""
Tests for the arithmetic rules (taxable sum, invoice total)

Run with: pytest tests/test_arithmetic_validator.py -v
"""

import pytest
from decimal import Decimal
from models.invoice import InvoiceData, LineItem
from models.validation import Severity
from validators.arithmetic_validator import InvoiceTotalRule, TaxableSumRule


class TestTaxableSumRule:
    """Test taxable sum validation"""

    @pytest.fixture
    def rule(self):
        return TaxableSumRule()

    @pytest.fixture
    def two_line_invoice(self):
        """Two lines summing to 1500"""
        return InvoiceData(
            invoice_number="TEST-001",
            line_items=[
                LineItem(line_number=1, taxable_amount=Decimal("1000.00")),
                LineItem(line_number=2, taxable_amount=Decimal("500.00")),
            ],
            taxable_total_amount=Decimal("1500.00"),
        )

    def test_matching_sum_passes(self, rule, two_line_invoice):
        assert rule.evaluate(two_line_invoice) == []

    def test_rounding_slack_within_one_rupee(self, rule, two_line_invoice):
        invoice = two_line_invoice.model_copy(update={'taxable_total_amount': Decimal("1499.00")})
        assert rule.evaluate(invoice) == []

    def test_incorrect_sum_fails(self, rule, two_line_invoice):
        """Test that incorrect taxable total is detected"""

        # Break the taxable total
        invoice = two_line_invoice.model_copy(update={'taxable_total_amount': Decimal("1400.00")})

        issues = rule.evaluate(invoice)

        assert len(issues) == 1
        issue = issues[0]
        assert issue.id == "taxable-sum-mismatch"
        assert issue.severity == Severity.CRITICAL
        assert issue.expected.value == Decimal("1500.00")
        assert issue.found.value == Decimal("1400.00")
        assert issue.difference == Decimal("100.00")

    def test_no_line_items(self, rule):
        invoice = InvoiceData(taxable_total_amount=Decimal("250"))
        issues = rule.evaluate(invoice)
        assert issues[0].expected.value == Decimal("0")


class TestInvoiceTotalRule:
    """Test invoice total validation"""

    @pytest.fixture
    def rule(self):
        return InvoiceTotalRule()

    def test_valid_total_passes(self, rule, make_invoice):
        assert rule.evaluate(make_invoice()) == []

    def test_incorrect_total_fails(self, rule, make_invoice):
        """Taxable 1000 + tax 180 declared as 1500"""

        issues = rule.evaluate(make_invoice(invoiceTotalAmount=1500))

        assert len(issues) == 1
        issue = issues[0]
        assert issue.title == "Invoice Total Wrong"
        assert issue.severity == Severity.CRITICAL
        assert issue.difference == Decimal("320")
        assert issue.expected.display() == "₹1,180.00"
        assert issue.found.display() == "₹1,500.00"
        assert "₹1,000.00 + ₹180.00 = ₹1,180.00" in issue.how_to_fix

    def test_tolerance_boundary(self, rule, make_invoice):
        assert rule.evaluate(make_invoice(invoiceTotalAmount="1181.00")) == []
        assert len(rule.evaluate(make_invoice(invoiceTotalAmount="1181.01"))) == 1
