"""
Arithmetic validation rules
Invoice-level totals must agree with the line items
"""

from decimal import Decimal
from typing import List

from models.invoice import InvoiceData
from models.validation import ValidationIssue, amount
from validators.base import MONEY_TOLERANCE, Rule, format_money


class TaxableSumRule(Rule):
    """Rule 11: sum of line taxable amounts = declared taxable total"""

    rule_id = "taxable-sum"
    name = "Taxable Sum"
    categories = ("Taxable Sum",)
    gst_law_ref = "Rule 46(i) CGST Rules (taxable value)"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        calculated = sum((item.taxable_amount for item in invoice.line_items), Decimal("0"))
        declared = invoice.taxable_total_amount
        difference = abs(calculated - declared)

        if difference <= MONEY_TOLERANCE:
            return []

        return [self.issue(
            "taxable-sum-mismatch",
            title="Taxable Amount Sum Mismatch",
            description="Line items do not add up to total taxable amount",
            expected=amount(calculated),
            found=amount(declared),
            difference=difference,
            how_to_fix=f"Total taxable should be {format_money(calculated)}, not {format_money(declared)}",
            impact="Summation errors cause rejection",
        )]


class InvoiceTotalRule(Rule):
    """Rule 12: taxable total + tax total = invoice total"""

    rule_id = "invoice-total"
    name = "Invoice Total"
    categories = ("Invoice Total",)
    gst_law_ref = "Rule 46(k) CGST Rules (total value of supply)"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        expected = invoice.taxable_total_amount + invoice.total_tax_amount
        declared = invoice.invoice_total_amount
        difference = abs(expected - declared)

        if difference <= MONEY_TOLERANCE:
            return []

        return [self.issue(
            "invoice-total-mismatch",
            title="Invoice Total Wrong",
            description="Total does not match taxable + tax amounts",
            expected=amount(expected),
            found=amount(declared),
            difference=difference,
            how_to_fix=(
                f"Total should be {format_money(invoice.taxable_total_amount)} + "
                f"{format_money(invoice.total_tax_amount)} = {format_money(expected)}"
            ),
            impact="Incorrect total will be flagged",
        )]
