"""
Tax regime and tax amount rules

- Tax type logic (CGST+SGST vs IGST from the parties' states)
- Tax rate must be a notified GST slab
- Line tax amount must match taxable value x rate
- CGST and SGST must be split equally
"""

from decimal import Decimal
from typing import List

from models.invoice import InvoiceData, TaxType
from models.validation import ValidationIssue, amount, text
from utils.normalizer import state_code_of
from validators.base import (
    MONEY_TOLERANCE,
    VALID_GST_RATES,
    Rule,
    format_money,
    format_rate,
)


HUNDRED = Decimal("100")


def place_of_supply_governs(invoice: InvoiceData) -> bool:
    """
    True when the explicit place of supply decides the tax regime

    Place of supply is legally authoritative. When it is absent, or agrees
    with the buyer's GSTIN state, the buyer state is used instead so a single
    defect is never reported by two rules.
    """
    pos = invoice.place_of_supply
    if not pos:
        return False
    buyer_state = state_code_of(invoice.buyer_gstin)
    return buyer_state == "" or pos != buyer_state


def wrong_igst_issue(rule: Rule, invoice_line, issue_id: str, reason: str) -> ValidationIssue:
    half = format_rate(invoice_line.tax_rate / 2)
    return rule.issue(
        issue_id,
        title=f"Wrong Tax Type - Line {invoice_line.line_number}",
        description=reason,
        location=invoice_line.label(),
        found=text("IGST"),
        expected=text("CGST + SGST"),
        how_to_fix=(
            f"Change from IGST {format_rate(invoice_line.tax_rate)}% to "
            f"CGST {half}% + SGST {half}%"
        ),
        impact="Portal will REJECT during GSTR-1 filing. Common cause of payment holds.",
    )


def wrong_cgst_sgst_issue(rule: Rule, invoice_line, issue_id: str, reason: str) -> ValidationIssue:
    return rule.issue(
        issue_id,
        title=f"Wrong Tax Type - Line {invoice_line.line_number}",
        description=reason,
        location=invoice_line.label(),
        found=text("CGST + SGST"),
        expected=text("IGST"),
        how_to_fix=f"Change from CGST+SGST to IGST {format_rate(invoice_line.tax_rate)}%",
        impact="Interstate transaction shown as intrastate. ITC mismatch will occur.",
    )


class TaxTypeRule(Rule):
    """Rule 4: same-state supplies take CGST+SGST, inter-state take IGST"""

    rule_id = "tax-type"
    name = "Tax Type Logic"
    categories = ("Tax Type",)
    gst_law_ref = "Section 7 & 8 IGST Act; Section 9 CGST Act"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        if place_of_supply_governs(invoice):
            return []

        supplier_state = state_code_of(invoice.supplier_gstin)
        buyer_state = state_code_of(invoice.buyer_gstin)
        if not supplier_state or not buyer_state:
            return []

        same_state = supplier_state == buyer_state
        issues = []
        for item in invoice.line_items:
            if same_state and item.tax_type == TaxType.IGST:
                issues.append(wrong_igst_issue(
                    self, item,
                    f"tax-type-igst-same-state-line-{item.line_number}",
                    "IGST used for same-state transaction; should be CGST+SGST",
                ))
            elif not same_state and item.tax_type == TaxType.CGST_SGST:
                issues.append(wrong_cgst_sgst_issue(
                    self, item,
                    f"tax-type-cgst-sgst-different-state-line-{item.line_number}",
                    "CGST+SGST used for interstate transaction; should be IGST",
                ))
        return issues


class TaxRateRule(Rule):
    """Rule 5: rate must be one of the GST slabs"""

    rule_id = "tax-rate"
    name = "Tax Rate Validity"
    categories = ("Tax Rate",)
    gst_law_ref = "Notification No. 1/2017-Central Tax (Rate) and amendments"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        issues = []
        for item in invoice.line_items:
            if item.tax_rate not in VALID_GST_RATES:
                issues.append(self.issue(
                    f"rate-invalid-line-{item.line_number}",
                    title=f"Invalid GST Rate - Line {item.line_number}",
                    description=f"{format_rate(item.tax_rate)}% is not a valid GST rate",
                    location=item.label(),
                    found=text(f"{format_rate(item.tax_rate)}%"),
                    expected=text("One of: 0%, 0.25%, 3%, 5%, 12%, 18%, 28%"),
                    how_to_fix="Use valid GST rate. Common rates: 5%, 12%, 18%, 28%",
                    impact="Invalid rate will cause filing errors",
                ))
        return issues


class GSTCalculationRule(Rule):
    """Rule 6: tax charged must equal taxable value x rate, within ₹1"""

    rule_id = "gst-calculation"
    name = "GST Calculation Accuracy"
    categories = ("GST Calculation",)
    gst_law_ref = "Section 15 CGST Act; Rule 46(i)-(k) CGST Rules"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        issues = []
        for item in invoice.line_items:
            expected_tax = item.taxable_amount * item.tax_rate / HUNDRED
            actual_tax = item.total_tax
            difference = abs(expected_tax - actual_tax)

            if difference > MONEY_TOLERANCE:
                issues.append(self.issue(
                    f"calc-error-line-{item.line_number}",
                    title=f"Calculation Mismatch - Line {item.line_number}",
                    description="GST amount does not match expected calculation",
                    location=item.label(),
                    expected=amount(expected_tax.quantize(Decimal("0.01"))),
                    found=amount(actual_tax),
                    difference=difference.quantize(Decimal("0.01")),
                    how_to_fix=(
                        f"Update tax from {format_money(actual_tax)} to {format_money(expected_tax)}. "
                        f"Formula: {format_money(item.taxable_amount)} × {format_rate(item.tax_rate)}% "
                        f"= {format_money(expected_tax)}"
                    ),
                    impact="Calculation errors trigger audits and cause rejections",
                ))
        return issues


class CGSTSGSTSplitRule(Rule):
    """Rule 7: CGST rate equals SGST rate, so the amounts must match"""

    rule_id = "cgst-sgst-split"
    name = "CGST/SGST Equal Split"
    categories = ("CGST/SGST Split",)
    gst_law_ref = "Section 9(1) CGST Act read with Section 9(1) SGST Acts"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        issues = []
        for item in invoice.line_items:
            if item.tax_type != TaxType.CGST_SGST or item.cgst <= 0 or item.sgst <= 0:
                continue

            if abs(item.cgst - item.sgst) > MONEY_TOLERANCE:
                each = (item.cgst + item.sgst) / 2
                issues.append(self.issue(
                    f"split-error-line-{item.line_number}",
                    title=f"Unequal Split - Line {item.line_number}",
                    description="CGST and SGST amounts must be equal",
                    location=item.label(),
                    expected=text(f"Each should be {format_money(each)}"),
                    found=text(f"CGST: {format_money(item.cgst)}, SGST: {format_money(item.sgst)}"),
                    difference=abs(item.cgst - item.sgst),
                    how_to_fix=f"Make equal: CGST = SGST = {format_money(each)}",
                    impact="Portal validation will fail",
                ))
        return issues
