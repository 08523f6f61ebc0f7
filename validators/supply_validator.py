"""
Supply-level rules

- Place of supply (authoritative signal for the tax regime when it
  disagrees with the buyer's GSTIN state)
- Invoice type compliance (bill of supply, export invoice)
- Reverse charge mechanism
"""

from decimal import Decimal
from typing import List

from models.invoice import InvoiceData, InvoiceType, TaxType
from models.validation import Severity, ValidationIssue, amount, text
from utils.normalizer import state_code_of
from validators.base import MONEY_TOLERANCE, VALID_STATE_CODES, Rule, format_money
from validators.tax_validator import (
    place_of_supply_governs,
    wrong_cgst_sgst_issue,
    wrong_igst_issue,
)


class PlaceOfSupplyRule(Rule):
    """Rule 13: place of supply"""

    rule_id = "place-of-supply"
    name = "Place of Supply"
    categories = ("Place of Supply",)
    gst_law_ref = "Section 10 & 12 IGST Act; Rule 46(n) CGST Rules"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        pos = invoice.place_of_supply
        supplier_state = state_code_of(invoice.supplier_gstin)
        buyer_state = state_code_of(invoice.buyer_gstin)

        if not pos:
            # Mandatory on inter-state supplies; intra-state it is implied
            if supplier_state and buyer_state and supplier_state != buyer_state:
                return [self.issue(
                    "pos-missing",
                    title="Place of Supply Missing",
                    description="Place of supply is not stated on an inter-state invoice",
                    severity=Severity.WARNING,
                    found=text("Not provided"),
                    expected=text("2-digit state code of the place of supply"),
                    how_to_fix=f"Add place of supply (buyer state {buyer_state} if goods are delivered there)",
                    impact="Portal cannot determine IGST vs CGST+SGST; recipient ITC may be disputed",
                )]
            return []

        if pos not in VALID_STATE_CODES:
            return [self.issue(
                "pos-invalid",
                title="Invalid Place of Supply",
                description=f"Place of supply {pos} is not a valid state code",
                severity=Severity.WARNING,
                found=text(pos),
                expected=text("Valid state code (01-38, 97)"),
                how_to_fix="Use the 2-digit state code where the supply is made",
                impact="Portal will reject an unknown place of supply",
            )]

        if not supplier_state or not place_of_supply_governs(invoice):
            return []

        is_intrastate = pos == supplier_state
        issues = []
        for item in invoice.line_items:
            if is_intrastate and item.tax_type == TaxType.IGST:
                issues.append(wrong_igst_issue(
                    self, item,
                    f"pos-igst-intrastate-line-{item.line_number}",
                    f"IGST charged but place of supply {pos} is the supplier's state",
                ))
            elif not is_intrastate and item.tax_type == TaxType.CGST_SGST:
                issues.append(wrong_cgst_sgst_issue(
                    self, item,
                    f"pos-cgst-sgst-interstate-line-{item.line_number}",
                    f"CGST+SGST charged but place of supply {pos} differs from supplier state {supplier_state}",
                ))
        return issues


class InvoiceTypeRule(Rule):
    """Rule 14: document type specific requirements"""

    rule_id = "invoice-type"
    name = "Invoice Type Compliance"
    categories = ("Invoice Type",)
    gst_law_ref = "Section 31(3)(c) CGST Act; Rule 49 CGST Rules; Section 16 IGST Act"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        if invoice.invoice_type == InvoiceType.TAX_INVOICE:
            return []

        if invoice.invoice_type == InvoiceType.BILL_OF_SUPPLY:
            total_tax = invoice.line_tax_total()
            if total_tax > 0:
                return [self.issue(
                    "bos-has-tax",
                    title="Bill of Supply Cannot Have GST",
                    description="A bill of supply is issued for exempt supplies or by composition dealers and must not charge tax",
                    expected=amount(Decimal("0.00")),
                    found=amount(total_tax),
                    difference=total_tax,
                    how_to_fix="Remove GST from all lines, or issue a tax invoice instead",
                    impact="Tax collected on a bill of supply is not creditable and must still be paid to the government",
                    gst_law_context="Section 31(3)(c) CGST Act; Rule 49 CGST Rules",
                )]

        if invoice.invoice_type == InvoiceType.EXPORT_INVOICE:
            offending = [
                item for item in invoice.line_items
                if item.tax_type == TaxType.CGST_SGST and (item.cgst != 0 or item.sgst != 0)
            ]
            if offending:
                lines = ", ".join(str(item.line_number) for item in offending)
                return [self.issue(
                    "export-has-cgst-sgst",
                    title="Export Invoice Cannot Have CGST/SGST",
                    description="Exports are zero-rated inter-state supplies; only IGST (or LUT) applies",
                    location=f"Line(s) {lines}",
                    found=text("CGST + SGST"),
                    expected=text("IGST or zero-rated under LUT"),
                    how_to_fix="Charge IGST (with refund claim) or supply under LUT without tax",
                    impact="Refund of tax on exports will be rejected",
                    gst_law_context="Section 16 IGST Act (zero-rated supply)",
                )]

        return []


class ReverseChargeRule(Rule):
    """Rule 15: reverse charge mechanism"""

    rule_id = "reverse-charge"
    name = "Reverse Charge (RCM)"
    categories = ("Reverse Charge",)
    gst_law_ref = "Section 9(3) & 9(4) CGST Act; Rule 46(p) CGST Rules"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        if not invoice.reverse_charge:
            return []

        total_tax = invoice.line_tax_total()
        if total_tax > MONEY_TOLERANCE:
            return [self.issue(
                "rcm-tax-charged",
                title="Tax Charged on Reverse Charge Invoice",
                description="Supplier must not charge tax when reverse charge applies",
                severity=Severity.WARNING,
                expected=amount(Decimal("0.00")),
                found=amount(total_tax),
                how_to_fix=f"Remove {format_money(total_tax)} tax from the invoice; the buyer pays it directly",
                impact="Tax may be paid twice, once by the supplier and once by the buyer",
            )]

        return [self.issue(
            "rcm-applicable",
            title="Reverse Charge Applicable",
            description="Invoice is marked as reverse charge and carries no tax",
            severity=Severity.INFO,
            how_to_fix="Buyer must self-assess and pay the tax in cash, then claim ITC",
            impact="Buyer's GST liability; declare in GSTR-3B table 3.1(d)",
        )]
