"""
GSTIN validation rules

- GSTIN format (supplier and buyer tracked independently)
- State code embedded in the GSTIN
- Supplier and buyer GSTIN must differ
"""

from typing import List, Optional

from models.invoice import InvoiceData
from models.validation import ValidationIssue, text
from validators.base import GSTIN_PATTERN, VALID_STATE_CODES, Rule


SUPPLIER = "Supplier"
BUYER = "Buyer"


def _parties(invoice: InvoiceData):
    return ((SUPPLIER, invoice.supplier_gstin), (BUYER, invoice.buyer_gstin))


class GSTINFormatRule(Rule):
    """Rule 1: each GSTIN present, 15 characters, structurally valid"""

    rule_id = "gstin-format"
    name = "GSTIN Format"
    categories = ("Supplier GSTIN", "Buyer GSTIN")
    gst_law_ref = "Section 25 CGST Act; Rule 46(b) & (e) CGST Rules"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        issues = []
        for label, gstin in _parties(invoice):
            issue = self._check_gstin(gstin, label)
            if issue:
                issues.append(issue)
        return issues

    def _check_gstin(self, gstin: str, label: str) -> Optional[ValidationIssue]:
        key = label.lower()
        category = f"{label} GSTIN"

        if not gstin or not gstin.strip():
            return self.issue(
                f"gstin-missing-{key}",
                title=f"{label} GSTIN Missing",
                description="GSTIN is mandatory for GST invoices",
                category=category,
                found=text("Not provided"),
                expected=text("15-character GSTIN"),
                how_to_fix=f"Enter valid {label.lower()} GSTIN in format: 22AAAAA0000A1Z5",
                impact="Invoice is invalid without GSTIN and ITC cannot be claimed",
            )

        if len(gstin) != 15:
            return self.issue(
                f"gstin-length-{key}",
                title=f"{label} GSTIN Invalid Length",
                description="GSTIN must be exactly 15 characters",
                category=category,
                found=text(f"{len(gstin)} characters"),
                expected=text("15 characters"),
                how_to_fix="Verify GSTIN has all 15 characters",
                impact="Portal will reject invalid GSTIN format",
            )

        if not GSTIN_PATTERN.match(gstin):
            return self.issue(
                f"gstin-format-{key}",
                title=f"{label} GSTIN Invalid Format",
                description="GSTIN does not match required pattern",
                category=category,
                found=text(gstin),
                expected=text("Format: 22AAAAA0000A1Z5"),
                how_to_fix="Check GSTIN follows pattern: 2-digit state + 10-char PAN + entity digit + 'Z' + checksum",
                impact="Portal will reject invalid format",
            )

        return None


class StateCodeRule(Rule):
    """Rule 2: GSTIN prefix must be a known state/UT code"""

    rule_id = "state-code"
    name = "State Code"
    categories = ("State Code",)
    gst_law_ref = "Section 25(1) CGST Act (registration per State/UT)"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        issues = []
        for label, gstin in _parties(invoice):
            if len(gstin) < 2:
                continue
            state_code = gstin[:2]
            if state_code not in VALID_STATE_CODES:
                issues.append(self.issue(
                    f"gstin-state-{label.lower()}",
                    title=f"{label} GSTIN Invalid State Code",
                    description=f"State code {state_code} is not valid",
                    location=f"{label} GSTIN",
                    found=text(state_code),
                    expected=text("Valid state code (01-38, 97)"),
                    how_to_fix="Verify first 2 digits of GSTIN are the correct state code",
                    impact="Invalid state code will be rejected by the GST portal",
                ))
        return issues


class DuplicateGSTINRule(Rule):
    """Rule 3: supplier cannot invoice itself"""

    rule_id = "duplicate-gstin"
    name = "Duplicate GSTIN"
    categories = ("Duplicate GSTIN",)
    gst_law_ref = "Section 31 CGST Act (supply to another person)"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        supplier = invoice.supplier_gstin
        buyer = invoice.buyer_gstin

        if supplier and buyer and supplier == buyer:
            return [self.issue(
                "gstin-duplicate",
                title="Supplier and Buyer GSTIN Are Identical",
                description="The same GSTIN appears as both supplier and buyer",
                found=text(supplier),
                expected=text("Different supplier and buyer GSTINs"),
                how_to_fix="Enter the buyer's own GSTIN, not the supplier's",
                impact="Self-invoicing is not a taxable supply; ITC claim will be denied",
            )]
        return []
