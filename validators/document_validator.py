"""
Document field rules

- HSN code present and well-formed on every line
- Invoice number present, bounded, restricted character set
- Invoice date present, parsable, not in the future, not time-barred
"""

import re
from datetime import date, datetime
from typing import Callable, List, Optional

from models.invoice import InvoiceData
from models.validation import Severity, ValidationIssue, text
from validators.base import Rule


HSN_PATTERN = re.compile(r'^[0-9]{4,8}$')
INVOICE_NUMBER_PATTERN = re.compile(r'^[A-Za-z0-9\-/\\]+$')

MAX_INVOICE_NUMBER_LENGTH = 50
MAX_INVOICE_AGE_DAYS = 365

# ISO first, then the day-first layouts common on Indian invoices
DATE_FORMATS = ("%d-%m-%Y", "%d/%m/%Y", "%d.%m.%Y")


def parse_invoice_date(value: str) -> Optional[date]:
    """Parse an invoice date string, returning None when unparsable"""

    value = (value or "").strip()
    if not value:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


class HSNCodeRule(Rule):
    """Rule 8: HSN code per line"""

    rule_id = "hsn-code"
    name = "HSN Code"
    categories = ("HSN Code",)
    gst_law_ref = "Rule 46(g) CGST Rules; Notification No. 78/2020-Central Tax"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        issues = []
        for item in invoice.line_items:
            n = item.line_number
            if not item.hsn_code or not item.hsn_code.strip():
                issues.append(self.issue(
                    f"hsn-missing-line-{n}",
                    title=f"HSN Code Missing - Line {n}",
                    description="HSN code is mandatory for GST compliance",
                    severity=Severity.WARNING,
                    location=item.label(),
                    expected=text("4, 6, or 8 digit HSN code"),
                    found=text("Not provided"),
                    how_to_fix="Add appropriate HSN code for this product",
                    impact="Required for GST filing. May cause rejection.",
                ))
            elif not HSN_PATTERN.match(item.hsn_code):
                issues.append(self.issue(
                    f"hsn-invalid-line-{n}",
                    title=f"Invalid HSN Format - Line {n}",
                    description="HSN code must be 4 to 8 digits",
                    severity=Severity.WARNING,
                    location=item.label(),
                    found=text(item.hsn_code),
                    expected=text("4-8 digit number"),
                    how_to_fix="Use only numeric HSN code with 4, 6, or 8 digits",
                    impact="Portal may reject invalid format",
                ))
        return issues


class InvoiceNumberRule(Rule):
    """Rule 9: invoice number (first failing check only)"""

    rule_id = "invoice-number"
    name = "Invoice Number"
    categories = ("Invoice Number",)
    gst_law_ref = "Rule 46(b) CGST Rules (consecutive serial number, max 16 chars)"

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        number = invoice.invoice_number

        if not number or not number.strip():
            return [self.issue(
                "invoice-number-missing",
                title="Invoice Number Missing",
                description="Invoice number is mandatory",
                found=text("Not provided"),
                expected=text("Alphanumeric invoice number"),
                how_to_fix="Enter invoice number",
                impact="Invoice invalid without number",
            )]

        if len(number) > MAX_INVOICE_NUMBER_LENGTH:
            return [self.issue(
                "invoice-number-too-long",
                title="Invoice Number Too Long",
                description=f"Invoice number exceeds {MAX_INVOICE_NUMBER_LENGTH} characters",
                severity=Severity.WARNING,
                found=text(f"{len(number)} characters"),
                expected=text(f"Maximum {MAX_INVOICE_NUMBER_LENGTH} characters"),
                how_to_fix=f"Shorten invoice number to {MAX_INVOICE_NUMBER_LENGTH} characters or less",
                impact="May cause tracking issues",
            )]

        if not INVOICE_NUMBER_PATTERN.match(number):
            return [self.issue(
                "invoice-number-invalid-chars",
                title="Invalid Characters in Invoice Number",
                description="Invoice number contains invalid characters",
                severity=Severity.WARNING,
                found=text(number),
                expected=text("Only letters, numbers, -, /, \\"),
                how_to_fix="Remove special characters from invoice number",
                impact="May cause system errors",
            )]

        return []


class InvoiceDateRule(Rule):
    """Rule 10: invoice date"""

    rule_id = "invoice-date"
    name = "Invoice Date"
    categories = ("Invoice Date",)
    gst_law_ref = "Rule 46(c) CGST Rules; Section 16(4) CGST Act (ITC time limit)"

    def __init__(self, clock: Callable[[], date] = date.today):
        self.clock = clock

    def evaluate(self, invoice: InvoiceData) -> List[ValidationIssue]:
        raw = invoice.invoice_date

        if not raw or not raw.strip():
            return [self.issue(
                "date-missing",
                title="Invoice Date Missing",
                description="Invoice date is mandatory",
                found=text("Not provided"),
                expected=text("Valid date"),
                how_to_fix="Enter invoice date in YYYY-MM-DD or DD-MM-YYYY format",
                impact="Invoice invalid without date",
            )]

        invoice_date = parse_invoice_date(raw)
        if invoice_date is None:
            return [self.issue(
                "date-invalid",
                title="Invalid Date Format",
                description="Date format is not valid",
                found=text(raw),
                expected=text("Valid date (YYYY-MM-DD or DD-MM-YYYY)"),
                how_to_fix="Enter date in correct format",
                impact="Portal will reject invalid dates",
            )]

        today = self.clock()
        if invoice_date > today:
            return [self.issue(
                "date-future",
                title="Future Date Not Allowed",
                description="Invoice date cannot be in the future",
                found=text(raw),
                expected=text("Date today or earlier"),
                how_to_fix="Correct invoice date to valid past date",
                impact="Portal rejects future dates",
            )]

        age_days = (today - invoice_date).days
        if age_days > MAX_INVOICE_AGE_DAYS:
            return [self.issue(
                "date-too-old",
                title="Invoice Date Very Old",
                description=f"Invoice date is {age_days} days old (more than 1 year)",
                severity=Severity.WARNING,
                found=text(raw),
                expected=text(f"Within last {MAX_INVOICE_AGE_DAYS} days"),
                how_to_fix="Verify invoice date is correct and check the ITC claim deadline",
                impact="Input tax credit may be time-barred under Section 16(4)",
            )]

        return []
