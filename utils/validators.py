"""
Input boundary for invoice payloads
Rejects structurally malformed data before it reaches the validation core.
GST compliance problems (bad GSTIN, wrong totals, ...) are NOT errors here:
they are reported by the rules.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Tuple

from models.errors import InvoiceInputError
from models.invoice import InvoiceData, InvoiceType, TaxType
from utils.normalizer import MAX_AMOUNT_DIGITS, normalize_invoice


class PayloadCheckResult:
    """Result of a payload shape check"""

    def __init__(self, is_valid: bool, errors: List[str] = None):
        self.is_valid = is_valid
        self.errors = errors or []

    def __bool__(self):
        return self.is_valid

    def add_error(self, error: str):
        self.errors.append(error)
        self.is_valid = False


# (wire name, snake_case name)
REQUIRED_FIELDS = [
    ('lineItems', 'line_items'),
    ('taxableTotalAmount', 'taxable_total_amount'),
    ('totalTaxAmount', 'total_tax_amount'),
    ('invoiceTotalAmount', 'invoice_total_amount'),
]

STRING_FIELDS = [
    ('invoiceNumber', 'invoice_number'),
    ('invoiceDate', 'invoice_date'),
    ('supplierGSTIN', 'supplier_gstin'),
    ('buyerGSTIN', 'buyer_gstin'),
    ('supplierName', 'supplier_name'),
    ('buyerName', 'buyer_name'),
    ('placeOfSupply', 'place_of_supply'),
]

LINE_NUMERIC_FIELDS = [
    ('quantity', 'quantity'),
    ('rate', 'rate'),
    ('taxRate', 'tax_rate'),
    ('taxableAmount', 'taxable_amount'),
    ('cgst', 'cgst'),
    ('sgst', 'sgst'),
    ('igst', 'igst'),
    ('totalAmount', 'total_amount'),
]

LINE_STRING_FIELDS = [
    ('description', 'description'),
    ('hsnCode', 'hsn_code'),
]


def _lookup(data: Dict, names: Tuple[str, str]) -> Tuple[bool, Any]:
    for name in names:
        if name in data:
            return True, data[name]
    return False, None


def _as_number(value: Any) -> Decimal:
    """Strict numeric parse: numbers or numeric strings, never bools"""
    if isinstance(value, bool) or value is None:
        raise TypeError("not a number")
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError("not a number")
    else:
        raise TypeError("not a number")
    if not number.is_finite():
        raise ValueError("not a finite number")
    if number.adjusted() >= MAX_AMOUNT_DIGITS:
        raise OverflowError("out of range")
    return number


class InvoicePayloadValidator:
    """
    Invoice payload validator
    Prevents malformed data from reaching the validation pipeline
    """

    def validate(self, invoice_data: Any) -> PayloadCheckResult:
        """
        Shape validation of an invoice payload

        Args:
            invoice_data: Invoice dictionary (wire format) to validate

        Returns:
            PayloadCheckResult with is_valid flag and error list
        """
        result = PayloadCheckResult(is_valid=True)

        if not isinstance(invoice_data, dict):
            result.add_error("Invoice payload must be a dictionary")
            return result

        # 1. Check required fields
        self._validate_required_fields(invoice_data, result)
        if not result:
            return result  # Stop if missing required fields

        # 2. Validate data types
        self._validate_data_types(invoice_data, result)

        # 3. Validate enumerated values
        self._validate_enums(invoice_data, result)

        # 4. Validate line items
        self._validate_line_items(invoice_data, result)

        return result

    def _validate_required_fields(self, data: Dict, result: PayloadCheckResult):
        """Check all required fields are present"""
        for names in REQUIRED_FIELDS:
            present, value = _lookup(data, names)
            if not present or value is None:
                result.add_error(f"Missing required field: {names[0]}")

    def _validate_data_types(self, data: Dict, result: PayloadCheckResult):
        """Validate data types"""

        for names in STRING_FIELDS:
            present, value = _lookup(data, names)
            if present and value is not None and not isinstance(value, str):
                result.add_error(f"{names[0]} must be a string")

        for names in REQUIRED_FIELDS[1:]:
            _, value = _lookup(data, names)
            try:
                if _as_number(value) < 0:
                    result.add_error(f"{names[0]} cannot be negative")
            except OverflowError:
                result.add_error(f"{names[0]} is too large")
            except (TypeError, ValueError):
                result.add_error(f"{names[0]} must be numeric")

        present, value = _lookup(data, ('reverseCharge', 'reverse_charge'))
        if present and value is not None and not isinstance(value, bool):
            result.add_error("reverseCharge must be a boolean")

    def _validate_enums(self, data: Dict, result: PayloadCheckResult):
        present, value = _lookup(data, ('invoiceType', 'invoice_type'))
        if present and value is not None:
            allowed = [t.value for t in InvoiceType]
            if value not in allowed:
                result.add_error(f"invoiceType must be one of: {', '.join(allowed)}")

    def _validate_line_items(self, data: Dict, result: PayloadCheckResult):
        """Validate line items"""

        _, items = _lookup(data, REQUIRED_FIELDS[0])
        if not isinstance(items, list):
            result.add_error("lineItems must be a list")
            return
        if len(items) == 0:
            result.add_error("Invoice must have at least one line item")
            return

        allowed_tax_types = [t.value for t in TaxType]
        for i, item in enumerate(items, 1):
            if not isinstance(item, dict):
                result.add_error(f"Line item {i} must be a dictionary")
                continue

            for names in LINE_STRING_FIELDS:
                present, value = _lookup(item, names)
                if present and value is not None and not isinstance(value, str):
                    result.add_error(f"Line item {i} {names[0]} must be a string")

            for names in LINE_NUMERIC_FIELDS:
                present, value = _lookup(item, names)
                if not present or value is None:
                    continue
                try:
                    if _as_number(value) < 0:
                        result.add_error(f"Line item {i} {names[0]} cannot be negative")
                except OverflowError:
                    result.add_error(f"Line item {i} {names[0]} is too large")
                except (TypeError, ValueError):
                    result.add_error(f"Line item {i} {names[0]} must be numeric")

            present, value = _lookup(item, ('taxType', 'tax_type'))
            if present and value is not None and value not in allowed_tax_types:
                result.add_error(
                    f"Line item {i} taxType must be one of: {', '.join(allowed_tax_types)}"
                )

    def validate_safe(self, invoice_data: Any) -> Tuple[bool, List[str]]:
        """
        Safe validation that never throws exceptions

        Returns:
            (is_valid, error_list)
        """
        try:
            result = self.validate(invoice_data)
            return result.is_valid, result.errors
        except Exception as e:
            return False, [f"Validation error: {str(e)}"]


def parse_invoice(invoice_data: Any) -> InvoiceData:
    """
    Check a payload's shape and return a normalized InvoiceData

    Raises:
        InvoiceInputError: the payload is structurally malformed
    """
    result = InvoicePayloadValidator().validate(invoice_data)
    if not result:
        raise InvoiceInputError(result.errors)
    return normalize_invoice(invoice_data)
