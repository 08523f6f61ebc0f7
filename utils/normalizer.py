"""
Invoice normalizer
Canonicalizes raw invoice input before validation so identical invoices
always produce identical results.

Pipeline: raw input -> normalize -> validate
"""

import hashlib
import json
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional, Union

from models.invoice import InvoiceData, InvoiceType, LineItem, TaxType


PAISA = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Amounts of 10**15 or more are unreadable, which keeps paisa rounding exact
MAX_AMOUNT_DIGITS = 15

_WHITESPACE = re.compile(r"\s+")


def to_decimal(value: Any) -> Decimal:
    """Convert arbitrary input to Decimal, returning 0 on failure"""

    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            cleaned = str(value).replace(",", "").replace("₹", "").strip()
            result = Decimal(cleaned) if cleaned else ZERO
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite() or result.adjusted() >= MAX_AMOUNT_DIGITS:
        return ZERO
    return result


def round_money(value: Any) -> Decimal:
    """Round to 2 decimal places, half away from zero"""
    return to_decimal(value).quantize(PAISA, rounding=ROUND_HALF_UP)


def normalize_gstin(gstin: Optional[str]) -> str:
    """Uppercase, trim, remove all whitespace"""
    if not gstin:
        return ""
    return _WHITESPACE.sub("", str(gstin)).upper()


def normalize_invoice_number(number: Optional[str]) -> str:
    """Trim and collapse internal whitespace runs"""
    if not number:
        return ""
    return _WHITESPACE.sub(" ", str(number).strip())


def state_code_of(gstin: Optional[str]) -> str:
    """First two characters of a GSTIN, or '' when too short"""
    normalized = normalize_gstin(gstin)
    return normalized[:2] if len(normalized) >= 2 else ""


def is_same_state(gstin1: Optional[str], gstin2: Optional[str]) -> bool:
    state1 = state_code_of(gstin1)
    state2 = state_code_of(gstin2)
    return state1 != "" and state1 == state2


def _normalize_place_of_supply(value: Any) -> Optional[str]:
    if value is None:
        return None
    pos = str(value).strip()
    if not pos:
        return None
    if pos.isdigit() and len(pos) == 1:
        pos = pos.zfill(2)
    return pos


def _normalize_tax_type(value: Any) -> TaxType:
    if isinstance(value, TaxType):
        return value
    if value is not None and str(value).strip().upper() == TaxType.IGST.value:
        return TaxType.IGST
    return TaxType.CGST_SGST


def _normalize_invoice_type(value: Any) -> InvoiceType:
    if isinstance(value, InvoiceType):
        return value
    try:
        return InvoiceType(str(value).strip().lower())
    except ValueError:
        return InvoiceType.TAX_INVOICE


def _normalize_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1")
    return bool(value)


def _pick(data: Mapping, *keys: str, default: Any = None) -> Any:
    """Read the first key present, so camelCase and snake_case both work"""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _trimmed(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def normalize_line_item(item: Mapping, line_number: int) -> LineItem:
    """Normalize a single line item: coerce, round money, recalculate derived fields"""

    quantity = max(ZERO, to_decimal(_pick(item, "quantity")))
    rate = max(ZERO, round_money(_pick(item, "rate")))
    tax_rate = to_decimal(_pick(item, "taxRate", "tax_rate"))
    tax_type = _normalize_tax_type(_pick(item, "taxType", "tax_type"))

    taxable_amount = round_money(quantity * rate)
    total_tax = round_money(taxable_amount * tax_rate / HUNDRED)

    cgst = sgst = igst = ZERO
    if tax_type == TaxType.CGST_SGST:
        cgst = round_money(total_tax / 2)
        sgst = round_money(total_tax / 2)
    else:
        igst = total_tax

    hsn_code = _WHITESPACE.sub("", _trimmed(_pick(item, "hsnCode", "hsn_code")))

    return LineItem(
        line_number=line_number,
        description=_trimmed(_pick(item, "description")),
        hsn_code=hsn_code,
        quantity=quantity,
        rate=rate,
        taxable_amount=taxable_amount,
        tax_rate=tax_rate,
        tax_type=tax_type,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
        total_amount=round_money(taxable_amount + cgst + sgst + igst),
    )


def normalize_invoice(raw: Union[InvoiceData, Mapping[str, Any]]) -> InvoiceData:
    """
    Produce a canonical InvoiceData from raw input

    Accepts an InvoiceData or a plain mapping (camelCase or snake_case keys).
    Never mutates the input and never raises for malformed numbers: they
    degrade to 0. Normalizing an already normalized invoice is a no-op.
    """

    if isinstance(raw, InvoiceData):
        data: Mapping[str, Any] = raw.model_dump(by_alias=True)
    else:
        data = raw or {}

    raw_items = _pick(data, "lineItems", "line_items", default=[])
    if not isinstance(raw_items, (list, tuple)):
        raw_items = []

    items = []
    for item in raw_items:
        if item is None:
            continue
        if isinstance(item, LineItem):
            item = item.model_dump(by_alias=True)
        if not isinstance(item, Mapping):
            continue
        items.append(normalize_line_item(item, len(items) + 1))

    supplier_name = _pick(data, "supplierName", "supplier_name")
    buyer_name = _pick(data, "buyerName", "buyer_name")

    return InvoiceData(
        invoice_number=normalize_invoice_number(_pick(data, "invoiceNumber", "invoice_number")),
        invoice_date=_trimmed(_pick(data, "invoiceDate", "invoice_date")),
        invoice_type=_normalize_invoice_type(_pick(data, "invoiceType", "invoice_type")),
        supplier_gstin=normalize_gstin(_pick(data, "supplierGSTIN", "supplier_gstin")),
        buyer_gstin=normalize_gstin(_pick(data, "buyerGSTIN", "buyer_gstin")),
        supplier_name=_trimmed(supplier_name) if supplier_name is not None else None,
        buyer_name=_trimmed(buyer_name) if buyer_name is not None else None,
        line_items=items,
        taxable_total_amount=round_money(_pick(data, "taxableTotalAmount", "taxable_total_amount")),
        total_tax_amount=round_money(_pick(data, "totalTaxAmount", "total_tax_amount")),
        invoice_total_amount=round_money(_pick(data, "invoiceTotalAmount", "invoice_total_amount")),
        place_of_supply=_normalize_place_of_supply(_pick(data, "placeOfSupply", "place_of_supply")),
        reverse_charge=_normalize_bool(_pick(data, "reverseCharge", "reverse_charge", default=False)),
    )


def generate_invoice_hash(invoice: InvoiceData) -> str:
    """SHA-256 of the fields that influence validation, for idempotency"""

    key: Dict[str, Any] = {
        "invoiceNumber": invoice.invoice_number,
        "invoiceDate": invoice.invoice_date,
        "invoiceType": invoice.invoice_type.value,
        "supplierGSTIN": invoice.supplier_gstin,
        "buyerGSTIN": invoice.buyer_gstin,
        "placeOfSupply": invoice.place_of_supply,
        "reverseCharge": invoice.reverse_charge,
        "lineItems": [
            {
                "description": item.description,
                "hsnCode": item.hsn_code,
                "quantity": str(item.quantity),
                "rate": str(item.rate),
                "taxRate": str(item.tax_rate),
                "taxType": item.tax_type.value,
                "cgst": str(item.cgst),
                "sgst": str(item.sgst),
                "igst": str(item.igst),
            }
            for item in invoice.line_items
        ],
        "taxableTotalAmount": str(invoice.taxable_total_amount),
        "totalTaxAmount": str(invoice.total_tax_amount),
        "invoiceTotalAmount": str(invoice.invoice_total_amount),
    }
    payload = json.dumps(key, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
