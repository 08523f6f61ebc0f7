"""
Invoice data models using Pydantic
"""

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel
from typing import Annotated, Optional, List
from decimal import Decimal
from enum import Enum


class InvoiceType(str, Enum):
    TAX_INVOICE = "tax_invoice"
    BILL_OF_SUPPLY = "bill_of_supply"
    CREDIT_NOTE = "credit_note"
    DEBIT_NOTE = "debit_note"
    EXPORT_INVOICE = "export_invoice"


class TaxType(str, Enum):
    CGST_SGST = "CGST_SGST"
    IGST = "IGST"


# Wire format keeps the camelCase names used by existing consumers
WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
)

# Exact in Python, a plain JSON number on the wire
WireDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class LineItem(BaseModel):
    """Individual line item in invoice"""
    model_config = WIRE_CONFIG

    line_number: int = Field(default=1, ge=1)
    description: str = ""
    hsn_code: str = ""
    quantity: WireDecimal = Decimal("0")
    rate: WireDecimal = Decimal("0")
    taxable_amount: WireDecimal = Decimal("0")
    tax_rate: WireDecimal = Decimal("0")
    tax_type: TaxType = TaxType.CGST_SGST
    cgst: WireDecimal = Decimal("0")
    sgst: WireDecimal = Decimal("0")
    igst: WireDecimal = Decimal("0")
    total_amount: WireDecimal = Decimal("0")

    @property
    def total_tax(self) -> Decimal:
        return self.cgst + self.sgst + self.igst

    def label(self) -> str:
        """User-facing location string for issues on this line"""
        if self.description:
            return f"Line {self.line_number}: {self.description}"
        return f"Line {self.line_number}"


class InvoiceData(BaseModel):
    """Complete invoice data structure"""
    model_config = WIRE_CONFIG

    # Document Information
    invoice_number: str = ""
    invoice_date: str = ""
    invoice_type: InvoiceType = InvoiceType.TAX_INVOICE

    # Parties
    supplier_gstin: str = Field(default="", alias="supplierGSTIN")
    buyer_gstin: str = Field(default="", alias="buyerGSTIN")
    supplier_name: Optional[str] = None
    buyer_name: Optional[str] = None

    # Financial Details
    line_items: List[LineItem] = Field(default_factory=list)
    taxable_total_amount: WireDecimal = Decimal("0")
    total_tax_amount: WireDecimal = Decimal("0")
    invoice_total_amount: WireDecimal = Decimal("0")

    # GST Specific
    place_of_supply: Optional[str] = None
    reverse_charge: bool = False

    def line_tax_total(self) -> Decimal:
        """Sum of cgst + sgst + igst across all line items"""
        return sum((item.total_tax for item in self.line_items), Decimal("0"))

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
