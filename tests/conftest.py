"""
Shared fixtures

The baseline invoice is a fully correct intra-state (Maharashtra) invoice
that must produce zero issues. Tests break one thing at a time.
"""

import copy
from datetime import date

import pytest

from agents.orchestrator import OrchestratorAgent
from utils.normalizer import normalize_invoice


FIXED_TODAY = date(2024, 10, 1)

SUPPLIER_GSTIN = "27AABCT1234F1ZP"
BUYER_GSTIN = "27AABCF9999K1ZX"
INTERSTATE_BUYER_GSTIN = "29AABCF9999K1ZX"

VALID_INVOICE = {
    "invoiceNumber": "INV/1",
    "invoiceDate": "2024-09-15",
    "supplierGSTIN": SUPPLIER_GSTIN,
    "buyerGSTIN": BUYER_GSTIN,
    "supplierName": "Acme Audio Pvt Ltd",
    "buyerName": "Sound Retail LLP",
    "lineItems": [
        {
            "description": "Bluetooth speaker",
            "hsnCode": "8518",
            "quantity": 1,
            "rate": 1000,
            "taxRate": 18,
            "taxType": "CGST_SGST",
            "cgst": 90,
            "sgst": 90,
            "igst": 0,
        }
    ],
    "taxableTotalAmount": 1000,
    "totalTaxAmount": 180,
    "invoiceTotalAmount": 1180,
}


def fixed_clock() -> date:
    return FIXED_TODAY


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def valid_payload():
    """Fresh copy of the baseline wire payload"""
    return copy.deepcopy(VALID_INVOICE)


@pytest.fixture
def make_payload():
    """Baseline payload with top-level and first-line overrides"""

    def factory(line=None, **overrides):
        payload = copy.deepcopy(VALID_INVOICE)
        if line:
            payload["lineItems"][0].update(line)
        payload.update(overrides)
        return payload

    return factory


@pytest.fixture
def make_invoice(make_payload):
    """Normalized InvoiceData built from the baseline payload"""

    def factory(line=None, **overrides):
        return normalize_invoice(make_payload(line, **overrides))

    return factory


@pytest.fixture
def orchestrator():
    return OrchestratorAgent(clock=fixed_clock)
