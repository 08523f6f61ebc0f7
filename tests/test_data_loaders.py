"""
Data loader tests (JSON invoice files, CSV line-item registers)
"""

import json

import pytest

from utils.data_loaders import InvoiceDataLoader, LineItemRegisterLoader
from utils.validators import parse_invoice


REGISTER_CSV = """invoice_number,invoice_date,supplier_gstin,buyer_gstin,place_of_supply,reverse_charge,taxable_total_amount,total_tax_amount,invoice_total_amount,description,hsn_code,quantity,rate,tax_rate,tax_type
INV/1,2024-09-15,27AABCT1234F1ZP,27AABCF9999K1ZX,,no,1500,270,1770,Bluetooth speaker,8518,1,1000,18,CGST_SGST
INV/1,2024-09-15,27AABCT1234F1ZP,27AABCF9999K1ZX,,no,1500,270,1770,Speaker stand,8518,2,250,18,CGST_SGST
INV/2,2024-09-20,07AABCT1234F1ZP,29AABCF9999K1ZX,29,yes,100,5,105,Milk,0401,10,10,5,IGST
"""


class TestInvoiceDataLoader:

    def test_list_file(self, tmp_path, valid_payload):
        invoice_file = tmp_path / "invoices.json"
        invoice_file.write_text(json.dumps([valid_payload, dict(valid_payload, invoiceNumber="INV/2")]))

        loader = InvoiceDataLoader(invoice_file)

        assert len(loader) == 2
        assert loader.get_invoice("INV/2")["invoiceNumber"] == "INV/2"

    def test_wrapped_and_single_invoice_files(self, tmp_path, valid_payload):
        wrapped = tmp_path / "wrapped.json"
        wrapped.write_text(json.dumps({"invoices": [valid_payload]}))
        single = tmp_path / "single.json"
        single.write_text(json.dumps(valid_payload))

        assert len(InvoiceDataLoader(wrapped)) == 1
        assert InvoiceDataLoader(single).invoices == [valid_payload]

    def test_unknown_invoice(self, tmp_path, valid_payload):
        invoice_file = tmp_path / "invoices.json"
        invoice_file.write_text(json.dumps([valid_payload]))

        with pytest.raises(ValueError, match="INV/9"):
            InvoiceDataLoader(invoice_file).get_invoice("INV/9")

    def test_not_an_invoice_file(self, tmp_path):
        invoice_file = tmp_path / "invoices.json"
        invoice_file.write_text('"just a string"')

        with pytest.raises(ValueError):
            InvoiceDataLoader(invoice_file)


class TestLineItemRegisterLoader:

    @pytest.fixture
    def register_file(self, tmp_path):
        path = tmp_path / "register.csv"
        path.write_text(REGISTER_CSV)
        return path

    def test_rows_grouped_by_invoice(self, register_file):
        invoices = LineItemRegisterLoader(register_file).load_invoices()

        assert [inv["invoiceNumber"] for inv in invoices] == ["INV/1", "INV/2"]
        assert [item["lineNumber"] for item in invoices[0]["lineItems"]] == [1, 2]
        assert invoices[0]["lineItems"][1]["description"] == "Speaker stand"

    def test_codes_stay_text(self, register_file):
        second = LineItemRegisterLoader(register_file).load_invoices()[1]

        assert second["supplierGSTIN"] == "07AABCT1234F1ZP"
        assert second["lineItems"][0]["hsnCode"] == "0401"
        assert second["placeOfSupply"] == "29"
        assert second["reverseCharge"] is True

    def test_blank_cells_omitted(self, register_file):
        first = LineItemRegisterLoader(register_file).load_invoices()[0]

        assert "placeOfSupply" not in first
        assert first["reverseCharge"] is False

    def test_payloads_pass_the_input_boundary(self, register_file, orchestrator):
        invoices = [parse_invoice(p) for p in LineItemRegisterLoader(register_file).load_invoices()]

        assert orchestrator.validate(invoices[0]).issues_found == []

    def test_missing_invoice_number_column(self, tmp_path):
        path = tmp_path / "register.csv"
        path.write_text("description,quantity\nWidget,1\n")

        with pytest.raises(ValueError):
            LineItemRegisterLoader(path)
