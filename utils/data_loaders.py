"""
Data loaders for invoice files
"""

import json
import pandas as pd
from pathlib import Path
from typing import Any, Dict, List, Union


class InvoiceDataLoader:
    """Load invoices from a JSON file (a list, or {"invoices": [...]})"""

    def __init__(self, invoice_file: Union[str, Path]):
        self.invoice_file = Path(invoice_file)
        self.invoices = self._load_invoices()

    def _load_invoices(self) -> List[Dict]:
        """Load all invoices"""
        with open(self.invoice_file, encoding="utf-8") as f:
            data = json.load(f)

        if isinstance(data, dict):
            data = data.get('invoices', [data])
        if not isinstance(data, list):
            raise ValueError(f"{self.invoice_file} must contain an invoice or a list of invoices")
        return data

    def get_invoice(self, invoice_number: str) -> Dict:
        """Get specific invoice by number"""
        for inv in self.invoices:
            if isinstance(inv, dict) and inv.get('invoiceNumber', inv.get('invoice_number')) == invoice_number:
                return inv
        raise ValueError(f"Invoice {invoice_number} not found")

    def __len__(self) -> int:
        return len(self.invoices)


class LineItemRegisterLoader:
    """
    Load invoices from a CSV line-item register

    One row per line item; header fields repeat on every row of an invoice.
    Rows are grouped by invoice_number in file order.
    """

    HEADER_COLUMNS = {
        'invoice_number': 'invoiceNumber',
        'invoice_date': 'invoiceDate',
        'invoice_type': 'invoiceType',
        'supplier_gstin': 'supplierGSTIN',
        'buyer_gstin': 'buyerGSTIN',
        'supplier_name': 'supplierName',
        'buyer_name': 'buyerName',
        'place_of_supply': 'placeOfSupply',
        'reverse_charge': 'reverseCharge',
        'taxable_total_amount': 'taxableTotalAmount',
        'total_tax_amount': 'totalTaxAmount',
        'invoice_total_amount': 'invoiceTotalAmount',
    }

    LINE_COLUMNS = {
        'description': 'description',
        'hsn_code': 'hsnCode',
        'quantity': 'quantity',
        'rate': 'rate',
        'tax_rate': 'taxRate',
        'tax_type': 'taxType',
        'cgst': 'cgst',
        'sgst': 'sgst',
        'igst': 'igst',
    }

    def __init__(self, register_file: Union[str, Path]):
        self.register_file = Path(register_file)
        self.rows_df = self._load_rows()

    def _load_rows(self) -> pd.DataFrame:
        """Load register, keeping codes (GSTIN, HSN, state) as text"""
        df = pd.read_csv(self.register_file, dtype=str, keep_default_na=False)
        df.columns = [c.strip().lower() for c in df.columns]

        if 'invoice_number' not in df.columns:
            raise ValueError(f"{self.register_file} has no invoice_number column")

        for column in df.columns:
            df[column] = df[column].str.strip()
        return df

    def _header_for(self, rows: pd.DataFrame) -> Dict[str, Any]:
        first = rows.iloc[0]
        header: Dict[str, Any] = {}
        for column, wire_name in self.HEADER_COLUMNS.items():
            if column not in rows.columns:
                continue
            value = first[column]
            if column == 'reverse_charge':
                value = value.lower() in ('true', 'yes', 'y', '1')
            elif value == '':
                continue
            header[wire_name] = value
        return header

    def _line_items_for(self, rows: pd.DataFrame) -> List[Dict[str, Any]]:
        items = []
        for line_number, (_, row) in enumerate(rows.iterrows(), 1):
            item: Dict[str, Any] = {'lineNumber': line_number}
            for column, wire_name in self.LINE_COLUMNS.items():
                if column in rows.columns and row[column] != '':
                    item[wire_name] = row[column]
            items.append(item)
        return items

    def load_invoices(self) -> List[Dict[str, Any]]:
        """Group rows into wire-format invoice payloads"""
        invoices = []
        for _, rows in self.rows_df.groupby('invoice_number', sort=False):
            payload = self._header_for(rows)
            payload['lineItems'] = self._line_items_for(rows)
            invoices.append(payload)
        return invoices
