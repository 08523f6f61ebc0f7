"""
GST Invoice Compliance Checker
Command-line entry point

Usage:
    python main.py <invoices.json> [invoice_number]   # Validate single invoice
    python main.py --batch <invoices.json>            # Validate every invoice in a file
    python main.py --csv <register.csv>               # Validate a CSV line-item register
"""

import asyncio
import json
import logging
import sys
from typing import Dict, List

from agents.orchestrator import OrchestratorAgent
from agents.reporter import ReporterAgent
from models.errors import InvoiceInputError
from utils.config import get_reports_dir, default_config, load_config
from utils.data_loaders import InvoiceDataLoader, LineItemRegisterLoader
from utils.validators import parse_invoice


USAGE = """
GST Invoice Compliance Checker - Usage

Single Invoice:
    python main.py <invoices.json> [invoice_number]
    Example: python main.py invoices.json INV-2024-0001
    (without invoice_number the first invoice in the file is checked)

Batch Processing:
    python main.py --batch <invoices.json>       # All invoices in a JSON file
    python main.py --csv <register.csv>          # CSV line-item register

Options:
    --help          Show this help message

Environment:
    GST_CHECKER_CONFIG    Path to config file (default: config.yaml)
    LOG_LEVEL             Override logging level
    REPORTS_DIR           Where JSON reports are written
    RESULT_CACHE_ENABLED  Reuse results for identical invoices
"""


class ComplianceValidator:
    """Main compliance validator application"""

    def __init__(self, config_path: str = None):
        # Load configuration
        self.config = self._load_config(config_path)

        logging.basicConfig(
            level=self.config['logging']['level'],
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        # Initialize agents
        self.orchestrator = OrchestratorAgent(self.config)
        self.reporter = ReporterAgent(self.config)

        self.reports_dir = get_reports_dir(self.config)

    def _load_config(self, config_path: str) -> dict:
        """Load configuration"""
        try:
            return load_config(config_path)
        except FileNotFoundError as e:
            print(f"⚠️  {e}, using defaults")
            return default_config()

    def _save_report(self, filename: str, content: str):
        report_file = self.reports_dir / filename
        report_file.parent.mkdir(parents=True, exist_ok=True)
        with open(report_file, 'w', encoding='utf-8') as f:
            f.write(content)
        print(f"\n💾 JSON report saved: {report_file}")

    async def validate_single(self, invoice_file: str, invoice_number: str = None):
        """Validate a single invoice"""

        print("\n🚀 GST Compliance Checker - Single Invoice Mode")
        print("=" * 80)

        # Load invoice
        try:
            loader = InvoiceDataLoader(invoice_file)
            if invoice_number:
                invoice_json = loader.get_invoice(invoice_number)
            elif len(loader):
                invoice_json = loader.invoices[0]
            else:
                print(f"❌ Error: {invoice_file} contains no invoices")
                return
        except (OSError, ValueError) as e:
            print(f"❌ Error: {e}")
            return

        label = (invoice_json.get('invoiceNumber') if isinstance(invoice_json, dict) else None) or invoice_number or 'invoice'
        print(f"\n📄 Loading invoice: {label}")

        try:
            invoice_data = parse_invoice(invoice_json)
        except InvoiceInputError as e:
            print(f"❌ Invalid invoice data: {e}")
            for error in e.errors:
                print(f"   - {error}")
            return

        # Process
        result = await self.orchestrator.process_invoice(invoice_data)

        # Generate report
        if result['status'] == 'success':
            validation_result = result['validation_result']
            print("\n" + self.reporter.generate_console_report(validation_result))
            self._save_report(
                f"{validation_result.check_id}_report.json",
                self.reporter.generate_json_report(validation_result),
            )
        else:
            print(f"\n❌ Validation failed: {result.get('error')}")

    async def validate_batch(self, invoices_json: List[Dict], source: str):
        """Validate multiple invoices"""

        print("\n🚀 GST Compliance Checker - Batch Mode")
        print("=" * 80)
        print(f"\n📦 Processing {len(invoices_json)} invoices from {source}")

        # Reject malformed payloads up front, keep the rest
        invoices_data = []
        for i, inv_json in enumerate(invoices_json, 1):
            try:
                invoices_data.append(parse_invoice(inv_json))
            except InvoiceInputError as e:
                number = inv_json.get('invoiceNumber', f'#{i}') if isinstance(inv_json, dict) else f'#{i}'
                print(f"   ⚠️  Skipping {number}: {'; '.join(e.errors)}")

        batch_results = await self.orchestrator.process_batch(invoices_data)

        print(f"\n   Validated: {batch_results['successful']}/{batch_results['total_invoices']}")
        print(f"   Average health score: {batch_results['average_health_score']:.1f}")
        print(f"   Risk levels: {batch_results['risk_levels']}")

        # Show individual results
        print("\n" + "=" * 80)
        print("INDIVIDUAL RESULTS")
        print("=" * 80)

        rows = []
        for inv_data, result in zip(invoices_data, batch_results['results']):
            number = inv_data.invoice_number or '(no number)'
            if result['status'] != 'success':
                print(f"✗ {number:20s} | ERROR: {result.get('error')}")
                rows.append({'invoiceNumber': number, 'status': 'ERROR'})
                continue

            val_result = result['validation_result']
            breakdown = val_result.score_breakdown
            status_symbol = '✓' if not val_result.issues_found else '✗' if breakdown.critical_count else '○'
            print(f"{status_symbol} {number:20s} | "
                  f"Score: {val_result.health_score:>3d} | "
                  f"Risk: {val_result.risk_level.value:6s} | "
                  f"C:{breakdown.critical_count:2d} W:{breakdown.warning_count:2d} I:{breakdown.info_count:2d}")
            rows.append({
                'invoiceNumber': number,
                'status': 'checked',
                'checkId': val_result.check_id,
                'healthScore': val_result.health_score,
                'riskLevel': val_result.risk_level.value,
                'issues': len(val_result.issues_found),
            })

        print("=" * 80)

        # Save batch report
        self._save_report("batch_report.json", json.dumps({
            'summary': {
                'totalInvoices': len(invoices_json),
                'rejected': len(invoices_json) - len(invoices_data),
                'successful': batch_results['successful'],
                'failed': batch_results['failed'],
                'totalIssues': batch_results['total_issues'],
                'criticalIssues': batch_results['critical_issues'],
                'riskLevels': batch_results['risk_levels'],
                'averageHealthScore': batch_results['average_health_score'],
            },
            'invoices': rows,
        }, indent=2))


async def main(argv: List[str] = None):
    """Main entry point"""

    args = sys.argv[1:] if argv is None else argv

    if not args or args[0] == '--help':
        print(USAGE)
        return

    validator = ComplianceValidator()

    # Parse command line arguments
    if args[0] == '--batch' and len(args) > 1:
        try:
            loader = InvoiceDataLoader(args[1])
        except (OSError, ValueError) as e:
            print(f"❌ Error: {e}")
            return
        await validator.validate_batch(loader.invoices, args[1])
    elif args[0] == '--csv' and len(args) > 1:
        try:
            invoices = LineItemRegisterLoader(args[1]).load_invoices()
        except (OSError, ValueError) as e:
            print(f"❌ Error: {e}")
            return
        await validator.validate_batch(invoices, args[1])
    elif args[0].startswith('--'):
        print(USAGE)
    else:
        await validator.validate_single(args[0], args[1] if len(args) > 1 else None)


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
