"""
Rule registry
The canonical, ordered rule set. Order only affects reporting order.
"""

from datetime import date
from typing import Callable

from validators.arithmetic_validator import InvoiceTotalRule, TaxableSumRule
from validators.base import RuleSet
from validators.document_validator import HSNCodeRule, InvoiceDateRule, InvoiceNumberRule
from validators.gstin_validator import DuplicateGSTINRule, GSTINFormatRule, StateCodeRule
from validators.supply_validator import InvoiceTypeRule, PlaceOfSupplyRule, ReverseChargeRule
from validators.tax_validator import (
    CGSTSGSTSplitRule,
    GSTCalculationRule,
    TaxRateRule,
    TaxTypeRule,
)


def default_rule_set(clock: Callable[[], date] = date.today) -> RuleSet:
    """Build the full rule set; `clock` supplies "today" for date checks"""

    return RuleSet([
        GSTINFormatRule(),
        StateCodeRule(),
        DuplicateGSTINRule(),
        TaxTypeRule(),
        TaxRateRule(),
        GSTCalculationRule(),
        CGSTSGSTSplitRule(),
        HSNCodeRule(),
        InvoiceNumberRule(),
        InvoiceDateRule(clock=clock),
        TaxableSumRule(),
        InvoiceTotalRule(),
        PlaceOfSupplyRule(),
        InvoiceTypeRule(),
        ReverseChargeRule(),
    ])
