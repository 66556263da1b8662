"""
Calculators Package

Provides all calculation components for the weekly ledger.
"""

from .allocation import (
    OLDEST_FIRST,
    AllocationPolicy,
    OldestFirstPolicy,
    PackageAllocator,
    pick_package_for_session,
)
from .breakdown import BreakdownCalculator
from .client_rows import ClientRowsCalculator
from .income_rates import IncomeRateResolver, format_income_rates, rates_effective_for_week
from .income_summary import IncomeSummaryCalculator
from .pricing import PriceHistoryLookup, PricingResolver, PricingTable, UnknownClientError
from .session_income import SessionIncomeCalculator, effective_rate

__all__ = [
    "PricingTable",
    "PriceHistoryLookup",
    "PricingResolver",
    "UnknownClientError",
    "IncomeRateResolver",
    "rates_effective_for_week",
    "format_income_rates",
    "PackageAllocator",
    "AllocationPolicy",
    "OldestFirstPolicy",
    "OLDEST_FIRST",
    "pick_package_for_session",
    "SessionIncomeCalculator",
    "effective_rate",
    "ClientRowsCalculator",
    "IncomeSummaryCalculator",
    "BreakdownCalculator",
]
