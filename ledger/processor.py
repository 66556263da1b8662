"""
Weekly Dashboard Processor - Main Orchestrator

Coordinates a trainer's weekly computation through discrete, testable steps.
"""

import json
from typing import Any, Dict

from .calculators import (
    BreakdownCalculator,
    ClientRowsCalculator,
    IncomeRateResolver,
    IncomeSummaryCalculator,
    PackageAllocator,
    PriceHistoryLookup,
    PricingResolver,
    PricingTable,
    SessionIncomeCalculator,
)
from .models import AllocationInput, WeeklyContext, WeeklyInput, WeeklyResult
from .output import OutputBuilder
from .validators import InputValidator


class WeeklyDashboardProcessor:
    """
    Main orchestrator for the weekly dashboard.

    Implements a clear pipeline pattern:
    1. Validate Input
    2. Build Context (week filtering, lookups, week rate)
    3. Compute Client Rows
    4. Compute Income Summary
    5. Compute Breakdown Rows
    6. Build Output
    """

    def __init__(self):
        self.validator = InputValidator()
        self.rate_resolver = IncomeRateResolver()
        session_income = SessionIncomeCalculator()
        self.client_rows_calculator = ClientRowsCalculator()
        self.income_summary_calculator = IncomeSummaryCalculator(session_income, self.rate_resolver)
        self.breakdown_calculator = BreakdownCalculator(session_income)
        self.allocator = PackageAllocator()
        self.output_builder = OutputBuilder()

    def process(self, input_data: WeeklyInput) -> WeeklyResult:
        """
        Compute a trainer's week through the complete pipeline.

        Args:
            input_data: WeeklyInput object

        Returns:
            WeeklyResult with client rows, income summary and breakdown rows
        """
        # Step 1: Validate
        self.validator.validate(input_data)

        # Step 2: Build context
        ctx = self.build_context(input_data)

        # Step 3: Client rows
        ctx.client_rows = self.client_rows_calculator.calculate(ctx)

        # Step 4: Income summary
        ctx.income_summary = self.income_summary_calculator.calculate(ctx)

        # Step 5: Breakdown rows
        ctx.breakdown_rows = self.breakdown_calculator.calculate(ctx)

        # Step 6: Build output
        return self.output_builder.build(ctx)

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Compute a week from raw dictionary input.

        Convenience method for API usage.
        """
        input_data = WeeklyInput.from_dict(data)
        result = self.process(input_data)
        return self.output_builder.result_to_dict(result)

    def allocate_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Rebalance one client's sessions from raw dictionary input."""
        input_data = AllocationInput.from_dict(data)
        self.validator.validate_allocation(input_data)
        result = self.allocator.allocate(
            input_data.packages,
            input_data.sessions,
            client_id=input_data.client_id,
            trainer_id=input_data.trainer_id,
            shared=input_data.shared,
        )
        return self.output_builder.build_allocation(result)

    def build_context(self, input_data: WeeklyInput) -> WeeklyContext:
        """
        Build the processing context for the target week.

        Records of clients archived before the week are dropped; records of
        unknown clients are kept and shown as "Unknown client".
        """
        trainer = input_data.trainer
        week = input_data.week
        clients_by_id = {c.id: c for c in input_data.clients}

        def visible(client_id) -> bool:
            client = clients_by_id.get(client_id)
            return client is None or client.is_visible_for_week(week.start)

        roster_ids = {c.id for c in input_data.clients if c.is_on_roster(trainer.id)}

        weekly_sessions = [
            s for s in input_data.sessions
            if s.trainer_id == trainer.id and week.contains(s.date) and visible(s.client_id)
        ]
        weekly_packages = [
            p for p in input_data.packages
            if (p.trainer_id == trainer.id or p.client_id in roster_ids)
            and week.contains(p.start_date)
            and visible(p.client_id)
        ]
        weekly_late_fees = [
            f for f in input_data.late_fees
            if f.trainer_id == trainer.id and week.contains(f.date) and visible(f.client_id)
        ]
        roster = [
            c for c in input_data.clients
            if c.id in roster_ids and c.is_visible_for_week(week.start)
        ]

        ctx = WeeklyContext(
            trainer=trainer,
            week=week,
            clients=input_data.clients,
            packages=input_data.packages,
            all_sessions=input_data.sessions,
            income_rates=input_data.income_rates,
            weekly_sessions=weekly_sessions,
            weekly_packages=weekly_packages,
            weekly_late_fees=weekly_late_fees,
            roster=roster,
            clients_by_id=clients_by_id,
            packages_by_id={p.id: p for p in input_data.packages},
            pricing=PricingResolver(
                PricingTable(input_data.pricing),
                PriceHistoryLookup(input_data.price_history),
            ),
        )
        ctx.rate_lookup = self.rate_resolver.rate_for_week(
            input_data.income_rates,
            trainer.id,
            week.start,
            len(weekly_sessions),
        )
        return ctx


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def process_week_from_dict(input_data: Dict[str, Any]) -> Dict[str, Any]:
    """Compute a week from a Python dict and return a Python dict."""
    processor = WeeklyDashboardProcessor()
    return processor.process_from_dict(input_data)


def allocate_from_dict(input_data: Dict[str, Any]) -> Dict[str, Any]:
    """Rebalance a client's sessions from a Python dict and return a Python dict."""
    processor = WeeklyDashboardProcessor()
    return processor.allocate_from_dict(input_data)


def process_week_from_json(json_input: str) -> str:
    """
    Compute a week from a JSON string and return a JSON string.
    Errors are reported in the payload instead of raised.
    """
    try:
        input_data = json.loads(json_input)
        processor = WeeklyDashboardProcessor()
        result = processor.process_from_dict(input_data)
        return json.dumps(result, indent=2)

    except (ValueError, KeyError, TypeError) as e:
        error_response = {"error": str(e), "status": "validation_failed"}
        return json.dumps(error_response, indent=2)
