"""
Output Builder

Constructs the final API response from the processing context.
"""

from decimal import Decimal
from typing import Any, Dict

from .calculators.income_rates import format_income_rates, rates_effective_for_week
from .models import (
    AllocationResult,
    IncomeSummary,
    Session,
    WeeklyBreakdownRow,
    WeeklyClientRow,
    WeeklyContext,
    WeeklyResult,
)


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return round(float(value), 2)


class OutputBuilder:
    """Builds the final output response."""

    def build(self, ctx: WeeklyContext) -> WeeklyResult:
        """Construct the complete weekly result from the processing context."""
        return WeeklyResult(
            trainer=self._build_trainer(ctx),
            week={"start": ctx.week.start.isoformat(), "end": ctx.week.end.isoformat()},
            client_rows=[self._client_row(row) for row in ctx.client_rows],
            income_summary=self._income_summary(ctx.income_summary),
            breakdown_rows=[self._breakdown_row(row) for row in ctx.breakdown_rows],
        )

    def result_to_dict(self, result: WeeklyResult) -> Dict[str, Any]:
        """Convert WeeklyResult to dictionary for API response."""
        return {
            "trainer": result.trainer,
            "week": result.week,
            "clientRows": result.client_rows,
            "incomeSummary": result.income_summary,
            "breakdownRows": result.breakdown_rows,
        }

    def build_allocation(self, result: AllocationResult) -> Dict[str, Any]:
        return {
            "sessions": [self._session(s) for s in result.sessions],
            "moves": [
                {
                    "sessionId": move.session_id,
                    "fromPackageId": move.from_package_id,
                    "toPackageId": move.to_package_id,
                    "reason": move.reason,
                }
                for move in result.moves
            ],
            "changed": result.changed,
        }

    def _build_trainer(self, ctx: WeeklyContext) -> dict:
        trainer = ctx.trainer
        own_rates = [r for r in ctx.income_rates if r.trainer_id == trainer.id]
        return {
            "id": trainer.id,
            "name": trainer.name,
            "tier": trainer.tier,
            "incomeRates": format_income_rates(rates_effective_for_week(own_rates, ctx.week.start)),
        }

    def _client_row(self, row: WeeklyClientRow) -> dict:
        return {
            "clientId": row.client_id,
            "clientName": row.client_name,
            "packageDisplay": row.package_display,
            "usedDisplay": row.used_display,
            "remainingDisplay": row.remaining_display,
            "weekCount": row.week_count,
            "totalRemaining": row.total_remaining,
        }

    def _income_summary(self, summary: IncomeSummary) -> dict:
        return {
            "totalClassesThisWeek": summary.total_classes_this_week,
            "rate": float(summary.rate),
            "ratesConfigured": summary.rates_configured,
            "rateCoverageGap": summary.rate_coverage_gap,
            "classIncome": to_money(summary.class_income),
            "bonusIncome": to_money(summary.bonus_income),
            "lateFeeIncome": to_money(summary.late_fee_income),
            "backfillAdjustment": to_money(summary.backfill_adjustment),
            "finalWeeklyIncome": to_money(summary.final_weekly_income),
        }

    def _breakdown_row(self, row: WeeklyBreakdownRow) -> dict:
        return {
            "id": row.id,
            "date": row.date.isoformat(),
            "clientName": row.client_name,
            "type": row.type,
            "amount": to_money(row.amount),
        }

    def _session(self, session: Session) -> dict:
        return {
            "id": session.id,
            "clientId": session.client_id,
            "trainerId": session.trainer_id,
            "date": session.date.isoformat(),
            "packageId": session.package_id,
            "mode": session.mode,
            "location": session.location,
        }
