"""
Income Summary Calculator

Aggregates one trainer's week into a single total:

    final = class income + sales bonuses + late fees - backfill adjustment
"""

from decimal import Decimal

from ..dates import week_range
from ..models import IncomeSummary, Package, Session, WeeklyContext
from .income_rates import IncomeRateResolver
from .session_income import SessionIncomeCalculator, effective_rate


class IncomeSummaryCalculator:
    """Calculates a trainer's weekly income summary."""

    def __init__(self, session_income: SessionIncomeCalculator | None = None, rates: IncomeRateResolver | None = None):
        self.session_income = session_income or SessionIncomeCalculator()
        self.rates = rates or IncomeRateResolver()

    def calculate(self, ctx: WeeklyContext) -> IncomeSummary:
        rate_lookup = ctx.rate_lookup
        rate = rate_lookup.rate

        class_income = sum(
            (self.session_income.income(ctx, s, rate) for s in ctx.weekly_sessions),
            Decimal("0"),
        )
        bonus_income = sum(
            (p.sales_bonus or Decimal("0") for p in ctx.weekly_packages if p.trainer_id == ctx.trainer.id),
            Decimal("0"),
        )
        late_fee_income = sum((f.amount for f in ctx.weekly_late_fees), Decimal("0"))
        backfill = self._calculate_backfill(ctx)

        return IncomeSummary(
            total_classes_this_week=len(ctx.weekly_sessions),
            rate=rate,
            rates_configured=rate_lookup.configured,
            rate_coverage_gap=rate_lookup.coverage_gap,
            class_income=class_income,
            bonus_income=bonus_income,
            late_fee_income=late_fee_income,
            backfill_adjustment=backfill,
            final_weekly_income=class_income + bonus_income + late_fee_income - backfill,
        )

    def _calculate_backfill(self, ctx: WeeklyContext) -> Decimal:
        """
        Deduct what was overpaid for sessions absorbed into this week's packages.

        A session dated before its package started was credited at the
        single-class price. Once a package bought this week absorbs it, the
        trainer keeps only the package price. Each session is adjusted at the
        rate of the week it happened in, which may be this week.
        """
        trainer_id = ctx.trainer.id
        total = Decimal("0")

        for package in ctx.weekly_packages:
            if package.trainer_id != trainer_id:
                continue
            client = ctx.clients_by_id.get(package.client_id)
            if client is None:
                continue

            package_price = ctx.pricing.client_price_per_class(
                client,
                package.start_date,
                package.sessions_purchased,
                package.mode or client.mode,
            )

            for session in self._backfilled_sessions(ctx, package):
                single_price = ctx.pricing.client_price_per_class(
                    client,
                    session.date,
                    1,
                    session.mode or client.mode or package.mode,
                )
                diff = single_price - package_price
                # never add money back
                if diff <= 0:
                    continue
                original_rate = self._rate_for_session_week(ctx, session)
                total += diff * effective_rate(client, trainer_id, original_rate)

        return total

    def _backfilled_sessions(self, ctx: WeeklyContext, package: Package) -> list[Session]:
        return [
            s for s in ctx.all_sessions
            if s.trainer_id == ctx.trainer.id
            and s.client_id == package.client_id
            and s.package_id == package.id
            and s.date < package.start_date
        ]

    def _rate_for_session_week(self, ctx: WeeklyContext, session: Session) -> Decimal:
        week = week_range(session.date)
        classes = sum(
            1 for s in ctx.all_sessions
            if s.trainer_id == ctx.trainer.id and week.contains(s.date)
        )
        return self.rates.rate_for_week(ctx.income_rates, ctx.trainer.id, week.start, classes).rate
