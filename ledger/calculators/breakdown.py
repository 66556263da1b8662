"""
Breakdown Calculator

Itemizes a trainer's week: package sales, sales bonuses, sessions and late
fees. Session, bonus and late-fee rows add up to the income summary's
final income plus its backfill adjustment.
"""

from ..models import WeeklyBreakdownRow, WeeklyContext
from .session_income import SessionIncomeCalculator

UNKNOWN_CLIENT = "Unknown client"


class BreakdownCalculator:
    """Builds the weekly line items."""

    def __init__(self, session_income: SessionIncomeCalculator | None = None):
        self.session_income = session_income or SessionIncomeCalculator()

    def calculate(self, ctx: WeeklyContext) -> list[WeeklyBreakdownRow]:
        rows = (
            self._package_rows(ctx)
            + self._bonus_rows(ctx)
            + self._session_rows(ctx)
            + self._late_fee_rows(ctx)
        )
        # stable: same-date rows keep package, bonus, session, lateFee order
        return sorted(rows, key=lambda r: r.date)

    def _client_name(self, ctx: WeeklyContext, client_id) -> str:
        client = ctx.clients_by_id.get(client_id)
        return client.name if client is not None else UNKNOWN_CLIENT

    def _package_rows(self, ctx: WeeklyContext) -> list[WeeklyBreakdownRow]:
        """Sale value of each package bought this week (not trainer income)."""
        rows = []
        for package in ctx.weekly_packages:
            client = ctx.clients_by_id.get(package.client_id)
            mode = package.mode or (client.mode if client is not None else None)
            price = ctx.pricing.price_per_class(
                client,
                ctx.trainer.tier,
                package.start_date,
                package.sessions_purchased,
                mode,
            )
            rows.append(
                WeeklyBreakdownRow(
                    id=package.id,
                    date=package.start_date,
                    client_name=self._client_name(ctx, package.client_id),
                    type="package",
                    amount=price * package.sessions_purchased,
                )
            )
        return rows

    def _bonus_rows(self, ctx: WeeklyContext) -> list[WeeklyBreakdownRow]:
        return [
            WeeklyBreakdownRow(
                id=f"{package.id}-bonus",
                date=package.start_date,
                client_name=self._client_name(ctx, package.client_id),
                type="bonus",
                amount=package.sales_bonus,
            )
            for package in ctx.weekly_packages
            if package.trainer_id == ctx.trainer.id and package.sales_bonus and package.sales_bonus > 0
        ]

    def _session_rows(self, ctx: WeeklyContext) -> list[WeeklyBreakdownRow]:
        rate = ctx.rate_lookup.rate
        return [
            WeeklyBreakdownRow(
                id=session.id,
                date=session.date,
                client_name=self._client_name(ctx, session.client_id),
                type="session",
                amount=self.session_income.income(ctx, session, rate),
            )
            for session in ctx.weekly_sessions
        ]

    def _late_fee_rows(self, ctx: WeeklyContext) -> list[WeeklyBreakdownRow]:
        return [
            WeeklyBreakdownRow(
                id=fee.id,
                date=fee.date,
                client_name=self._client_name(ctx, fee.client_id),
                type="lateFee",
                amount=fee.amount,
            )
            for fee in ctx.weekly_late_fees
        ]
