"""
Session Income Calculator

Prices a single session and applies the trainer's effective rate. Both the
income summary and the breakdown rows go through this calculator, so the
two views always agree.
"""

from decimal import Decimal

from ..models import PRIVATE, Client, Package, Session, WeeklyContext


def effective_rate(client: Client | None, trainer_id: int, base_rate: Decimal) -> Decimal:
    """
    Trainer's rate for one session.

    Personal clients add a bonus to the rate, but only for the trainer who
    owns the client, and only for that client's sessions.
    """
    if client is not None and client.is_personal_client and client.trainer_id == trainer_id:
        return base_rate + SessionIncomeCalculator.PERSONAL_CLIENT_BONUS
    return base_rate


class SessionIncomeCalculator:
    """Calculates what a trainer earns for a session."""

    PERSONAL_CLIENT_BONUS = Decimal("0.10")

    def governing_package(self, ctx: WeeklyContext, session: Session) -> Package | None:
        """
        The package a session is billed against when it happened.

        A session dated before its package started was a drop-in at the time,
        even if it has since been absorbed by that package.
        """
        if session.package_id is None:
            return None
        package = ctx.packages_by_id.get(session.package_id)
        if package is None or session.date < package.start_date:
            return None
        return package

    def session_mode(self, session: Session, package: Package | None, client: Client | None) -> str:
        if session.mode:
            return session.mode
        if package is not None and package.mode:
            return package.mode
        if client is not None:
            return client.mode
        return PRIVATE

    def price(self, ctx: WeeklyContext, session: Session) -> Decimal:
        """Price per class the client paid for `session`."""
        client = ctx.clients_by_id.get(session.client_id)
        package = self.governing_package(ctx, session)
        sessions_purchased = package.sessions_purchased if package else 1
        return ctx.pricing.price_per_class(
            client,
            ctx.trainer.tier,
            session.date,
            sessions_purchased,
            self.session_mode(session, package, client),
        )

    def income(self, ctx: WeeklyContext, session: Session, base_rate: Decimal) -> Decimal:
        """Trainer income for `session` at the week's base rate."""
        client = ctx.clients_by_id.get(session.client_id)
        return self.price(ctx, session) * effective_rate(client, ctx.trainer.id, base_rate)
