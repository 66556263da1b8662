"""
Pricing Resolver

Maps (tier, sessions purchased, training mode) to a price per class, and
resolves the price a client was charged on any historical date.
All prices are Decimal.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable

from ..dates import latest_effective
from ..models import (
    SEMI_PRIVATE,
    Client,
    ClientPriceHistory,
    PriceBracket,
    PriceSnapshot,
)

logger = logging.getLogger(__name__)


def _bracket(tier: int, sessions_min: int, sessions_max, price: str) -> PriceBracket:
    return PriceBracket(tier=tier, sessions_min=sessions_min, sessions_max=sessions_max, price=Decimal(price))


DEFAULT_PRICING: list[PriceBracket] = [
    _bracket(1, 1, 12, "150"),
    _bracket(1, 13, 20, "140"),
    _bracket(1, 21, None, "130"),
    _bracket(2, 1, 12, "165"),
    _bracket(2, 13, 20, "155"),
    _bracket(2, 21, None, "145"),
    _bracket(3, 1, 12, "180"),
    _bracket(3, 13, 20, "170"),
    _bracket(3, 21, None, "160"),
]


class UnknownClientError(ValueError):
    """Raised when a client-specific price is requested without a client."""


def _covers(sessions_min: int, sessions_max, count: int) -> bool:
    return count >= sessions_min and (sessions_max is None or count <= sessions_max)


class PricingTable:
    """Tier pricing table with session-count brackets."""

    def __init__(self, brackets: Iterable[PriceBracket] | None = None):
        rows = list(brackets) if brackets else list(DEFAULT_PRICING)
        self._by_tier: dict[int, list[PriceBracket]] = defaultdict(list)
        for row in rows:
            self._by_tier[row.tier].append(row)
        for tier_rows in self._by_tier.values():
            tier_rows.sort(key=lambda r: r.sessions_min)

    def bracket_for(self, tier: int, sessions_purchased: int) -> PriceBracket:
        """
        Find the bracket covering `sessions_purchased` for `tier`.

        Counts below 1 are treated as a single class. A table with a gap
        degrades to the tier's single-class row; an unknown tier uses the
        default table.
        """
        count = max(1, sessions_purchased)
        rows = self._by_tier.get(tier)
        if not rows:
            logger.warning(f"No pricing configured for tier {tier}, using default pricing")
            rows = [r for r in DEFAULT_PRICING if r.tier == tier] or [r for r in DEFAULT_PRICING if r.tier == 1]

        for row in rows:
            if _covers(row.sessions_min, row.sessions_max, count):
                return row

        logger.warning(f"No pricing bracket for tier {tier} at {count} sessions, using single-class price")
        return rows[0]

    def price_per_class(self, tier: int, sessions_purchased: int, mode: str | None = None) -> Decimal:
        row = self.bracket_for(tier, sessions_purchased)
        if mode == SEMI_PRIVATE:
            return row.price + row.mode_premium
        return row.price

    def snapshot_for_tier(self, tier: int) -> PriceSnapshot:
        """Prices a new client signing up at `tier` would be given."""
        return PriceSnapshot(
            price_1_12=self.price_per_class(tier, 1),
            price_13_20=self.price_per_class(tier, 13),
            price_21_plus=self.price_per_class(tier, 21),
            mode_premium=self.bracket_for(tier, 1).mode_premium,
        )


class PriceHistoryLookup:
    """Per-client price history, resolved by effective date."""

    def __init__(self, history: Iterable[ClientPriceHistory] | None = None):
        self._by_client: dict[int, list[ClientPriceHistory]] = defaultdict(list)
        for entry in history or []:
            self._by_client[entry.client_id].append(entry)

    def snapshot_on(self, client_id: int, on_date: date) -> PriceSnapshot | None:
        entry = latest_effective(self._by_client.get(client_id, []), on_date, key=lambda h: h.effective_date)
        return entry.snapshot if entry else None


class PricingResolver:
    """Resolves the price per class for a session or package."""

    def __init__(
        self,
        table: PricingTable | None = None,
        history: PriceHistoryLookup | None = None,
    ):
        self.table = table or PricingTable()
        self.history = history or PriceHistoryLookup()

    def client_price_per_class(
        self,
        client: Client | None,
        on_date: date,
        sessions_purchased: int,
        mode: str | None,
    ) -> Decimal:
        """
        Price a client was charged on `on_date`.

        Priority order:
        1. Most recent price-history entry effective on or before the date
        2. The client's stored price snapshot
        3. The pricing table at the client's signup tier
        """
        if client is None:
            raise UnknownClientError("Cannot resolve a client price without a client")

        snapshot = self.history.snapshot_on(client.id, on_date) or client.snapshot
        if snapshot is not None:
            return snapshot.price_for(sessions_purchased, mode)
        return self.table.price_per_class(client.tier_at_signup, sessions_purchased, mode)

    def price_per_class(
        self,
        client: Client | None,
        trainer_tier: int,
        on_date: date,
        sessions_purchased: int,
        mode: str | None,
    ) -> Decimal:
        """Client pricing when the client resolves, trainer-tier table pricing otherwise."""
        if client is None:
            return self.table.price_per_class(trainer_tier, sessions_purchased, mode)
        return self.client_price_per_class(client, on_date, sessions_purchased, mode)
