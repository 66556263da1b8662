"""
Income Rate Resolver

Maps a trainer's weekly class count to the fraction of class income the
trainer is paid, using time-versioned class-count brackets.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable

from ..dates import latest_effective
from ..models import IncomeRate, RateLookup

logger = logging.getLogger(__name__)

# Pre-filled for new trainers; must be explicitly saved
INITIAL_INCOME_RATES: list[dict] = [
    {"minClasses": 1, "maxClasses": None, "rate": 0.50},
]


def rates_effective_for_week(rates: Iterable[IncomeRate] | None, week_start: date) -> list[IncomeRate]:
    """Return the rate version with the greatest effective week on or before `week_start`."""
    rows = list(rates or [])
    latest = latest_effective(rows, week_start, key=lambda r: r.effective_week)
    if latest is None:
        return []
    return [r for r in rows if r.effective_week == latest.effective_week]


def format_income_rates(rates: Iterable[IncomeRate] | None) -> str:
    """Format rates for display, e.g. '1-12: 46% | 13+: 51%'."""
    rows = sorted(rates or [], key=lambda r: r.min_classes)
    if not rows:
        return "No rates configured"

    parts = []
    for tier in rows:
        span = f"{tier.min_classes}+" if tier.max_classes is None else f"{tier.min_classes}-{tier.max_classes}"
        parts.append(f"{span}: {round(tier.rate * 100)}%")
    return " | ".join(parts)


class IncomeRateResolver:
    """Resolves trainer pay rates from class-count brackets."""

    def lookup(self, rates: Iterable[IncomeRate] | None, class_count: int) -> RateLookup:
        """
        Find the bracket for `class_count` within one rate version.

        - No rows: rate 0, flagged as not configured
        - Below the first bracket (e.g. 0 classes): first bracket's rate
        - In a gap or past a bounded last bracket: rate 0, flagged as a gap
        """
        rows = sorted(rates or [], key=lambda r: r.min_classes)
        if not rows:
            return RateLookup(rate=Decimal("0"), configured=False)

        for tier in rows:
            if class_count >= tier.min_classes and (tier.max_classes is None or class_count <= tier.max_classes):
                return RateLookup(rate=tier.rate, bracket=tier, configured=True)

        if class_count < rows[0].min_classes:
            return RateLookup(rate=rows[0].rate, bracket=rows[0], configured=True)

        logger.warning(
            f"Income rates for trainer {rows[0].trainer_id} do not cover {class_count} classes: "
            f"{format_income_rates(rows)}"
        )
        return RateLookup(rate=Decimal("0"), configured=True, coverage_gap=True)

    def rate_for_week(
        self,
        rates: Iterable[IncomeRate] | None,
        trainer_id: int,
        week_start: date,
        class_count: int,
    ) -> RateLookup:
        """Resolve the rate in effect for `trainer_id` during the week starting `week_start`."""
        own_rates = [r for r in rates or [] if r.trainer_id == trainer_id]
        return self.lookup(rates_effective_for_week(own_rates, week_start), class_count)
