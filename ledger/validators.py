"""
Input Validation for the Trainer Ledger Engine

Validates compute input before processing begins, and owner edits to
income-rate and pricing tables before they are saved.
Raises ValueError with clear messages for any constraint violations.
"""

from collections import defaultdict

from .models import AllocationInput, IncomeRate, PriceBracket, WeeklyInput

VALID_TIERS = (1, 2, 3)


class InputValidator:
    """Validates weekly and allocation input according to business rules."""

    def validate(self, input_data: WeeklyInput) -> None:
        """
        Run all validations. Raises ValueError if any check fails.
        """
        self._validate_week(input_data)
        self._validate_trainer(input_data)
        self._validate_packages(input_data.packages)
        self._validate_late_fees(input_data)

    def validate_allocation(self, input_data: AllocationInput) -> None:
        if input_data.client_id is None:
            raise ValueError("client_id is required for allocation")
        self._validate_packages(input_data.packages)

    def _validate_week(self, input_data: WeeklyInput) -> None:
        week = input_data.week
        if week.end < week.start:
            raise ValueError(f"week end ({week.end}) cannot be before week start ({week.start})")

    def _validate_trainer(self, input_data: WeeklyInput) -> None:
        if input_data.trainer.tier not in VALID_TIERS:
            raise ValueError(f"trainer tier must be 1, 2, or 3, got: {input_data.trainer.tier}")

    def _validate_packages(self, packages) -> None:
        for package in packages:
            if package.sessions_purchased < 1:
                raise ValueError(f"sessions_purchased must be at least 1: package {package.id}")
            if package.sales_bonus is not None and package.sales_bonus < 0:
                raise ValueError(f"sales_bonus cannot be negative: package {package.id}")

    def _validate_late_fees(self, input_data: WeeklyInput) -> None:
        for fee in input_data.late_fees:
            if fee.amount < 0:
                raise ValueError(f"late fee amount cannot be negative: late fee {fee.id}")


class IncomeRateValidator:
    """Validates a trainer's income-rate table before it is saved."""

    def validate(self, rates: list[IncomeRate]) -> None:
        """
        Brackets must start at 1 class, be contiguous, and end with exactly one
        unbounded bracket. Effective weeks must be Mondays.
        """
        if not rates:
            raise ValueError("Please configure at least one pay rate tier")

        for rate in rates:
            if not (0 <= rate.rate <= 1):
                raise ValueError(f"rate must be between 0 and 1, got: {rate.rate}")
            if rate.effective_week is not None and rate.effective_week.weekday() != 0:
                raise ValueError(f"effective week must be a Monday, got: {rate.effective_week}")

        valid = sorted((r for r in rates if r.rate > 0), key=lambda r: r.min_classes)
        if not valid:
            raise ValueError("Please configure at least one pay rate tier with a rate")

        if valid[0].min_classes != 1:
            raise ValueError("First tier must start at 1 class")

        for i, (current, following) in enumerate(zip(valid, valid[1:])):
            if current.max_classes is None:
                raise ValueError("Only the last tier can have unlimited classes")
            if following.min_classes != current.max_classes + 1:
                raise ValueError(
                    f"Gap in coverage: rate {i + 1} ends at {current.max_classes} "
                    f"but rate {i + 2} starts at {following.min_classes}"
                )

        if valid[-1].max_classes is not None:
            raise ValueError("Last tier must have unlimited classes (leave max empty)")


class PricingTableValidator:
    """Validates an edited tier pricing table before it is saved."""

    def validate(self, brackets: list[PriceBracket]) -> None:
        if not brackets:
            raise ValueError("pricing array is required")

        by_tier = defaultdict(list)
        for row in brackets:
            if row.tier not in VALID_TIERS:
                raise ValueError("tier must be 1, 2, or 3")
            if row.price < 0:
                raise ValueError(f"price cannot be negative, got: {row.price}")
            if row.mode_premium < 0:
                raise ValueError(f"mode premium cannot be negative, got: {row.mode_premium}")
            by_tier[row.tier].append(row)

        for tier, rows in by_tier.items():
            rows.sort(key=lambda r: r.sessions_min)
            if rows[0].sessions_min != 1:
                raise ValueError(f"Tier {tier} pricing must start at 1 session")
            for current, following in zip(rows, rows[1:]):
                if current.sessions_max is None:
                    raise ValueError(f"Tier {tier}: only the last bracket can be unbounded")
                if following.sessions_min != current.sessions_max + 1:
                    raise ValueError(
                        f"Tier {tier}: gap or overlap between {current.sessions_max} and {following.sessions_min}"
                    )
            if rows[-1].sessions_max is not None:
                raise ValueError(f"Tier {tier}: last bracket must be unbounded")
