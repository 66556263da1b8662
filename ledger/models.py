"""
Domain Models for the Trainer Ledger Engine

These dataclasses provide type-safe representations of all business entities.
All monetary values use Decimal for precision. `from_dict` constructors accept
the camelCase names the surrounding application serializes, and snake_case.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from .dates import WeekRange, parse_date, parse_optional_date, week_range

# =============================================================================
# TRAINING MODES
# =============================================================================

PRIVATE = "private"
SEMI_PRIVATE = "semi_private"
SHARED = "shared"

MODE_ALIASES = {
    "1v1": PRIVATE,
    "private": PRIVATE,
    "1v2": SEMI_PRIVATE,
    "semi_private": SEMI_PRIVATE,
    "semi-private": SEMI_PRIVATE,
    "2v2": SHARED,
    "shared": SHARED,
}

# Per-class surcharge for semi-private sessions unless a client or bracket overrides it
DEFAULT_MODE_PREMIUM = Decimal("20")


def normalize_mode(value: str | None) -> str | None:
    """Map wire names ('1v1', 'semi-private', ...) to the canonical mode."""
    if value in (None, ""):
        return None
    try:
        return MODE_ALIASES[str(value).strip().lower()]
    except KeyError:
        raise ValueError(f"Invalid training mode: {value}") from None


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _money(value) -> Decimal | None:
    return Decimal(str(value)) if value is not None else None


# =============================================================================
# INPUT MODELS
# =============================================================================


@dataclass
class Trainer:
    id: int
    name: str
    tier: int = 1

    @classmethod
    def from_dict(cls, data: dict) -> "Trainer":
        return cls(id=data["id"], name=data.get("name", ""), tier=int(data.get("tier", 1)))


@dataclass
class PriceSnapshot:
    """Per-class prices for the three session-count brackets."""

    price_1_12: Decimal
    price_13_20: Decimal
    price_21_plus: Decimal
    mode_premium: Decimal = DEFAULT_MODE_PREMIUM

    def price_for(self, sessions_purchased: int, mode: str | None) -> Decimal:
        """Price per class for a package size; semi-private adds the premium."""
        count = max(1, sessions_purchased)
        if count <= 12:
            price = self.price_1_12
        elif count <= 20:
            price = self.price_13_20
        else:
            price = self.price_21_plus
        if mode == SEMI_PRIVATE:
            price += self.mode_premium
        return price


@dataclass
class Client:
    """A client and the price snapshot taken at signup or last edit."""

    id: int
    name: str
    trainer_id: int
    mode: str = PRIVATE
    tier_at_signup: int = 1
    secondary_trainer_id: int | None = None
    price_1_12: Decimal | None = None
    price_13_20: Decimal | None = None
    price_21_plus: Decimal | None = None
    mode_premium: Decimal = DEFAULT_MODE_PREMIUM
    is_personal_client: bool = False
    is_active: bool = True
    archived_at: date | None = None
    location: str | None = None

    @property
    def snapshot(self) -> PriceSnapshot | None:
        """The stored price snapshot, or None when the client has no custom prices."""
        if None in (self.price_1_12, self.price_13_20, self.price_21_plus):
            return None
        return PriceSnapshot(
            price_1_12=self.price_1_12,
            price_13_20=self.price_13_20,
            price_21_plus=self.price_21_plus,
            mode_premium=self.mode_premium,
        )

    def is_on_roster(self, trainer_id: int) -> bool:
        return trainer_id in (self.trainer_id, self.secondary_trainer_id)

    def is_visible_for_week(self, week_start: date) -> bool:
        """
        Archived clients are hidden from weeks starting on or after `archived_at`.
        An inactive client with no archive date is hidden from every week.
        """
        if self.archived_at is not None:
            return self.archived_at > week_start
        return self.is_active

    @classmethod
    def from_dict(cls, data: dict) -> "Client":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            trainer_id=_pick(data, "trainerId", "trainer_id"),
            mode=normalize_mode(data.get("mode")) or PRIVATE,
            tier_at_signup=int(_pick(data, "tierAtSignup", "tier_at_signup", default=1)),
            secondary_trainer_id=_pick(data, "secondaryTrainerId", "secondary_trainer_id"),
            price_1_12=_money(_pick(data, "price1_12", "price_1_12")),
            price_13_20=_money(_pick(data, "price13_20", "price_13_20")),
            price_21_plus=_money(_pick(data, "price21Plus", "price_21_plus")),
            mode_premium=_money(_pick(data, "modePremium", "mode_premium", default=DEFAULT_MODE_PREMIUM)),
            is_personal_client=bool(_pick(data, "isPersonalClient", "is_personal_client", default=False)),
            is_active=bool(_pick(data, "isActive", "is_active", default=True)),
            archived_at=parse_optional_date(_pick(data, "archivedAt", "archived_at")),
            location=data.get("location"),
        )


@dataclass
class Package:
    """A prepaid bundle of sessions."""

    id: int
    client_id: int
    trainer_id: int
    sessions_purchased: int
    start_date: date
    sales_bonus: Decimal | None = None
    mode: str | None = None
    location: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Package":
        return cls(
            id=data["id"],
            client_id=_pick(data, "clientId", "client_id"),
            trainer_id=_pick(data, "trainerId", "trainer_id"),
            sessions_purchased=int(_pick(data, "sessionsPurchased", "sessions_purchased")),
            start_date=parse_date(_pick(data, "startDate", "start_date")),
            sales_bonus=_money(_pick(data, "salesBonus", "sales_bonus")),
            mode=normalize_mode(data.get("mode")),
            location=data.get("location"),
        )


@dataclass
class Session:
    """A logged training session. `package_id=None` marks a drop-in."""

    id: int
    client_id: int
    trainer_id: int
    date: date
    package_id: int | None = None
    mode: str | None = None
    location: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        return cls(
            id=data["id"],
            client_id=_pick(data, "clientId", "client_id"),
            trainer_id=_pick(data, "trainerId", "trainer_id"),
            date=parse_date(data["date"]),
            package_id=_pick(data, "packageId", "package_id"),
            mode=normalize_mode(data.get("mode")),
            location=data.get("location"),
        )


@dataclass
class LateFee:
    id: int
    client_id: int
    trainer_id: int
    date: date
    amount: Decimal

    @classmethod
    def from_dict(cls, data: dict) -> "LateFee":
        return cls(
            id=data["id"],
            client_id=_pick(data, "clientId", "client_id"),
            trainer_id=_pick(data, "trainerId", "trainer_id"),
            date=parse_date(data["date"]),
            amount=Decimal(str(data["amount"])),
        )


@dataclass
class ClientPriceHistory:
    """A client's price snapshot effective from `effective_date`."""

    client_id: int
    effective_date: date
    price_1_12: Decimal
    price_13_20: Decimal
    price_21_plus: Decimal
    mode_premium: Decimal = DEFAULT_MODE_PREMIUM
    reason: str | None = None

    @property
    def snapshot(self) -> PriceSnapshot:
        return PriceSnapshot(
            price_1_12=self.price_1_12,
            price_13_20=self.price_13_20,
            price_21_plus=self.price_21_plus,
            mode_premium=self.mode_premium,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "ClientPriceHistory":
        return cls(
            client_id=_pick(data, "clientId", "client_id"),
            effective_date=parse_date(_pick(data, "effectiveDate", "effective_date")),
            price_1_12=Decimal(str(_pick(data, "price1_12", "price_1_12"))),
            price_13_20=Decimal(str(_pick(data, "price13_20", "price_13_20"))),
            price_21_plus=Decimal(str(_pick(data, "price21Plus", "price_21_plus"))),
            mode_premium=Decimal(str(_pick(data, "modePremium", "mode_premium", default=DEFAULT_MODE_PREMIUM))),
            reason=data.get("reason"),
        )


@dataclass
class IncomeRate:
    """One class-count bracket of a trainer's pay-rate table."""

    trainer_id: int
    min_classes: int
    max_classes: int | None  # None = unbounded
    rate: Decimal
    effective_week: date | None = None  # None = effective since forever

    @classmethod
    def from_dict(cls, data: dict) -> "IncomeRate":
        max_classes = _pick(data, "maxClasses", "max_classes")
        return cls(
            trainer_id=_pick(data, "trainerId", "trainer_id"),
            min_classes=int(_pick(data, "minClasses", "min_classes")),
            max_classes=int(max_classes) if max_classes is not None else None,
            rate=Decimal(str(data["rate"])),
            effective_week=parse_optional_date(_pick(data, "effectiveWeek", "effective_week")),
        )


@dataclass
class PriceBracket:
    """A row of the tier pricing table."""

    tier: int
    sessions_min: int
    sessions_max: int | None  # None = unbounded
    price: Decimal
    mode_premium: Decimal = DEFAULT_MODE_PREMIUM

    @classmethod
    def from_dict(cls, data: dict) -> "PriceBracket":
        sessions_max = _pick(data, "sessionsMax", "sessions_max")
        return cls(
            tier=int(data["tier"]),
            sessions_min=int(_pick(data, "sessionsMin", "sessions_min")),
            sessions_max=int(sessions_max) if sessions_max is not None else None,
            price=Decimal(str(data["price"])),
            mode_premium=Decimal(str(_pick(data, "mode1v2Premium", "mode_1v2_premium", "modePremium",
                                           "mode_premium", default=DEFAULT_MODE_PREMIUM))),
        )


@dataclass
class WeeklyInput:
    """Complete input for computing one trainer's week."""

    trainer: Trainer
    week: WeekRange
    clients: list[Client] = field(default_factory=list)
    packages: list[Package] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)
    late_fees: list[LateFee] = field(default_factory=list)
    income_rates: list[IncomeRate] = field(default_factory=list)
    price_history: list[ClientPriceHistory] = field(default_factory=list)
    pricing: list[PriceBracket] = field(default_factory=list)  # empty = default table

    @classmethod
    def from_dict(cls, data: dict) -> "WeeklyInput":
        week = data.get("week")
        if isinstance(week, dict):
            week_value = WeekRange.from_dict(week)
        else:
            week_value = week_range(parse_date(week or _pick(data, "weekStart", "week_start")))
        return cls(
            trainer=Trainer.from_dict(data["trainer"]),
            week=week_value,
            clients=[Client.from_dict(c) for c in data.get("clients", [])],
            packages=[Package.from_dict(p) for p in data.get("packages", [])],
            sessions=[Session.from_dict(s) for s in data.get("sessions", [])],
            late_fees=[LateFee.from_dict(f) for f in _pick(data, "lateFees", "late_fees", default=[])],
            income_rates=[IncomeRate.from_dict(r) for r in _pick(data, "incomeRates", "income_rates", default=[])],
            price_history=[
                ClientPriceHistory.from_dict(h)
                for h in _pick(data, "clientPriceHistory", "price_history", default=[])
            ],
            pricing=[PriceBracket.from_dict(p) for p in data.get("pricing", [])],
        )


@dataclass
class AllocationInput:
    """Input for rebalancing one client's packages."""

    client_id: int
    trainer_id: int | None
    packages: list[Package] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)
    shared: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "AllocationInput":
        return cls(
            client_id=_pick(data, "clientId", "client_id"),
            trainer_id=_pick(data, "trainerId", "trainer_id"),
            packages=[Package.from_dict(p) for p in data.get("packages", [])],
            sessions=[Session.from_dict(s) for s in data.get("sessions", [])],
            shared=normalize_mode(data.get("mode")) == SHARED or bool(data.get("shared", False)),
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass
class RateLookup:
    """Result of resolving a trainer's pay rate for a class count."""

    rate: Decimal = Decimal("0")
    bracket: IncomeRate | None = None
    configured: bool = False
    coverage_gap: bool = False


@dataclass
class SessionMove:
    session_id: int
    from_package_id: int | None
    to_package_id: int
    reason: str  # 'overflow' or 'drop_in'


@dataclass
class AllocationResult:
    sessions: list[Session] = field(default_factory=list)
    moves: list[SessionMove] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.moves)


@dataclass
class WeeklyClientRow:
    client_id: int
    client_name: str
    package_display: str = "0"
    used_display: str = "0"
    remaining_display: str = "0"
    week_count: int = 0
    total_remaining: int = 0


@dataclass
class IncomeSummary:
    total_classes_this_week: int = 0
    rate: Decimal = Decimal("0")
    rates_configured: bool = False
    rate_coverage_gap: bool = False
    class_income: Decimal = Decimal("0")
    bonus_income: Decimal = Decimal("0")
    late_fee_income: Decimal = Decimal("0")
    backfill_adjustment: Decimal = Decimal("0")
    final_weekly_income: Decimal = Decimal("0")


@dataclass
class WeeklyBreakdownRow:
    id: int | str
    date: date
    client_name: str
    type: str  # 'package', 'bonus', 'session' or 'lateFee'
    amount: Decimal


@dataclass
class WeeklyContext:
    """
    Holds all intermediate state while computing a trainer's week.
    This is the "bag" that flows through the calculators.
    """

    # Input (immutable during processing)
    trainer: Trainer
    week: WeekRange
    clients: list[Client]
    packages: list[Package]
    all_sessions: list[Session]
    income_rates: list[IncomeRate]

    # Records of the target week, archived clients already filtered out
    weekly_sessions: list[Session] = field(default_factory=list)
    weekly_packages: list[Package] = field(default_factory=list)
    weekly_late_fees: list[LateFee] = field(default_factory=list)
    roster: list[Client] = field(default_factory=list)

    clients_by_id: dict = field(default_factory=dict)
    packages_by_id: dict = field(default_factory=dict)
    pricing: Any = None  # PricingResolver
    rate_lookup: RateLookup = field(default_factory=RateLookup)

    # Step results (populated as we go)
    client_rows: list[WeeklyClientRow] = field(default_factory=list)
    income_summary: IncomeSummary = field(default_factory=IncomeSummary)
    breakdown_rows: list[WeeklyBreakdownRow] = field(default_factory=list)


@dataclass
class WeeklyResult:
    """Final output of a weekly computation."""

    trainer: dict
    week: dict
    client_rows: list
    income_summary: dict
    breakdown_rows: list
