import datetime
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .exceptions import InvalidDateRangeError

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PricingPolicy:
    """Booking policy constants applied to every quote."""
    deposit_ratio: Decimal = Decimal("0.2")
    balance_due_offset_days: int = 7

    def __post_init__(self):
        if not Decimal(0) <= self.deposit_ratio <= Decimal(1):
            raise ValueError("Deposit ratio must be between 0 and 1")
        if self.balance_due_offset_days < 0:
            raise ValueError("Balance due offset cannot be negative")

    @classmethod
    def from_settings(cls, settings) -> "PricingPolicy":
        return cls(
            deposit_ratio=Decimal(str(settings.DEPOSIT_RATIO)),
            balance_due_offset_days=settings.BALANCE_DUE_OFFSET_DAYS,
        )


@dataclass(frozen=True)
class BookingTerms:
    nights: int
    nightly_price: Decimal
    total_cost: Decimal
    deposit: Decimal
    balance_due: Decimal
    balance_due_date: datetime.date


def to_money(amount) -> Decimal:
    return Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)


def night_count(arrival: datetime.date, departure: datetime.date) -> int:
    # Partial days count as a full night
    return math.ceil((departure - arrival) / datetime.timedelta(days=1))


def balance_due_date(arrival: datetime.date, policy: PricingPolicy) -> datetime.date:
    return arrival - datetime.timedelta(days=policy.balance_due_offset_days)


def quote(nightly_price: Optional[Decimal], arrival: datetime.date, departure: datetime.date,
          policy: PricingPolicy = PricingPolicy()) -> BookingTerms:
    """
    Prices a stay. A listing without a price is quoted at 0.

    The balance is whatever the deposit leaves of the total, so the two
    always add up to the total to the cent.
    """
    nights = night_count(arrival, departure)
    if nights <= 0:
        raise InvalidDateRangeError("A booking must cover at least one night.")

    price = to_money(nightly_price or 0)
    total = to_money(price * nights)
    deposit = to_money(total * policy.deposit_ratio)

    return BookingTerms(
        nights=nights,
        nightly_price=price,
        total_cost=total,
        deposit=deposit,
        balance_due=total - deposit,
        balance_due_date=balance_due_date(arrival, policy),
    )
