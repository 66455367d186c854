"""
Bid amount rules.

Valid bids sit on a grid that starts at the product's starting price and
moves in steps of ``ceil(starting_price * rate)`` currency units. A bid must
also beat the current highest amount. Everything here is pure so it can be
tested without a database.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR
from typing import Optional

from app.core.config import settings
from app.core.money import to_money

ROUNDING_TOLERANCE = Decimal("0.001")


@dataclass(frozen=True)
class BidValidation:
    valid: bool
    increment: Decimal
    message: Optional[str] = None
    next_valid_amount: Optional[Decimal] = None


def calculate_increment(starting_price: Decimal, rate: Decimal | None = None) -> Decimal:
    """Minimum bid step, rounded up to a whole currency unit (never below 1)."""
    rate = settings.bid_increment_rate if rate is None else rate
    increment = (Decimal(starting_price) * rate).to_integral_value(rounding=ROUND_CEILING)
    return max(increment, Decimal(1))


def next_valid_above(starting_price: Decimal, amount: Decimal, increment: Decimal) -> Decimal:
    """Smallest grid amount strictly greater than ``amount``."""
    if amount < starting_price:
        return to_money(starting_price)
    steps = ((amount - starting_price) / increment).to_integral_value(rounding=ROUND_FLOOR)
    return to_money(starting_price + (steps + 1) * increment)


def minimum_next_bid(starting_price: Decimal, current_highest: Decimal) -> Decimal:
    """Lowest amount that would currently be accepted."""
    starting_price, current_highest = Decimal(starting_price), Decimal(current_highest)
    return next_valid_above(starting_price, current_highest, calculate_increment(starting_price))


def validate_bid(
    starting_price: Decimal,
    current_highest: Decimal,
    proposed_amount: Decimal,
    rate: Decimal | None = None
) -> BidValidation:
    starting_price = Decimal(starting_price)
    current_highest = Decimal(current_highest)
    proposed_amount = Decimal(proposed_amount)
    increment = calculate_increment(starting_price, rate)

    if proposed_amount <= current_highest:
        return BidValidation(
            valid=False,
            increment=increment,
            message=f"Bid amount must be higher than current highest bid of {to_money(current_highest)}",
            next_valid_amount=next_valid_above(starting_price, current_highest, increment),
        )

    if proposed_amount < starting_price:
        return BidValidation(
            valid=False,
            increment=increment,
            message=f"Bid amount cannot be lower than the starting price of {to_money(starting_price)}",
            next_valid_amount=to_money(starting_price),
        )

    steps = ((proposed_amount - starting_price) / increment).to_integral_value(rounding=ROUND_FLOOR)
    valid_amount = starting_price + steps * increment

    if abs(proposed_amount - valid_amount) > ROUNDING_TOLERANCE:
        steps_up = ((proposed_amount - starting_price) / increment).to_integral_value(rounding=ROUND_CEILING)
        next_amount = to_money(starting_price + steps_up * increment)
        return BidValidation(
            valid=False,
            increment=increment,
            message=(
                f"Invalid bid amount. Bids must be in increments of {increment} from the base price "
                f"of {to_money(starting_price)}. Next valid amount would be {next_amount}."
            ),
            next_valid_amount=next_amount,
        )

    return BidValidation(valid=True, increment=increment)
