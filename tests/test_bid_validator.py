from decimal import Decimal

from app.services.auction.bid_validator import calculate_increment, minimum_next_bid, validate_bid


def test_increment_is_five_percent_rounded_up():
    """Increment is ceil(5% of the starting price)"""
    assert calculate_increment(Decimal("1000")) == Decimal("50")
    assert calculate_increment(Decimal("990")) == Decimal("50")
    assert calculate_increment(Decimal("10")) == Decimal("1")


def test_zero_starting_price_uses_unit_increment():
    assert calculate_increment(Decimal("0")) == Decimal("1")


def test_accepts_amount_on_the_grid():
    result = validate_bid(Decimal("1000"), Decimal("1000"), Decimal("1050"))
    assert result.valid
    assert result.increment == Decimal("50")


def test_rejects_off_grid_amount_and_rounds_up():
    result = validate_bid(Decimal("1000"), Decimal("1000"), Decimal("1075"))
    assert not result.valid
    assert result.next_valid_amount == Decimal("1100.00")
    assert "Next valid amount would be 1100.00" in result.message


def test_rejects_amount_between_highest_and_next_step():
    result = validate_bid(Decimal("1000"), Decimal("1000"), Decimal("1040"))
    assert not result.valid
    assert result.next_valid_amount == Decimal("1050.00")


def test_rejects_amount_not_above_current_highest():
    result = validate_bid(Decimal("1000"), Decimal("1500"), Decimal("1500"))
    assert not result.valid
    assert "higher than current highest bid of 1500.00" in result.message
    assert result.next_valid_amount == Decimal("1550.00")


def test_tolerates_tiny_rounding_error():
    assert validate_bid(Decimal("1000"), Decimal("1000"), Decimal("1050.0005")).valid


def test_minimum_next_bid():
    assert minimum_next_bid(Decimal("1000"), Decimal("1000")) == Decimal("1050.00")
    assert minimum_next_bid(Decimal("1000"), Decimal("1120")) == Decimal("1150.00")
