from enum import Enum


class TransactionType(str, Enum):
    deposit = "deposit"
    withdrawal = "withdrawal"
    bid = "bid"
    bid_refund = "bid_refund"
    auction_win = "auction_win"
    auction_refund = "auction_refund"
    sale_proceeds = "sale_proceeds"
    admin_adjustment = "admin_adjustment"


# At most one completed entry per (related bid, type) for these
BID_LINKED_TYPES = frozenset({
    TransactionType.bid,
    TransactionType.bid_refund,
    TransactionType.auction_win,
    TransactionType.sale_proceeds,
})
