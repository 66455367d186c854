from enum import Enum


class NotificationType(str, Enum):
    bid_placed = "bid_placed"
    bid_outbid = "bid_outbid"
    auction_won = "auction_won"
    auction_lost = "auction_lost"
    auction_ending_soon = "auction_ending_soon"
    payment_received = "payment_received"
    payment_refunded = "payment_refunded"
    product_approved = "product_approved"
    product_rejected = "product_rejected"
    feedback_received = "feedback_received"
    system_announcement = "system_announcement"
