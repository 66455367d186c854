from uuid import UUID
from decimal import Decimal
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Optional
from tortoise.transactions import in_transaction
from loguru import logger

from app.core.config import settings
from app.core.exceptions import (
    AuctionNotActiveError,
    BidRejectedError,
    BusinessRuleError,
    ConcurrencyError,
    InsufficientFundsError,
    NotFoundError,
    PermissionDeniedError,
)
from app.core.money import to_money, utcnow
from app.enums.bid_status import BidStatus
from app.enums.notification_type import NotificationType
from app.enums.product_status import ProductStatus
from app.enums.transaction_type import TransactionType
from app.models.bid import Bid
from app.models.product import Product
from app.models.user import User
from app.services.auction.bid_validator import validate_bid
from app.services.communication.notification_service import NotificationService
from app.services.finance.wallet_service import WalletService


@dataclass
class BidPlacement:
    bid: Bid
    wallet_balance: Decimal
    amount_deducted: Decimal
    previous_bid: Decimal

    @property
    def message(self) -> str:
        if self.previous_bid > 0:
            return f"Bid increased successfully from {self.previous_bid} to {self.bid.amount}"
        return "Bid placed successfully"


class _ProductChanged(Exception):
    """Another bid was accepted between validation and the conditional update."""


def rank_bids(bids: list[Bid]) -> list[Bid]:
    """Highest amount first; equal amounts keep the earliest bid in front."""
    return sorted(bids, key=lambda b: (-b.amount, b.created_at))


def highest_bid(bids: list[Bid]) -> Optional[Bid]:
    ranked = rank_bids(bids)
    return ranked[0] if ranked else None


class BiddingService:
    @staticmethod
    async def place_bid(bidder: User, product_id: UUID, amount: Decimal) -> BidPlacement:
        """
        Validate a bid and hold its funds.

        The product update, the bid row and the wallet debit are written in one
        database transaction, so a bid exists exactly when its funds are held.
        Funds stay held when the bidder is outbid and are released at settlement.
        """
        if bidder.is_admin:
            raise PermissionDeniedError("Administrators are not allowed to place bids on products")

        amount = to_money(amount)
        if amount <= 0:
            raise BusinessRuleError("Bid amount must be greater than 0")

        for attempt in range(1, settings.bid_placement_retries + 1):
            product = await Product.get_or_none(id=product_id)
            if not product:
                raise NotFoundError("Product not found")
            if product.vendor_id == bidder.id:
                raise PermissionDeniedError("You cannot bid on your own product")
            if product.status != ProductStatus.active:
                raise AuctionNotActiveError("Product is not active for bidding")
            if product.end_time <= utcnow():
                raise AuctionNotActiveError("Auction has already ended")

            bids = await Bid.filter(product_id=product.id)
            previous_highest = highest_bid(bids)
            current_highest = previous_highest.amount if previous_highest else product.current_price

            validation = validate_bid(product.starting_price, current_highest, amount)
            if not validation.valid:
                raise BidRejectedError(validation.message, validation.next_valid_amount)

            own_bids = [b.amount for b in bids if b.bidder_id == bidder.id]
            own_highest = max(own_bids) if own_bids else Decimal("0.00")
            amount_to_deduct = amount - own_highest

            wallet = await WalletService.get_or_create_wallet(bidder.id)
            if not WalletService.has_sufficient_funds(wallet, amount_to_deduct):
                if own_highest > 0:
                    raise InsufficientFundsError(
                        f"Insufficient wallet balance. You need {amount_to_deduct} more to increase your bid "
                        f"from {own_highest} to {amount}. Your current balance is {wallet.balance}."
                    )
                raise InsufficientFundsError(
                    f"Insufficient wallet balance. Your current balance is {wallet.balance}. "
                    f"Please add funds to your wallet."
                )

            try:
                async with in_transaction():
                    updated = await Product.filter(
                        id=product.id,
                        status=ProductStatus.active,
                        bid_count=product.bid_count,
                        end_time__gt=utcnow()
                    ).update(current_price=amount, bid_count=product.bid_count + 1)
                    if not updated:
                        raise _ProductChanged()

                    bid = await Bid.create(product_id=product.id, bidder_id=bidder.id, amount=amount)

                    description = (
                        f"Bid increase on product: {product.title} (from {own_highest} to {amount})"
                        if own_highest > 0
                        else f"Bid placed on product: {product.title}"
                    )
                    wallet = await WalletService.debit(
                        bidder.id, amount_to_deduct, TransactionType.bid, description,
                        related_bid=bid, related_product=product
                    )
            except _ProductChanged:
                logger.debug(f"Product {product.id} changed while bidding, retry {attempt}")
                continue

            logger.info(f"User {bidder.id} bid {amount} on product {product.id} (held {amount_to_deduct})")
            await BiddingService._notify_bid_placed(bidder, product, bid, previous_highest)

            return BidPlacement(
                bid=bid,
                wallet_balance=wallet.balance,
                amount_deducted=amount_to_deduct,
                previous_bid=own_highest
            )

        raise ConcurrencyError("The auction received another bid, please try again")

    @staticmethod
    async def _notify_bid_placed(bidder: User, product: Product, bid: Bid, previous_highest: Optional[Bid]):
        data = {
            "productId": str(product.id),
            "bidId": str(bid.id),
            "amount": float(bid.amount),
            "url": f"/products/{product.id}",
        }
        await NotificationService.create_notification(
            recipient_id=product.vendor_id,
            sender_id=bidder.id,
            notification_type=NotificationType.bid_placed,
            title="New Bid Placed",
            message=f'{bidder.name} placed a bid of {bid.amount} on your product "{product.title}"',
            data=data
        )
        if previous_highest and previous_highest.bidder_id != bidder.id:
            await NotificationService.create_notification(
                recipient_id=previous_highest.bidder_id,
                notification_type=NotificationType.bid_outbid,
                title="You've Been Outbid",
                message=(
                    f'Your bid of {previous_highest.amount} on "{product.title}" has been outbid. '
                    f"New highest bid: {bid.amount}"
                ),
                data=data
            )

    @staticmethod
    async def get_product_bids(product_id: UUID) -> list[Bid]:
        bids = await Bid.filter(product_id=product_id).prefetch_related("bidder")
        return rank_bids(bids)

    @staticmethod
    async def get_user_bids(user_id: UUID) -> list[Bid]:
        return await Bid.filter(bidder_id=user_id).order_by("-created_at").prefetch_related("product")

    @staticmethod
    async def get_bid(bid_id: UUID, user: User) -> Bid:
        bid = await Bid.get_or_none(id=bid_id).prefetch_related("bidder", "product")
        if not bid:
            raise NotFoundError("Bid not found")
        if bid.bidder_id != user.id and not user.is_admin:
            raise PermissionDeniedError("Not authorized to view this bid")
        return bid

    @staticmethod
    async def get_bid_stats() -> dict:
        """Marketplace-wide bid statistics"""
        today_start = datetime.combine(utcnow().date(), time.min, tzinfo=timezone.utc)
        amounts = await Bid.all().values_list("amount", flat=True)

        return {
            "total": len(amounts),
            "today": await Bid.filter(created_at__gte=today_start).count(),
            "active_bids": await Bid.filter(status=BidStatus.active).count(),
            "won_bids": await Bid.filter(status=BidStatus.won).count(),
            "lost_bids": await Bid.filter(status=BidStatus.lost).count(),
            "highest_bid_amount": max(amounts) if amounts else Decimal("0"),
            "average_bid_amount": round(sum(amounts) / len(amounts)) if amounts else 0,
        }
