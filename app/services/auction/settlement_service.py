"""
Closing expired auctions.

Each product is settled in its own database transaction that starts by
claiming the product with a conditional ``active -> ended`` update. Whoever
wins the claim does the work; concurrent or repeated passes find nothing to
claim. Ledger writes are deduplicated per bid as a second line of defence.
"""
from uuid import UUID
from decimal import Decimal
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from tortoise.transactions import in_transaction
from loguru import logger

from app.core.config import settings
from app.core.money import utcnow
from app.enums.bid_status import BidStatus
from app.enums.notification_type import NotificationType
from app.enums.product_status import ProductStatus
from app.enums.transaction_status import TransactionStatus
from app.enums.transaction_type import TransactionType
from app.models.bid import Bid
from app.models.product import Product
from app.models.transaction import Transaction
from app.services.auction.bidding_service import highest_bid
from app.services.communication.notification_service import NotificationService
from app.services.finance.wallet_service import WalletService


@dataclass
class SettlementOutcome:
    product: Product
    winning_bid: Optional[Bid] = None
    # bidder id -> total refunded
    refunds: dict[UUID, Decimal] = field(default_factory=dict)
    seller_credited: bool = False

    @property
    def has_winner(self) -> bool:
        return self.winning_bid is not None


@dataclass
class SettlementReport:
    found: int = 0
    settled: int = 0
    without_bids: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict:
        return {
            "found": self.found,
            "settled": self.settled,
            "without_bids": self.without_bids,
            "skipped": self.skipped,
            "failed": self.failed,
        }


class SettlementService:
    @staticmethod
    async def settle_expired_auctions(now: Optional[datetime] = None) -> SettlementReport:
        """Settle every active product whose end time has passed."""
        now = now or utcnow()
        product_ids = await Product.filter(
            status=ProductStatus.active, end_time__lt=now
        ).values_list("id", flat=True)

        report = SettlementReport(found=len(product_ids))
        if not product_ids:
            logger.debug("No expired auctions to settle")
            return report

        logger.info(f"Found {len(product_ids)} expired auctions to settle")
        for product_id in product_ids:
            try:
                outcome = await SettlementService.settle_product(product_id, now=now)
            except Exception as e:
                # One broken auction must not block the rest of the pass
                logger.exception(f"Failed to settle product {product_id}: {e}")
                report.failed += 1
                continue

            if outcome is None:
                report.skipped += 1
            elif outcome.has_winner:
                report.settled += 1
            else:
                report.without_bids += 1

        logger.info(f"Settlement pass finished: {report.as_dict()}")
        return report

    @staticmethod
    async def settle_product(product_id: UUID, now: Optional[datetime] = None) -> Optional[SettlementOutcome]:
        """
        Settle one expired product.

        Returns None when the product is not active and expired, or was claimed
        by another pass.
        """
        now = now or utcnow()

        async with in_transaction():
            claimed = await Product.filter(
                id=product_id, status=ProductStatus.active, end_time__lt=now
            ).update(status=ProductStatus.ended)
            if not claimed:
                return None

            product = await Product.filter(id=product_id).select_for_update().get()
            bids = await Bid.filter(product_id=product_id).select_for_update()
            winning_bid = highest_bid(bids)
            outcome = SettlementOutcome(product=product, winning_bid=winning_bid)

            if winning_bid is None:
                logger.info(f"No bids found for product {product_id}, ended without winner")
                return outcome

            winner_id = winning_bid.bidder_id
            await Product.filter(id=product_id).update(winner_id=winner_id)
            product.winner_id = winner_id
            await Bid.filter(id=winning_bid.id).update(status=BidStatus.won)
            await Bid.filter(product_id=product_id).exclude(id=winning_bid.id).update(status=BidStatus.lost)

            await WalletService.record_auction_win(winner_id, winning_bid, product)

            # The winner's earlier bids stay debited, their deltas add up to the winning amount
            for bid in bids:
                if bid.bidder_id == winner_id:
                    continue
                refund = await SettlementService._held_amount(bid)
                if refund <= 0:
                    continue
                await WalletService.credit(
                    bid.bidder_id, refund, TransactionType.bid_refund,
                    f"Bid refund for ended auction: {product.title}",
                    related_bid=bid, related_product=product
                )
                outcome.refunds[bid.bidder_id] = outcome.refunds.get(bid.bidder_id, Decimal("0.00")) + refund

            if settings.credit_seller_on_settlement:
                await WalletService.credit(
                    product.vendor_id, winning_bid.amount, TransactionType.sale_proceeds,
                    f"Sale proceeds for product: {product.title}",
                    related_bid=winning_bid, related_product=product
                )
                outcome.seller_credited = True

        logger.info(f"Product {product_id} ended, winner {winner_id} at {winning_bid.amount}")
        await SettlementService._notify(outcome)
        return outcome

    @staticmethod
    async def _held_amount(bid: Bid) -> Decimal:
        """Exactly what was debited when this bid was placed."""
        debit = await Transaction.get_or_none(
            related_bid_id=bid.id,
            transaction_type=TransactionType.bid,
            user_id=bid.bidder_id,
            status=TransactionStatus.completed
        )
        return abs(debit.amount) if debit else Decimal("0.00")

    @staticmethod
    async def _notify(outcome: SettlementOutcome):
        product, winning_bid = outcome.product, outcome.winning_bid
        url = f"/products/{product.id}"

        await NotificationService.create_notification(
            recipient_id=winning_bid.bidder_id,
            notification_type=NotificationType.auction_won,
            title="Auction Won",
            message=f'Congratulations! You won "{product.title}" with a bid of {winning_bid.amount}',
            data={"productId": str(product.id), "bidId": str(winning_bid.id),
                  "amount": float(winning_bid.amount), "url": url}
        )

        losers = await Bid.filter(product_id=product.id, status=BidStatus.lost).exclude(
            bidder_id=winning_bid.bidder_id
        ).distinct().values_list("bidder_id", flat=True)
        for loser_id in set(losers):
            refund = outcome.refunds.get(loser_id, Decimal("0.00"))
            await NotificationService.create_notification(
                recipient_id=loser_id,
                notification_type=NotificationType.auction_lost,
                title="Auction Ended",
                message=f'The auction for "{product.title}" has ended. {refund} has been refunded to your wallet.',
                data={"productId": str(product.id), "amount": float(refund), "url": url}
            )

        if outcome.seller_credited:
            await NotificationService.create_notification(
                recipient_id=product.vendor_id,
                notification_type=NotificationType.payment_received,
                title="Item Sold",
                message=f'"{product.title}" sold for {winning_bid.amount}. The proceeds were added to your wallet.',
                data={"productId": str(product.id), "bidId": str(winning_bid.id),
                      "amount": float(winning_bid.amount), "url": url}
            )
