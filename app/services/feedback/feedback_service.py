from uuid import UUID
from typing import Optional, Iterable
from tortoise.exceptions import IntegrityError
from loguru import logger

from app.core.exceptions import BusinessRuleError, DuplicateFeedbackError, NotFoundError, PermissionDeniedError
from app.core.money import utcnow
from app.enums.bid_status import BidStatus
from app.enums.feedback import FeedbackStatus, ExperienceTag, FeedbackIssue
from app.enums.notification_type import NotificationType
from app.enums.product_status import ProductStatus
from app.models.bid import Bid
from app.models.feedback import Feedback
from app.models.product import Product
from app.models.user import User
from app.services.communication.notification_service import NotificationService

SORTABLE_FIELDS = {"created_at", "product_rating", "seller_rating", "delivery_rating"}


def _average(values: Iterable[Optional[int]]) -> float:
    present = [v for v in values if v is not None]
    return round(sum(present) / len(present), 2) if present else 0


def _check_rating(name: str, value: Optional[int], required: bool = True):
    if value is None:
        if required:
            raise BusinessRuleError(f"{name} is required")
        return
    if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 5:
        raise BusinessRuleError(f"{name} must be an integer between 1 and 5")


class FeedbackService:
    @staticmethod
    async def submit_feedback(buyer: User, data: dict) -> Feedback:
        """
        Record a verified buyer's review of a won auction.

        The one-per-buyer rule is checked before the ratings and reviews are
        validated, so a repeated submission is always reported as a duplicate.
        """
        product = await Product.get_or_none(id=data["product_id"])
        if not product:
            raise NotFoundError("Product not found")
        if product.status != ProductStatus.ended:
            raise BusinessRuleError("Can only submit feedback for ended auctions")

        winning_bid = await Bid.get_or_none(
            id=data["winning_bid_id"],
            product_id=product.id,
            bidder_id=buyer.id,
            status=BidStatus.won
        )
        if not winning_bid:
            raise PermissionDeniedError("You can only submit feedback for auctions you have won")

        if await Feedback.exists(product_id=product.id, buyer_id=buyer.id):
            raise DuplicateFeedbackError("You have already submitted feedback for this auction")

        _check_rating("Product rating", data.get("product_rating"))
        _check_rating("Seller rating", data.get("seller_rating"))
        _check_rating("Delivery rating", data.get("delivery_rating"), required=False)

        product_review = (data.get("product_review") or "").strip()
        seller_review = (data.get("seller_review") or "").strip()
        if not product_review or not seller_review:
            raise BusinessRuleError("Please provide all required fields")
        if len(product_review) > 1000 or len(seller_review) > 1000:
            raise BusinessRuleError("Reviews cannot exceed 1000 characters")
        if data.get("would_recommend") is None:
            raise BusinessRuleError("Please provide all required fields")

        try:
            experience_tags = [ExperienceTag(tag).value for tag in data.get("experience_tags") or []]
            issues = [FeedbackIssue(issue).value for issue in data.get("issues") or []]
        except ValueError as e:
            raise BusinessRuleError(str(e))

        try:
            feedback = await Feedback.create(
                product_id=product.id,
                buyer_id=buyer.id,
                seller_id=product.vendor_id,
                winning_bid_id=winning_bid.id,
                product_rating=data["product_rating"],
                product_review=product_review,
                seller_rating=data["seller_rating"],
                seller_review=seller_review,
                delivery_rating=data.get("delivery_rating"),
                experience_tags=experience_tags,
                issues=issues,
                would_recommend=bool(data["would_recommend"])
            )
        except IntegrityError:
            # A concurrent submission for the same auction won the unique constraint
            raise DuplicateFeedbackError("You have already submitted feedback for this auction")
        logger.info(f"Buyer {buyer.id} left feedback {feedback.id} for product {product.id}")

        await NotificationService.create_notification(
            recipient_id=product.vendor_id,
            sender_id=buyer.id,
            notification_type=NotificationType.feedback_received,
            title="New Feedback Received",
            message=f'{buyer.name} rated you {feedback.seller_rating}/5 for "{product.title}"',
            data={"productId": str(product.id), "url": f"/feedback/{feedback.id}"}
        )
        return feedback

    @staticmethod
    async def _page(query, page: int, page_size: int, sort_by: str = "created_at", sort_order: str = "desc"):
        sort_by = sort_by if sort_by in SORTABLE_FIELDS else "created_at"
        ordering = f"-{sort_by}" if sort_order == "desc" else sort_by
        total = await query.count()
        items = await query.order_by(ordering).offset((page - 1) * page_size).limit(page_size) \
            .prefetch_related("buyer", "seller", "product")
        return items, total

    @staticmethod
    async def get_product_feedback(
        product_id: UUID, page: int = 1, page_size: int = 10,
        sort_by: str = "created_at", sort_order: str = "desc"
    ) -> tuple[list[Feedback], int, dict]:
        query = Feedback.filter(product_id=product_id, status=FeedbackStatus.active)
        items, total = await FeedbackService._page(query, page, page_size, sort_by, sort_order)
        return items, total, await FeedbackService.get_product_stats(product_id)

    @staticmethod
    async def get_seller_feedback(
        seller_id: UUID, page: int = 1, page_size: int = 10,
        sort_by: str = "created_at", sort_order: str = "desc"
    ) -> tuple[list[Feedback], int, dict]:
        query = Feedback.filter(seller_id=seller_id, status=FeedbackStatus.active)
        items, total = await FeedbackService._page(query, page, page_size, sort_by, sort_order)
        return items, total, await FeedbackService.get_seller_stats(seller_id)

    @staticmethod
    async def get_my_feedback(buyer_id: UUID, page: int = 1, page_size: int = 10) -> tuple[list[Feedback], int]:
        return await FeedbackService._page(Feedback.filter(buyer_id=buyer_id), page, page_size)

    @staticmethod
    async def get_pending_feedback(buyer_id: UUID) -> list[dict]:
        """Won auctions the buyer has not reviewed yet"""
        won_bids = await Bid.filter(
            bidder_id=buyer_id, status=BidStatus.won, product__status=ProductStatus.ended
        ).order_by("-updated_at").prefetch_related("product__vendor")
        reviewed = set(await Feedback.filter(buyer_id=buyer_id).values_list("product_id", flat=True))

        return [
            {
                "bid": bid,
                "product": bid.product,
                "seller": bid.product.vendor,
                "win_amount": bid.amount,
                "auction_end_date": bid.product.end_time,
            }
            for bid in won_bids
            if bid.product_id not in reviewed
        ]

    @staticmethod
    async def respond_to_feedback(feedback_id: UUID, seller: User, response: str) -> Feedback:
        response = (response or "").strip()
        if not response:
            raise BusinessRuleError("Response cannot be empty")
        if len(response) > 500:
            raise BusinessRuleError("Response cannot exceed 500 characters")

        feedback = await Feedback.get_or_none(id=feedback_id)
        if not feedback:
            raise NotFoundError("Feedback not found")
        if feedback.seller_id != seller.id:
            raise PermissionDeniedError("You can only respond to feedback you received")
        if feedback.seller_response:
            raise BusinessRuleError("You have already responded to this feedback")

        feedback.seller_response = response
        feedback.responded_at = utcnow()
        await feedback.save(update_fields=["seller_response", "responded_at", "updated_at"])
        return feedback

    @staticmethod
    async def get_feedback(feedback_id: UUID, user: Optional[User] = None) -> Feedback:
        """Non-active feedback is visible only to the buyer, the seller and admins"""
        feedback = await Feedback.get_or_none(id=feedback_id).prefetch_related("buyer", "seller", "product")
        if not feedback:
            raise NotFoundError("Feedback not found")

        involved = user is not None and (
            user.id in (feedback.buyer_id, feedback.seller_id) or user.is_admin
        )
        if feedback.status != FeedbackStatus.active and not involved:
            raise NotFoundError("Feedback not found")
        return feedback

    @staticmethod
    async def flag_feedback(feedback_id: UUID, admin: User, moderation_notes: Optional[str] = None) -> Feedback:
        feedback = await Feedback.get_or_none(id=feedback_id)
        if not feedback:
            raise NotFoundError("Feedback not found")

        feedback.status = FeedbackStatus.flagged
        feedback.moderation_notes = moderation_notes
        feedback.moderated_by_id = admin.id
        feedback.moderated_at = utcnow()
        await feedback.save()
        logger.info(f"Feedback {feedback_id} flagged by admin {admin.id}")
        return feedback

    @staticmethod
    async def get_seller_stats(seller_id: UUID) -> dict:
        entries = await Feedback.filter(seller_id=seller_id, status=FeedbackStatus.active)
        if not entries:
            return {
                "total_feedbacks": 0,
                "average_product_rating": 0,
                "average_seller_rating": 0,
                "average_delivery_rating": 0,
                "recommendation_rate": 0,
                "overall_rating": 0,
            }

        product_avg = _average(f.product_rating for f in entries)
        seller_avg = _average(f.seller_rating for f in entries)
        return {
            "total_feedbacks": len(entries),
            "average_product_rating": product_avg,
            "average_seller_rating": seller_avg,
            "average_delivery_rating": _average(f.delivery_rating for f in entries),
            "recommendation_rate": round(sum(f.would_recommend for f in entries) / len(entries), 2),
            "overall_rating": round((product_avg + seller_avg) / 2, 1),
        }

    @staticmethod
    async def get_product_stats(product_id: UUID) -> dict:
        entries = await Feedback.filter(product_id=product_id, status=FeedbackStatus.active)
        return {
            "total_feedbacks": len(entries),
            "average_product_rating": _average(f.product_rating for f in entries),
            "average_seller_rating": _average(f.seller_rating for f in entries),
            "average_overall_rating": round(sum(f.overall_rating for f in entries) / len(entries), 2) if entries else 0,
        }

    @staticmethod
    async def get_overview() -> dict:
        active = await Feedback.filter(status=FeedbackStatus.active)
        flagged = await Feedback.filter(status=FeedbackStatus.flagged).count()
        return {
            "total_feedback": await Feedback.all().count(),
            "active_feedback": len(active),
            "flagged_feedback": flagged,
            "pending_moderation": flagged,
            "average_ratings": {
                "avg_seller_rating": _average(f.seller_rating for f in active),
                "avg_delivery_rating": _average(f.delivery_rating for f in active),
                "recommendation_rate": round(sum(f.would_recommend for f in active) / len(active), 2) if active else 0,
            },
        }
