from uuid import UUID
from decimal import Decimal, ROUND_HALF_UP
from datetime import timedelta
from typing import Optional
from loguru import logger

from app.core.exceptions import BusinessRuleError, NotFoundError, PermissionDeniedError
from app.core.money import to_money, utcnow
from app.enums.notification_type import NotificationType
from app.enums.product_category import ProductCategory
from app.enums.product_status import ProductStatus
from app.enums.user_role import UserRole
from app.models.bid import Bid
from app.models.product import Product
from app.models.user import User
from app.services.auction.bidding_service import rank_bids
from app.services.auction.settlement_service import SettlementService
from app.services.communication.notification_service import NotificationService

SORT_ORDERS = {
    "price-asc": ["current_price"],
    "price-desc": ["-current_price"],
    "ending-soon": ["end_time"],
    "newest": ["-created_at"],
}

EDITABLE_STATUSES = (ProductStatus.pending, ProductStatus.rejected)


def _round_whole(value: Decimal) -> Decimal:
    return value.to_integral_value(rounding=ROUND_HALF_UP)


def _auction_window(duration_hours: int):
    start_time = utcnow()
    return start_time, start_time + timedelta(hours=duration_hours)


class ProductService:
    @staticmethod
    async def create_product(vendor: User, data: dict) -> Product:
        """New listings wait for admin review; the timer restarts on approval"""
        start_time, end_time = _auction_window(data["duration"])
        starting_price = to_money(data["starting_price"])
        product = await Product.create(
            title=data["title"],
            description=data["description"],
            category=data["category"],
            starting_price=starting_price,
            current_price=starting_price,
            duration=data["duration"],
            start_time=start_time,
            end_time=end_time,
            images=data.get("images") or [],
            vendor_id=vendor.id
        )
        logger.info(f"Vendor {vendor.id} submitted product {product.id} for review")
        return product

    @staticmethod
    async def list_products(
        category: Optional[ProductCategory] = None,
        status: Optional[ProductStatus] = None,
        sort: Optional[str] = None,
        page: int = 1,
        page_size: int = 10
    ) -> tuple[list[Product], int]:
        query = Product.filter(status=status or ProductStatus.active)
        if category:
            query = query.filter(category=category)

        total = await query.count()
        products = await query.order_by(*SORT_ORDERS.get(sort, ["-created_at"])) \
            .offset((page - 1) * page_size).limit(page_size).prefetch_related("vendor")

        return products, total

    @staticmethod
    async def get_product(product_id: UUID) -> Product:
        """Expired auctions are settled on read so the result is always current"""
        product = await Product.get_or_none(id=product_id)
        if not product:
            raise NotFoundError("Product not found")

        if product.status == ProductStatus.active and product.end_time < utcnow():
            await SettlementService.settle_product(product.id)
            product = await Product.get(id=product_id)

        return product

    @staticmethod
    async def get_vendor_products(vendor_id: UUID) -> list[Product]:
        return await Product.filter(vendor_id=vendor_id) \
            .order_by("-end_time", "-created_at").prefetch_related("vendor")

    @staticmethod
    async def _get_owned(product_id: UUID, user: User, allow_admin: bool = False) -> Product:
        product = await Product.get_or_none(id=product_id)
        if not product:
            raise NotFoundError("Product not found")
        if product.vendor_id != user.id and not (allow_admin and user.is_admin):
            raise PermissionDeniedError("Not authorized to modify this product")
        return product

    @staticmethod
    async def update_product(product_id: UUID, user: User, data: dict) -> Product:
        product = await ProductService._get_owned(product_id, user, allow_admin=True)
        if product.status not in EDITABLE_STATUSES:
            raise BusinessRuleError(f"Cannot update {product.status.value} products")

        for key, value in data.items():
            if value is not None:
                setattr(product, key, value)

        if data.get("starting_price") is not None:
            product.starting_price = to_money(product.starting_price)
            product.current_price = product.starting_price
        if data.get("duration") is not None:
            product.end_time = product.start_time + timedelta(hours=product.duration)

        await product.save()
        return product

    @staticmethod
    async def delete_product(product_id: UUID, user: User):
        product = await ProductService._get_owned(product_id, user, allow_admin=True)
        if product.status not in EDITABLE_STATUSES:
            raise BusinessRuleError("Cannot delete active or ended products")
        await product.delete()
        logger.info(f"Product {product_id} deleted by {user.id}")

    @staticmethod
    async def review_product(
        product_id: UUID,
        admin: User,
        status: ProductStatus,
        admin_remarks: Optional[str] = None
    ) -> Product:
        if status not in (ProductStatus.active, ProductStatus.rejected):
            raise BusinessRuleError("Please provide a valid status (active or rejected)")

        product = await Product.get_or_none(id=product_id)
        if not product:
            raise NotFoundError("Product not found")
        if product.status != ProductStatus.pending:
            raise BusinessRuleError(f"Cannot review {product.status.value} products")

        product.status = status
        if admin_remarks:
            product.admin_remarks = admin_remarks
        if status == ProductStatus.active:
            product.start_time, product.end_time = _auction_window(product.duration)
        await product.save()

        logger.info(f"Admin {admin.id} set product {product.id} to {status.value}")

        approved = status == ProductStatus.active
        await NotificationService.create_notification(
            recipient_id=product.vendor_id,
            sender_id=admin.id,
            notification_type=NotificationType.product_approved if approved else NotificationType.product_rejected,
            title="Product Approved" if approved else "Product Rejected",
            message=(
                f'Your product "{product.title}" is now live for bidding.'
                if approved
                else f'Your product "{product.title}" was rejected. {admin_remarks or ""}'.strip()
            ),
            data={"productId": str(product.id), "url": f"/products/{product.id}"}
        )
        return product

    @staticmethod
    async def _get_unsold(product_id: UUID, vendor: User) -> Product:
        product = await ProductService._get_owned(product_id, vendor)
        if product.status != ProductStatus.ended or product.winner_id is not None:
            raise BusinessRuleError("Only unsold products can be relisted or removed")
        return product

    @staticmethod
    async def get_price_recommendation(product_id: UUID, vendor: User) -> dict:
        product = await ProductService._get_unsold(product_id, vendor)
        bids = rank_bids(await Bid.filter(product_id=product.id))

        if bids:
            highest = bids[0].amount
            average = sum(b.amount for b in bids) / len(bids)
            recommended = max(_round_whole(highest * Decimal("0.8")), _round_whole(product.starting_price * Decimal("0.9")))
            reason = (
                f"Based on {len(bids)} previous bids. Highest bid was {highest}, "
                f"average was {_round_whole(average)}."
            )
        else:
            recommended = _round_whole(product.starting_price * Decimal("0.85"))
            reason = "No bids received. Recommending 15% lower than original price to attract more interest."

        return {
            "original_price": product.starting_price,
            "recommended_price": to_money(recommended),
            "recommendation_reason": reason,
            "previous_bids_count": len(bids),
        }

    @staticmethod
    async def relist_product(
        product_id: UUID,
        vendor: User,
        starting_price: Optional[Decimal] = None,
        duration: Optional[int] = None
    ) -> tuple[Product, Decimal]:
        recommendation = await ProductService.get_price_recommendation(product_id, vendor)
        product = await Product.get(id=product_id)

        relisted = await ProductService.create_product(vendor, {
            "title": product.title,
            "description": product.description,
            "category": product.category,
            "starting_price": starting_price or recommendation["recommended_price"],
            "duration": duration or product.duration,
            "images": product.images,
        })
        relisted.relisted_from_id = product.id
        await relisted.save(update_fields=["relisted_from_id"])

        return relisted, recommendation["recommended_price"]

    @staticmethod
    async def remove_unsold_product(product_id: UUID, vendor: User):
        product = await ProductService._get_unsold(product_id, vendor)
        await product.delete()
        logger.info(f"Unsold product {product_id} removed by vendor {vendor.id}")

    @staticmethod
    async def get_stats() -> dict:
        active_durations = await Product.filter(status=ProductStatus.active).values_list("duration", flat=True)

        categories = {}
        for category in await Product.exclude(status=ProductStatus.rejected).values_list("category", flat=True):
            key = category.value if isinstance(category, ProductCategory) else category
            categories[key] = categories.get(key, 0) + 1

        return {
            "total": await Product.all().count(),
            "active": await Product.filter(status=ProductStatus.active).count(),
            "ended": await Product.filter(status=ProductStatus.ended).count(),
            "pending": await Product.filter(status=ProductStatus.pending).count(),
            "successful": await Product.filter(status=ProductStatus.ended, winner_id__isnull=False).count(),
            "categories": [
                {"category": name, "count": count}
                for name, count in sorted(categories.items(), key=lambda item: -item[1])
            ],
            "users": {
                "total": await User.exclude(role=UserRole.admin).count(),
                "vendors": await User.filter(role=UserRole.vendor).count(),
                "buyers": await User.filter(role=UserRole.buyer).count(),
            },
            "average_duration": round(sum(active_durations) / len(active_durations)) if active_durations else 24,
        }
