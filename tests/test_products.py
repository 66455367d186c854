import pytest
from decimal import Decimal

from app.core.exceptions import BusinessRuleError, PermissionDeniedError
from app.enums.notification_type import NotificationType
from app.enums.product_status import ProductStatus
from app.models.notification import Notification
from app.models.product import Product
from app.services.auction.bidding_service import BiddingService
from app.services.auction.product_service import ProductService
from app.services.auction.settlement_service import SettlementService
from tests.factories import make_user, make_product, fund, expire, auth_headers

PRODUCT_PAYLOAD = {
    "title": "Madhubani Painting",
    "description": "Hand painted on handmade paper",
    "category": "paintings",
    "starting_price": 2000,
    "duration": 48,
    "images": ["https://cdn.example.com/madhubani.jpg"],
}


@pytest.mark.asyncio
async def test_vendor_creates_pending_product(client, vendor, buyer):
    response = await client.post("/products", json=PRODUCT_PAYLOAD, headers=auth_headers(vendor))
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["current_price"] == 2000.0
    assert data["vendor_id"] == str(vendor.id)

    response = await client.post("/products", json=PRODUCT_PAYLOAD, headers=auth_headers(buyer))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_invalid_product_payload_rejected(client, vendor):
    response = await client.post("/products", json={**PRODUCT_PAYLOAD, "duration": 500}, headers=auth_headers(vendor))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_admin_review_starts_auction(client, vendor, admin):
    product = await make_product(vendor, status=ProductStatus.pending)

    response = await client.put(
        f"/products/{product.id}/review", json={"status": "active"}, headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "active"
    assert await Notification.exists(recipient_id=vendor.id, notification_type=NotificationType.product_approved)

    response = await client.put(
        f"/products/{product.id}/review", json={"status": "rejected"}, headers=auth_headers(admin)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_review_rejects_other_target_status(vendor, admin):
    product = await make_product(vendor, status=ProductStatus.pending)
    with pytest.raises(BusinessRuleError):
        await ProductService.review_product(product.id, admin, ProductStatus.ended)


@pytest.mark.asyncio
async def test_list_products_filters_and_sorts(client, vendor):
    await make_product(vendor, title="Cheap", starting_price="1000.00")
    await make_product(vendor, title="Pricey", starting_price="5000.00")
    await make_product(vendor, title="Waiting", status=ProductStatus.pending)

    response = await client.get("/products?sort=price-desc")
    data = response.json()
    assert data["total"] == 2
    assert [p["title"] for p in data["products"]] == ["Pricey", "Cheap"]

    response = await client.get("/products?status=pending")
    assert [p["title"] for p in response.json()["products"]] == ["Waiting"]


@pytest.mark.asyncio
async def test_only_pending_or_rejected_products_can_change(vendor, product):
    pending = await make_product(vendor, status=ProductStatus.pending)

    updated = await ProductService.update_product(pending.id, vendor, {"starting_price": Decimal("1500")})
    assert updated.current_price == Decimal("1500.00")

    with pytest.raises(BusinessRuleError):
        await ProductService.update_product(product.id, vendor, {"title": "New title"})
    with pytest.raises(BusinessRuleError):
        await ProductService.delete_product(product.id, vendor)

    await ProductService.delete_product(pending.id, vendor)
    assert not await Product.exists(id=pending.id)


@pytest.mark.asyncio
async def test_other_vendor_cannot_edit(vendor):
    pending = await make_product(vendor, status=ProductStatus.pending)
    other = await make_user("Other")

    with pytest.raises(PermissionDeniedError):
        await ProductService.update_product(pending.id, other, {"title": "Mine now"})


@pytest.mark.asyncio
async def test_price_recommendation_for_unsold_product(vendor):
    product = await make_product(vendor, starting_price="1000.00")
    await expire(product)
    await SettlementService.settle_product(product.id)

    recommendation = await ProductService.get_price_recommendation(product.id, vendor)

    assert recommendation["recommended_price"] == Decimal("850.00")
    assert recommendation["previous_bids_count"] == 0


@pytest.mark.asyncio
async def test_relist_creates_pending_copy(vendor):
    product = await make_product(vendor)
    await expire(product)
    await SettlementService.settle_product(product.id)

    relisted, recommended = await ProductService.relist_product(product.id, vendor)

    assert relisted.status == ProductStatus.pending
    assert relisted.starting_price == recommended == Decimal("850.00")
    assert relisted.relisted_from_id == product.id


@pytest.mark.asyncio
async def test_sold_product_cannot_be_relisted_or_removed(vendor, buyer, product):
    await fund(buyer, 2000)
    await BiddingService.place_bid(buyer, product.id, Decimal("1050"))
    await expire(product)
    await SettlementService.settle_product(product.id)

    with pytest.raises(BusinessRuleError):
        await ProductService.relist_product(product.id, vendor)
    with pytest.raises(BusinessRuleError):
        await ProductService.remove_unsold_product(product.id, vendor)


@pytest.mark.asyncio
async def test_product_stats(client, vendor, buyer):
    await make_product(vendor)
    await make_product(vendor, status=ProductStatus.pending)

    response = await client.get("/products/stats")
    data = response.json()
    assert data["total"] == 2
    assert data["active"] == 1
    assert data["pending"] == 1
    assert data["users"] == {"total": 2, "vendors": 1, "buyers": 1}
    assert data["average_duration"] == 24
