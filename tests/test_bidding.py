import pytest
from decimal import Decimal

from app.core.exceptions import (
    AuctionNotActiveError,
    BidRejectedError,
    InsufficientFundsError,
    PermissionDeniedError,
)
from app.enums.notification_type import NotificationType
from app.enums.product_status import ProductStatus
from app.enums.transaction_type import TransactionType
from app.models.bid import Bid
from app.models.notification import Notification
from app.models.product import Product
from app.models.transaction import Transaction
from app.models.wallet import Wallet
from app.services.auction.bidding_service import BiddingService
from tests.factories import make_user, make_product, fund, expire, auth_headers


@pytest.mark.asyncio
async def test_place_bid_holds_funds(buyer, product):
    """Accepted bid debits the wallet and moves the price"""
    await fund(buyer, 2000)

    placement = await BiddingService.place_bid(buyer, product.id, Decimal("1050"))

    assert placement.amount_deducted == Decimal("1050.00")
    assert placement.wallet_balance == Decimal("950.00")
    product = await Product.get(id=product.id)
    assert product.current_price == Decimal("1050.00")
    assert product.bid_count == 1

    debit = await Transaction.get(related_bid_id=placement.bid.id, transaction_type=TransactionType.bid)
    assert debit.amount == Decimal("-1050.00")
    assert debit.balance_after == Decimal("950.00")


@pytest.mark.asyncio
async def test_rebid_charges_only_the_difference(buyer, vendor, product):
    rival = await make_user("Rival")
    await fund(buyer, 5000)
    await fund(rival, 5000)

    await BiddingService.place_bid(buyer, product.id, Decimal("1050"))
    await BiddingService.place_bid(rival, product.id, Decimal("1100"))
    placement = await BiddingService.place_bid(buyer, product.id, Decimal("1200"))

    assert placement.previous_bid == Decimal("1050.00")
    assert placement.amount_deducted == Decimal("150.00")
    assert (await Wallet.get(user_id=buyer.id)).balance == Decimal("3800.00")
    assert "increased" in placement.message


@pytest.mark.asyncio
async def test_invalid_increment_reports_next_amount(buyer, product):
    await fund(buyer, 5000)

    with pytest.raises(BidRejectedError) as exc:
        await BiddingService.place_bid(buyer, product.id, Decimal("1075"))

    assert exc.value.next_valid_amount == Decimal("1100.00")
    assert await Bid.filter(product_id=product.id).count() == 0


@pytest.mark.asyncio
async def test_bid_must_beat_current_highest(buyer, product):
    rival = await make_user("Rival")
    await fund(buyer, 5000)
    await fund(rival, 5000)
    await BiddingService.place_bid(rival, product.id, Decimal("1100"))

    with pytest.raises(BidRejectedError, match="higher than current highest"):
        await BiddingService.place_bid(buyer, product.id, Decimal("1100"))


@pytest.mark.asyncio
async def test_insufficient_funds_creates_no_bid(buyer, product):
    await fund(buyer, 500)

    with pytest.raises(InsufficientFundsError):
        await BiddingService.place_bid(buyer, product.id, Decimal("1050"))

    assert await Bid.filter(product_id=product.id).count() == 0
    assert (await Product.get(id=product.id)).current_price == Decimal("1000.00")
    assert (await Wallet.get(user_id=buyer.id)).balance == Decimal("500.00")


@pytest.mark.asyncio
async def test_admin_and_owner_cannot_bid(admin, vendor, product):
    await fund(admin, 5000)
    await fund(vendor, 5000)

    with pytest.raises(PermissionDeniedError):
        await BiddingService.place_bid(admin, product.id, Decimal("1050"))
    with pytest.raises(PermissionDeniedError):
        await BiddingService.place_bid(vendor, product.id, Decimal("1050"))


@pytest.mark.asyncio
async def test_cannot_bid_on_inactive_or_expired_auction(buyer, vendor):
    await fund(buyer, 5000)
    pending = await make_product(vendor, status=ProductStatus.pending)
    expired = await make_product(vendor, title="Brass Lamp")
    await expire(expired)

    with pytest.raises(AuctionNotActiveError):
        await BiddingService.place_bid(buyer, pending.id, Decimal("1050"))
    with pytest.raises(AuctionNotActiveError):
        await BiddingService.place_bid(buyer, expired.id, Decimal("1050"))


@pytest.mark.asyncio
async def test_bid_notifies_vendor_and_outbid_bidder(buyer, vendor, product):
    rival = await make_user("Rival")
    await fund(buyer, 5000)
    await fund(rival, 5000)

    await BiddingService.place_bid(buyer, product.id, Decimal("1050"))
    await BiddingService.place_bid(rival, product.id, Decimal("1100"))

    assert await Notification.filter(recipient_id=vendor.id, notification_type=NotificationType.bid_placed).count() == 2
    outbid = await Notification.filter(recipient_id=buyer.id, notification_type=NotificationType.bid_outbid)
    assert len(outbid) == 1
    assert outbid[0].data["amount"] == 1100.0


@pytest.mark.asyncio
async def test_bid_stats(buyer, product):
    await fund(buyer, 5000)
    await BiddingService.place_bid(buyer, product.id, Decimal("1050"))
    await BiddingService.place_bid(buyer, product.id, Decimal("1150"))

    stats = await BiddingService.get_bid_stats()
    assert stats["total"] == 2
    assert stats["today"] == 2
    assert stats["active_bids"] == 2
    assert stats["highest_bid_amount"] == Decimal("1150.00")
    assert stats["average_bid_amount"] == 1100


@pytest.mark.asyncio
async def test_bid_endpoints(client, buyer, product):
    await fund(buyer, 5000)
    headers = auth_headers(buyer)

    response = await client.post("/bids", json={"product_id": str(product.id), "amount": 1075}, headers=headers)
    assert response.status_code == 400
    assert response.json()["next_valid_amount"] == 1100.0

    response = await client.post("/bids", json={"product_id": str(product.id), "amount": 1100}, headers=headers)
    assert response.status_code == 201
    data = response.json()
    assert data["amount_deducted"] == 1100.0
    bid_id = data["bid"]["id"]

    response = await client.get(f"/bids/product/{product.id}")
    assert [b["amount"] for b in response.json()] == [1100.0]

    response = await client.get("/bids/user", headers=headers)
    assert len(response.json()) == 1

    response = await client.get(f"/bids/{bid_id}", headers=headers)
    assert response.status_code == 200

    stranger = await make_user("Stranger")
    response = await client.get(f"/bids/{bid_id}", headers=auth_headers(stranger))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_bid_rejected_over_http(client, admin, product):
    response = await client.post(
        "/bids", json={"product_id": str(product.id), "amount": 1050}, headers=auth_headers(admin)
    )
    assert response.status_code == 403
