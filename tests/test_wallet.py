import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from app.core.exceptions import BusinessRuleError, InsufficientFundsError
from app.enums.transaction_status import TransactionStatus
from app.enums.transaction_type import TransactionType
from app.models.bid import Bid
from app.models.transaction import Transaction
from app.models.wallet import Wallet
from app.services.finance.ledger_audit import LedgerAuditService
from app.services.finance.wallet_service import WalletService
from tests.factories import fund, auth_headers


async def ledger_total(user) -> Decimal:
    amounts = await Transaction.filter(user_id=user.id, status=TransactionStatus.completed).values_list("amount", flat=True)
    return sum(amounts, Decimal("0.00"))


@pytest.mark.asyncio
async def test_wallet_created_lazily(buyer):
    """First access creates an empty wallet"""
    wallet = await WalletService.get_or_create_wallet(buyer.id)
    assert wallet.balance == Decimal("0.00")
    assert wallet.currency == "INR"
    assert (await WalletService.get_or_create_wallet(buyer.id)).id == wallet.id


@pytest.mark.asyncio
async def test_balance_matches_ledger_after_mixed_operations(buyer):
    await WalletService.credit(buyer.id, Decimal("500"), TransactionType.deposit, "Deposit")
    await WalletService.debit(buyer.id, Decimal("120.50"), TransactionType.withdrawal, "Withdrawal")
    await WalletService.credit(buyer.id, Decimal("30.25"), TransactionType.admin_adjustment, "Correction")

    wallet = await Wallet.get(user_id=buyer.id)
    assert wallet.balance == Decimal("409.75")
    assert wallet.balance == await ledger_total(buyer)

    last = await Transaction.filter(user_id=buyer.id).order_by("-created_at").first()
    assert last.balance_after == wallet.balance


@pytest.mark.asyncio
async def test_insufficient_funds_leaves_no_trace(buyer):
    """Debit 600 from 500 fails and writes nothing"""
    await fund(buyer, 500)

    with pytest.raises(InsufficientFundsError):
        await WalletService.debit(buyer.id, Decimal("600"), TransactionType.withdrawal, "Too much")

    wallet = await Wallet.get(user_id=buyer.id)
    assert wallet.balance == Decimal("500.00")
    assert await Transaction.filter(user_id=buyer.id).count() == 1


@pytest.mark.asyncio
async def test_refund_for_same_bid_is_applied_once(buyer, vendor, product):
    await fund(buyer, 2000)
    bid = await Bid.create(product=product, bidder=buyer, amount=Decimal("1050"))
    await WalletService.debit(buyer.id, Decimal("1050"), TransactionType.bid, "Bid", related_bid=bid)

    await WalletService.credit(buyer.id, Decimal("1050"), TransactionType.bid_refund, "Refund", related_bid=bid)
    await WalletService.credit(buyer.id, Decimal("1050"), TransactionType.bid_refund, "Refund", related_bid=bid)

    wallet = await Wallet.get(user_id=buyer.id)
    assert wallet.balance == Decimal("2000.00")
    assert await Transaction.filter(related_bid_id=bid.id, transaction_type=TransactionType.bid_refund).count() == 1


@pytest.mark.asyncio
async def test_auction_win_entry_is_zero_and_deduplicated(buyer, product):
    await fund(buyer, 1100)
    bid = await Bid.create(product=product, bidder=buyer, amount=Decimal("1050"))

    await WalletService.record_auction_win(buyer.id, bid, product)
    await WalletService.record_auction_win(buyer.id, bid, product)

    entries = await Transaction.filter(related_bid_id=bid.id, transaction_type=TransactionType.auction_win)
    assert len(entries) == 1
    assert entries[0].amount == Decimal("0.00")
    assert (await Wallet.get(user_id=buyer.id)).balance == Decimal("1100.00")


@pytest.mark.asyncio
async def test_deposit_limits_and_duplicate_window(buyer):
    with pytest.raises(BusinessRuleError):
        await WalletService.deposit(buyer.id, Decimal("50"))
    with pytest.raises(BusinessRuleError):
        await WalletService.deposit(buyer.id, Decimal("1000001"))

    await WalletService.deposit(buyer.id, Decimal("500"))
    with pytest.raises(BusinessRuleError, match="Duplicate deposit"):
        await WalletService.deposit(buyer.id, Decimal("500"))

    wallet = await WalletService.deposit(buyer.id, Decimal("700"))
    assert wallet.balance == Decimal("1200.00")


@pytest.mark.asyncio
async def test_withdraw_rules(buyer):
    await fund(buyer, 300)
    with pytest.raises(InsufficientFundsError):
        await WalletService.withdraw(buyer.id, Decimal("400"))
    with pytest.raises(BusinessRuleError):
        await WalletService.withdraw(buyer.id, Decimal("50"))

    wallet = await WalletService.withdraw(buyer.id, Decimal("200"))
    assert wallet.balance == Decimal("100.00")


@pytest.mark.asyncio
async def test_withdraw_below_minimum_reports_limit_before_balance(buyer):
    await fund(buyer, 20)

    with pytest.raises(BusinessRuleError, match="Minimum withdrawal amount") as exc_info:
        await WalletService.withdraw(buyer.id, Decimal("50"))
    assert not isinstance(exc_info.value, InsufficientFundsError)


@pytest.mark.asyncio
async def test_lost_wallet_creation_race_returns_existing_wallet(buyer):
    existing = await WalletService.get_or_create_wallet(buyer.id)

    # Both requests saw no wallet, the other one inserted first
    with patch.object(Wallet, "get_or_none", AsyncMock(return_value=None)):
        wallet = await WalletService.get_or_create_wallet(buyer.id)
        updated = await WalletService.credit(buyer.id, Decimal("150"), TransactionType.deposit, "Deposit")

    assert wallet.id == existing.id
    assert updated.balance == Decimal("150.00")
    assert await Wallet.filter(user_id=buyer.id).count() == 1


@pytest.mark.asyncio
async def test_transaction_history_filters(buyer):
    await fund(buyer, 1000)
    await WalletService.withdraw(buyer.id, Decimal("100"))
    await WalletService.withdraw(buyer.id, Decimal("150"))

    withdrawals, total = await WalletService.get_user_transactions(
        buyer.id, transaction_type=TransactionType.withdrawal
    )
    assert total == 2
    assert all(t.transaction_type == TransactionType.withdrawal for t in withdrawals)

    page, total = await WalletService.get_user_transactions(buyer.id, page=2, page_size=2)
    assert total == 3
    assert len(page) == 1


@pytest.mark.asyncio
async def test_ledger_audit_reports_drift(buyer):
    await fund(buyer, 500)
    report = await LedgerAuditService.audit()
    assert report["consistent"]

    await Wallet.filter(user_id=buyer.id).update(balance=Decimal("450.00"))
    report = await LedgerAuditService.audit()
    assert not report["consistent"]
    assert report["balance_mismatches"][0]["difference"] == Decimal("-50.00")


@pytest.mark.asyncio
async def test_wallet_endpoints(client, buyer):
    headers = auth_headers(buyer)

    response = await client.post("/wallet/deposit", json={"amount": 750, "payment_method": "credit_card"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["wallet"]["balance"] == 750.0

    response = await client.post("/wallet/deposit", json={"amount": 750}, headers=headers)
    assert response.status_code == 400

    response = await client.post("/wallet/withdraw", json={"amount": 5000}, headers=headers)
    assert response.status_code == 400
    assert "Insufficient" in response.json()["detail"]

    response = await client.get("/wallet/transactions?type=deposit", headers=headers)
    assert response.status_code == 200
    assert response.json()["total"] == 1

    response = await client.get("/wallet/stats", headers=headers)
    assert response.json()["total_deposited"] == 750.0


@pytest.mark.asyncio
async def test_admin_adjust_and_audit_require_admin(client, buyer, admin):
    await fund(buyer, 200)
    payload = {"user_id": str(buyer.id), "amount": -50, "description": "Chargeback"}

    response = await client.post("/wallet/admin/adjust", json=payload, headers=auth_headers(buyer))
    assert response.status_code == 403

    response = await client.post("/wallet/admin/adjust", json=payload, headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["wallet"]["balance"] == 150.0

    response = await client.get("/wallet/admin/audit", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["consistent"] is True


@pytest.mark.asyncio
async def test_wallet_requires_authentication(client):
    response = await client.get("/wallet")
    assert response.status_code == 401
