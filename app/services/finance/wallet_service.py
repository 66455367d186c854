from uuid import UUID
from decimal import Decimal
from datetime import datetime, timedelta
from typing import Optional
from tortoise.exceptions import IntegrityError
from tortoise.transactions import in_transaction
from loguru import logger

from app.core.config import settings
from app.core.exceptions import BusinessRuleError, ConcurrencyError, InsufficientFundsError, NotFoundError
from app.core.money import to_money, utcnow
from app.enums.payment_method import PaymentMethod
from app.enums.transaction_status import TransactionStatus
from app.enums.transaction_type import TransactionType, BID_LINKED_TYPES
from app.models.bid import Bid
from app.models.product import Product
from app.models.transaction import Transaction
from app.models.user import User
from app.models.wallet import Wallet


class _StaleWallet(Exception):
    """The wallet changed between read and conditional write."""


class WalletService:
    @staticmethod
    async def get_or_create_wallet(user_id: UUID) -> Wallet:
        """Wallets are created lazily on first access"""
        wallet = await Wallet.get_or_none(user_id=user_id)
        if wallet:
            return wallet
        try:
            # Own savepoint so a lost race leaves an enclosing transaction usable
            async with in_transaction():
                wallet = await Wallet.create(user_id=user_id, balance=Decimal("0.00"), currency=settings.currency)
            logger.info(f"Created wallet {wallet.id} for user {user_id}")
            return wallet
        except IntegrityError:
            # Another request created it first
            return await Wallet.get(user_id=user_id)

    @staticmethod
    def has_sufficient_funds(wallet: Wallet, amount: Decimal) -> bool:
        return wallet.has_sufficient_funds(to_money(amount))

    @staticmethod
    async def credit(
        user_id: UUID,
        amount: Decimal,
        transaction_type: TransactionType,
        description: str,
        related_bid: Optional[Bid] = None,
        related_product: Optional[Product] = None,
        payment_method: Optional[PaymentMethod] = None,
        metadata: Optional[dict] = None
    ) -> Wallet:
        """Add funds and write the matching ledger entry"""
        amount = to_money(amount)
        if amount <= 0:
            raise BusinessRuleError("Amount must be greater than 0")
        return await WalletService._apply(
            user_id, amount, transaction_type, description,
            related_bid, related_product, payment_method, metadata
        )

    @staticmethod
    async def debit(
        user_id: UUID,
        amount: Decimal,
        transaction_type: TransactionType,
        description: str,
        related_bid: Optional[Bid] = None,
        related_product: Optional[Product] = None,
        payment_method: Optional[PaymentMethod] = None,
        metadata: Optional[dict] = None
    ) -> Wallet:
        """Remove funds and write a negative ledger entry"""
        amount = to_money(amount)
        if amount <= 0:
            raise BusinessRuleError("Amount must be greater than 0")
        return await WalletService._apply(
            user_id, -amount, transaction_type, description,
            related_bid, related_product, payment_method, metadata
        )

    @staticmethod
    async def record_auction_win(user_id: UUID, bid: Bid, product: Product) -> Wallet:
        """Zero-amount entry: the funds held for the winning bid become the final payment"""
        return await WalletService._apply(
            user_id, Decimal("0.00"), TransactionType.auction_win,
            f"Won auction for product: {product.title}",
            related_bid=bid, related_product=product
        )

    @staticmethod
    async def _is_duplicate(user_id: UUID, transaction_type: TransactionType, related_bid: Optional[Bid]) -> bool:
        if related_bid is None or transaction_type not in BID_LINKED_TYPES:
            return False
        return await Transaction.exists(
            related_bid_id=related_bid.id,
            transaction_type=transaction_type,
            user_id=user_id,
            status=TransactionStatus.completed
        )

    @staticmethod
    async def _apply(
        user_id: UUID,
        signed_amount: Decimal,
        transaction_type: TransactionType,
        description: str,
        related_bid: Optional[Bid] = None,
        related_product: Optional[Product] = None,
        payment_method: Optional[PaymentMethod] = None,
        metadata: Optional[dict] = None
    ) -> Wallet:
        await WalletService.get_or_create_wallet(user_id)
        for attempt in range(1, settings.wallet_update_retries + 1):
            try:
                async with in_transaction():
                    wallet = await Wallet.filter(user_id=user_id).select_for_update().get()

                    if await WalletService._is_duplicate(user_id, transaction_type, related_bid):
                        logger.info(
                            f"Transaction already exists for bid {related_bid.id} with type {transaction_type.value}"
                        )
                        return wallet

                    new_balance = wallet.balance + signed_amount
                    if new_balance < 0:
                        raise InsufficientFundsError(
                            f"Insufficient funds in wallet. Current balance is {wallet.balance}"
                        )

                    now = utcnow()
                    updated = await Wallet.filter(id=wallet.id, version=wallet.version).update(
                        balance=new_balance,
                        version=wallet.version + 1,
                        last_transaction=now
                    )
                    if not updated:
                        raise _StaleWallet()

                    await Transaction.create(
                        wallet_id=wallet.id,
                        user_id=user_id,
                        transaction_type=transaction_type,
                        amount=signed_amount,
                        balance_after=new_balance,
                        description=description[:500],
                        status=TransactionStatus.completed,
                        related_bid=related_bid,
                        related_product=related_product,
                        payment_method=payment_method,
                        metadata=metadata
                    )

                    wallet.balance = new_balance
                    wallet.version += 1
                    wallet.last_transaction = now
                    return wallet
            except _StaleWallet:
                logger.debug(f"Wallet for user {user_id} changed concurrently, retry {attempt}")
                continue
            except IntegrityError:
                if related_bid is None or transaction_type not in BID_LINKED_TYPES:
                    raise
                # Unique (related_bid, transaction_type) rejected a concurrent duplicate
                logger.warning(
                    f"Duplicate {transaction_type.value} transaction for bid {related_bid.id} suppressed"
                )
                return await Wallet.get(user_id=user_id)

        raise ConcurrencyError("Wallet is busy, please try again")

    @staticmethod
    async def deposit(
        user_id: UUID,
        amount: Decimal,
        payment_method: PaymentMethod = PaymentMethod.bank_transfer,
        description: Optional[str] = None
    ) -> Wallet:
        amount = to_money(amount)
        if amount < settings.min_deposit_amount:
            raise BusinessRuleError(f"Minimum deposit amount is {settings.min_deposit_amount}")
        if amount > settings.max_deposit_amount:
            raise BusinessRuleError(f"Maximum deposit limit is {settings.max_deposit_amount}")

        window_start = utcnow() - timedelta(seconds=settings.duplicate_deposit_window_seconds)
        recent_similar = await Transaction.exists(
            user_id=user_id,
            transaction_type=TransactionType.deposit,
            amount=amount,
            status=TransactionStatus.completed,
            created_at__gte=window_start
        )
        if recent_similar:
            raise BusinessRuleError(
                "Duplicate deposit detected. Please wait a few minutes before making "
                "another deposit with the same amount."
            )

        return await WalletService.credit(
            user_id, amount, TransactionType.deposit,
            description or f"Deposit of {amount} via {payment_method.value}",
            payment_method=payment_method
        )

    @staticmethod
    async def withdraw(
        user_id: UUID,
        amount: Decimal,
        payment_method: PaymentMethod = PaymentMethod.bank_transfer,
        description: Optional[str] = None
    ) -> Wallet:
        amount = to_money(amount)
        wallet = await Wallet.get_or_none(user_id=user_id)
        if not wallet:
            raise NotFoundError("Wallet not found")
        if amount < settings.min_withdrawal_amount:
            raise BusinessRuleError(f"Minimum withdrawal amount is {settings.min_withdrawal_amount}")
        if not WalletService.has_sufficient_funds(wallet, amount):
            raise InsufficientFundsError("Insufficient funds in wallet")

        return await WalletService.debit(
            user_id, amount, TransactionType.withdrawal,
            description or f"Withdrawal of {amount} via {payment_method.value}",
            payment_method=payment_method
        )

    @staticmethod
    async def admin_adjust(user_id: UUID, amount: Decimal, description: str, admin_id: UUID) -> Wallet:
        """Signed manual correction by an administrator"""
        amount = to_money(amount)
        if amount == 0:
            raise BusinessRuleError("Adjustment amount cannot be zero")
        if not await User.exists(id=user_id):
            raise NotFoundError("User not found")
        metadata = {"adjusted_by": str(admin_id)}
        logger.info(f"Admin {admin_id} adjusting wallet of user {user_id} by {amount}")
        if amount > 0:
            return await WalletService.credit(
                user_id, amount, TransactionType.admin_adjustment, description,
                payment_method=PaymentMethod.admin, metadata=metadata
            )
        return await WalletService.debit(
            user_id, -amount, TransactionType.admin_adjustment, description,
            payment_method=PaymentMethod.admin, metadata=metadata
        )

    @staticmethod
    async def get_user_transactions(
        user_id: UUID,
        page: int = 1,
        page_size: int = 20,
        transaction_type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> tuple[list[Transaction], int]:
        """Get user transactions with pagination"""
        query = Transaction.filter(user_id=user_id)

        if transaction_type:
            query = query.filter(transaction_type=transaction_type)
        if status:
            query = query.filter(status=status)
        if start_date:
            query = query.filter(created_at__gte=start_date)
        if end_date:
            query = query.filter(created_at__lte=end_date)

        total = await query.count()
        transactions = await query.order_by("-created_at").offset((page - 1) * page_size).limit(page_size)

        return transactions, total

    @staticmethod
    async def get_stats(user_id: UUID) -> dict:
        wallet = await Wallet.get_or_none(user_id=user_id)
        if not wallet:
            raise NotFoundError("Wallet not found")

        entries = await Transaction.filter(
            user_id=user_id, status=TransactionStatus.completed
        ).values_list("transaction_type", "amount")

        def total(kind: TransactionType) -> Decimal:
            return sum((abs(amount) for t, amount in entries if t == kind), Decimal("0.00"))

        return {
            "current_balance": wallet.balance,
            "currency": wallet.currency,
            "total_deposited": total(TransactionType.deposit),
            "total_withdrawn": total(TransactionType.withdrawal),
            "total_bid_amount": total(TransactionType.bid),
            "total_refunded": total(TransactionType.bid_refund),
            "total_transactions": await Transaction.filter(user_id=user_id).count(),
            "wallet_created": wallet.created_at,
            "last_transaction": wallet.last_transaction,
        }
