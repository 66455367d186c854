from collections import Counter, defaultdict
from decimal import Decimal
from loguru import logger

from app.enums.transaction_status import TransactionStatus
from app.models.transaction import Transaction
from app.models.wallet import Wallet


class LedgerAuditService:
    """Read-only consistency report over wallets and their ledger entries."""

    @staticmethod
    async def audit() -> dict:
        entries = await Transaction.filter(status=TransactionStatus.completed).values_list(
            "wallet_id", "amount", "related_bid_id", "transaction_type"
        )

        totals = defaultdict(lambda: Decimal("0.00"))
        for wallet_id, amount, _, _ in entries:
            totals[wallet_id] += amount

        mismatches = []
        wallets = await Wallet.all().values_list("id", "user_id", "balance")
        for wallet_id, user_id, balance in wallets:
            ledger_total = totals.get(wallet_id, Decimal("0.00"))
            if balance != ledger_total:
                mismatches.append({
                    "wallet_id": str(wallet_id),
                    "user_id": str(user_id),
                    "balance": balance,
                    "ledger_total": ledger_total,
                    "difference": balance - ledger_total,
                })

        groups = Counter(
            (related_bid_id, transaction_type)
            for _, _, related_bid_id, transaction_type in entries
            if related_bid_id is not None
        )
        duplicates = [
            {
                "related_bid_id": str(related_bid_id),
                "transaction_type": getattr(transaction_type, "value", transaction_type),
                "count": count,
            }
            for (related_bid_id, transaction_type), count in groups.items()
            if count > 1
        ]

        if mismatches or duplicates:
            logger.warning(
                f"Ledger audit found {len(mismatches)} balance mismatches and {len(duplicates)} duplicate groups"
            )

        return {
            "wallets_checked": len(wallets),
            "transactions_checked": len(entries),
            "balance_mismatches": mismatches,
            "duplicate_transactions": duplicates,
            "consistent": not mismatches and not duplicates,
        }
