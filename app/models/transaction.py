import uuid
import secrets
import time
from tortoise import fields, models

from app.enums.transaction_type import TransactionType
from app.enums.transaction_status import TransactionStatus
from app.enums.payment_method import PaymentMethod


def _base36(number: int) -> str:
    alphabet = "0123456789abcdefghijklmnopqrstuvwxyz"
    digits = ""
    while number:
        number, rem = divmod(number, 36)
        digits = alphabet[rem] + digits
    return digits or "0"


def generate_reference() -> str:
    """Human readable ledger reference, e.g. TXN_LX3K9Q2A_4F7B1C"""
    return f"TXN_{_base36(int(time.time() * 1000))}_{secrets.token_hex(3)}".upper()


class Transaction(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    wallet = fields.ForeignKeyField("models.Wallet", related_name="transactions")
    user = fields.ForeignKeyField("models.User", related_name="transactions")

    # Transaction details
    transaction_type = fields.CharEnumField(TransactionType)
    amount = fields.DecimalField(max_digits=14, decimal_places=2)
    status = fields.CharEnumField(TransactionStatus, default=TransactionStatus.pending)
    balance_after = fields.DecimalField(max_digits=14, decimal_places=2)
    description = fields.CharField(max_length=500)

    # Related entities
    related_product = fields.ForeignKeyField(
        "models.Product", related_name="transactions", null=True, on_delete=fields.SET_NULL
    )
    related_bid = fields.ForeignKeyField(
        "models.Bid", related_name="transactions", null=True, on_delete=fields.SET_NULL
    )

    # Reference information
    payment_method = fields.CharEnumField(PaymentMethod, null=True)
    reference = fields.CharField(max_length=64, unique=True, default=generate_reference)
    metadata = fields.JSONField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "transactions"
        ordering = ["-created_at"]
        unique_together = (("related_bid", "transaction_type"),)
        indexes = (("user_id", "created_at"), ("transaction_type", "status"))

    def __str__(self):
        return f"Transaction {self.reference} - {self.transaction_type} {self.amount}"
