import uuid
from decimal import Decimal
from tortoise import fields, models

from app.core.config import settings


class Wallet(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    user = fields.OneToOneField("models.User", related_name="wallet", on_delete=fields.CASCADE)

    balance = fields.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    currency = fields.CharField(max_length=3, default=settings.currency)
    is_active = fields.BooleanField(default=True)
    # Optimistic concurrency counter, bumped on every balance change
    version = fields.IntField(default=0)
    last_transaction = fields.DatetimeField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "wallets"

    def __str__(self):
        return f"Wallet {self.id} - {self.balance} {self.currency}"

    def has_sufficient_funds(self, amount: Decimal) -> bool:
        return self.balance >= amount
