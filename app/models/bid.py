from tortoise import fields
from tortoise.models import Model
from uuid import uuid4
from app.enums.bid_status import BidStatus

class Bid(Model):
    id = fields.UUIDField(pk=True, default=uuid4)

    bidder = fields.ForeignKeyField("models.User", related_name="bids", on_delete=fields.CASCADE)
    product = fields.ForeignKeyField("models.Product", related_name="bids", on_delete=fields.CASCADE)

    amount = fields.DecimalField(max_digits=14, decimal_places=2)
    status = fields.CharEnumField(BidStatus, default=BidStatus.active)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "bids"
        indexes = (("product_id", "amount"), ("bidder_id", "created_at"))

    async def save(self, *args, **kwargs):
        if self.amount <= 0:
            raise ValueError("Amount must be greater than 0")
        await super().save(*args, **kwargs)
