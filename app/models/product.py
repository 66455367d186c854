import uuid
from tortoise import fields, models

from app.enums.product_status import ProductStatus
from app.enums.product_category import ProductCategory


class Product(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    title = fields.CharField(max_length=100)
    description = fields.TextField()
    category = fields.CharEnumField(ProductCategory)

    starting_price = fields.DecimalField(max_digits=14, decimal_places=2)
    current_price = fields.DecimalField(max_digits=14, decimal_places=2)
    # Incremented with every accepted bid; bid acceptance is gated on it
    bid_count = fields.IntField(default=0)

    duration = fields.IntField(description="Auction duration in hours")
    start_time = fields.DatetimeField()
    end_time = fields.DatetimeField(index=True)

    images = fields.JSONField(default=list)
    status = fields.CharEnumField(ProductStatus, default=ProductStatus.pending, index=True)

    vendor = fields.ForeignKeyField("models.User", related_name="products", on_delete=fields.CASCADE)
    winner = fields.ForeignKeyField("models.User", related_name="won_products", null=True, on_delete=fields.SET_NULL)
    relisted_from = fields.ForeignKeyField("models.Product", related_name="relists", null=True, on_delete=fields.SET_NULL)
    admin_remarks = fields.CharField(max_length=500, null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "products"

    def __str__(self):
        return f"Product {self.id} - {self.title} ({self.status})"
