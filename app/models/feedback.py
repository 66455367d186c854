import uuid
from tortoise import fields, models
from tortoise.validators import MinValueValidator, MaxValueValidator

from app.enums.feedback import FeedbackStatus


def _rating_field(**kwargs):
    return fields.SmallIntField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        **kwargs
    )


class Feedback(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)

    product = fields.ForeignKeyField("models.Product", related_name="feedback", on_delete=fields.CASCADE)
    buyer = fields.ForeignKeyField("models.User", related_name="feedback_given", on_delete=fields.CASCADE)
    seller = fields.ForeignKeyField("models.User", related_name="feedback_received", on_delete=fields.CASCADE)
    winning_bid = fields.ForeignKeyField("models.Bid", related_name="feedback", on_delete=fields.CASCADE)

    # Ratings and reviews
    product_rating = _rating_field()
    product_review = fields.CharField(max_length=1000)
    seller_rating = _rating_field()
    seller_review = fields.CharField(max_length=1000)
    delivery_rating = _rating_field(null=True)
    experience_tags = fields.JSONField(default=list)
    issues = fields.JSONField(default=list)
    would_recommend = fields.BooleanField()

    is_verified = fields.BooleanField(default=True)
    status = fields.CharEnumField(FeedbackStatus, default=FeedbackStatus.active, index=True)

    # Seller response
    seller_response = fields.CharField(max_length=500, null=True)
    responded_at = fields.DatetimeField(null=True)

    # Moderation
    moderation_notes = fields.CharField(max_length=500, null=True)
    moderated_by = fields.ForeignKeyField("models.User", related_name="moderated_feedback", null=True)
    moderated_at = fields.DatetimeField(null=True)

    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "feedback"
        unique_together = (("product", "buyer"),)
        ordering = ["-created_at"]

    @property
    def overall_rating(self) -> float:
        return round((self.product_rating + self.seller_rating) / 2, 1)
