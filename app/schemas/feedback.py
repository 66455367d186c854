from uuid import UUID
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.enums.feedback import FeedbackStatus
from app.schemas.bid import BidResponse
from app.schemas.product import ProductResponse


class FeedbackCreate(BaseModel):
    # Ratings are range-checked by the service so duplicates are reported first
    product_id: UUID
    winning_bid_id: UUID
    product_rating: Optional[int] = None
    product_review: Optional[str] = None
    seller_rating: Optional[int] = None
    seller_review: Optional[str] = None
    delivery_rating: Optional[int] = None
    experience_tags: list[str] = Field(default_factory=list)
    issues: list[str] = Field(default_factory=list)
    would_recommend: Optional[bool] = None


class FeedbackRespond(BaseModel):
    response: str = Field(..., max_length=500)


class FeedbackFlag(BaseModel):
    moderation_notes: Optional[str] = Field(None, max_length=500)


class FeedbackResponse(BaseModel):
    id: UUID
    product_id: UUID
    buyer_id: UUID
    seller_id: UUID
    winning_bid_id: UUID
    product_rating: int
    product_review: str
    seller_rating: int
    seller_review: str
    delivery_rating: Optional[int]
    overall_rating: float
    experience_tags: list[str]
    issues: list[str]
    would_recommend: bool
    is_verified: bool
    status: FeedbackStatus
    seller_response: Optional[str]
    responded_at: Optional[datetime]
    moderation_notes: Optional[str]
    moderated_at: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("id", "product_id", "buyer_id", "seller_id", "winning_bid_id")
    def serialize_uuid(self, v: UUID, _info):
        return str(v)


class FeedbackListResponse(BaseModel):
    total: int
    page: int
    page_size: int
    feedback: list[FeedbackResponse]
    stats: Optional[dict] = None


class PendingFeedbackItem(BaseModel):
    bid: BidResponse
    product: ProductResponse
    seller_id: UUID
    seller_name: str
    win_amount: Decimal
    auction_end_date: datetime

    @field_serializer("seller_id")
    def serialize_uuid(self, v: UUID, _info):
        return str(v)

    @field_serializer("win_amount")
    def serialize_decimal(self, v: Decimal, _info):
        return float(v)
