from uuid import UUID
from typing import Optional, Literal
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.enums.product_category import ProductCategory
from app.enums.product_status import ProductStatus

ProductSort = Literal["price-asc", "price-desc", "ending-soon", "newest"]


class ProductCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=2000)
    category: ProductCategory
    starting_price: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    duration: int = Field(..., ge=1, le=168, description="Auction duration in hours")
    images: list[str] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    category: Optional[ProductCategory] = None
    starting_price: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    duration: Optional[int] = Field(None, ge=1, le=168)
    images: Optional[list[str]] = None


class ProductReview(BaseModel):
    status: ProductStatus
    admin_remarks: Optional[str] = Field(None, max_length=500)


class ProductRelist(BaseModel):
    starting_price: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)
    duration: Optional[int] = Field(None, ge=1, le=168)


class ProductResponse(BaseModel):
    id: UUID
    title: str
    description: str
    category: ProductCategory
    starting_price: Decimal
    current_price: Decimal
    bid_count: int
    duration: int
    start_time: datetime
    end_time: datetime
    images: list[str]
    status: ProductStatus
    vendor_id: UUID
    winner_id: Optional[UUID]
    relisted_from_id: Optional[UUID]
    admin_remarks: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("id", "vendor_id", "winner_id", "relisted_from_id")
    def serialize_uuid(self, v: Optional[UUID], _info):
        return str(v) if v else None

    @field_serializer("starting_price", "current_price")
    def serialize_decimal(self, v: Decimal, _info):
        return float(v)


class ProductListResponse(BaseModel):
    """Schema for paginated product list"""
    total: int
    page: int
    page_size: int
    pages: int
    products: list[ProductResponse]


class RelistResponse(BaseModel):
    product: ProductResponse
    recommended_price: float
    message: str = "Product relisted and submitted for admin review"


class PriceRecommendation(BaseModel):
    original_price: Decimal
    recommended_price: Decimal
    recommendation_reason: str
    previous_bids_count: int

    @field_serializer("original_price", "recommended_price")
    def serialize_decimal(self, v: Decimal, _info):
        return float(v)
