from uuid import UUID
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.enums.bid_status import BidStatus


class BidCreate(BaseModel):
    product_id: UUID
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)


class BidResponse(BaseModel):
    id: UUID
    product_id: UUID
    bidder_id: UUID
    amount: Decimal
    status: BidStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("id", "product_id", "bidder_id")
    def serialize_uuid(self, v: UUID, _info):
        return str(v)

    @field_serializer("amount")
    def serialize_decimal(self, v: Decimal, _info):
        return float(v)


class BidPlacementResponse(BaseModel):
    message: str
    bid: BidResponse
    wallet_balance: Decimal
    amount_deducted: Decimal
    previous_bid: Decimal

    @field_serializer("wallet_balance", "amount_deducted", "previous_bid")
    def serialize_decimal(self, v: Decimal, _info):
        return float(v)


class BidStatsResponse(BaseModel):
    total: int
    today: int
    active_bids: int
    won_bids: int
    lost_bids: int
    highest_bid_amount: Decimal
    average_bid_amount: int

    @field_serializer("highest_bid_amount")
    def serialize_decimal(self, v: Decimal, _info):
        return float(v)
