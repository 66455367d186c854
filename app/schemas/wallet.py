from uuid import UUID
from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.enums.payment_method import PaymentMethod
from app.enums.transaction_status import TransactionStatus
from app.enums.transaction_type import TransactionType


class WalletResponse(BaseModel):
    """Schema for wallet response"""
    id: UUID
    user_id: UUID
    balance: Decimal
    currency: str
    is_active: bool
    last_transaction: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("id", "user_id")
    def serialize_uuid(self, v: UUID, _info):
        return str(v)

    @field_serializer("balance")
    def serialize_balance(self, v: Decimal, _info):
        return float(v)


class DepositRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    payment_method: PaymentMethod = PaymentMethod.bank_transfer
    description: Optional[str] = Field(None, max_length=500)


class WithdrawRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    payment_method: PaymentMethod = PaymentMethod.bank_transfer
    description: Optional[str] = Field(None, max_length=500)


class AdminAdjustRequest(BaseModel):
    user_id: UUID
    amount: Decimal = Field(..., max_digits=14, decimal_places=2, description="Signed amount")
    description: str = Field(..., min_length=1, max_length=500)


class TransactionResponse(BaseModel):
    """Schema for transaction response"""
    id: UUID
    user_id: UUID
    wallet_id: UUID
    transaction_type: TransactionType
    amount: Decimal
    status: TransactionStatus
    balance_after: Decimal
    description: str
    related_product_id: Optional[UUID]
    related_bid_id: Optional[UUID]
    payment_method: Optional[PaymentMethod]
    reference: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("id", "user_id", "wallet_id", "related_product_id", "related_bid_id")
    def serialize_uuid(self, v: Optional[UUID], _info):
        return str(v) if v else None

    @field_serializer("amount", "balance_after")
    def serialize_decimal(self, v: Decimal, _info):
        return float(v)


class TransactionListResponse(BaseModel):
    """Schema for paginated transaction list"""
    total: int
    page: int
    page_size: int
    transactions: list[TransactionResponse]


class WalletOperationResponse(BaseModel):
    message: str
    wallet: WalletResponse


class WalletStatsResponse(BaseModel):
    current_balance: Decimal
    currency: str
    total_deposited: Decimal
    total_withdrawn: Decimal
    total_bid_amount: Decimal
    total_refunded: Decimal
    total_transactions: int
    wallet_created: datetime
    last_transaction: Optional[datetime]

    @field_serializer("current_balance", "total_deposited", "total_withdrawn", "total_bid_amount", "total_refunded")
    def serialize_decimal(self, v: Decimal, _info):
        return float(v)
