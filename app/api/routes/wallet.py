from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_current_active_user, admin_required
from app.enums.transaction_status import TransactionStatus
from app.enums.transaction_type import TransactionType
from app.models.user import User
from app.schemas.wallet import (
    AdminAdjustRequest,
    DepositRequest,
    TransactionListResponse,
    WalletOperationResponse,
    WalletResponse,
    WalletStatsResponse,
    WithdrawRequest,
)
from app.services.finance.ledger_audit import LedgerAuditService
from app.services.finance.wallet_service import WalletService

router = APIRouter()


@router.get("", response_model=WalletResponse)
async def get_wallet(current_user: User = Depends(get_current_active_user)):
    return await WalletService.get_or_create_wallet(current_user.id)


@router.post("/deposit", response_model=WalletOperationResponse)
async def deposit(data: DepositRequest, current_user: User = Depends(get_current_active_user)):
    wallet = await WalletService.deposit(current_user.id, data.amount, data.payment_method, data.description)
    return WalletOperationResponse(message=f"Successfully deposited {data.amount}", wallet=wallet)


@router.post("/withdraw", response_model=WalletOperationResponse)
async def withdraw(data: WithdrawRequest, current_user: User = Depends(get_current_active_user)):
    wallet = await WalletService.withdraw(current_user.id, data.amount, data.payment_method, data.description)
    return WalletOperationResponse(message=f"Successfully withdrew {data.amount}", wallet=wallet)


@router.get("/transactions", response_model=TransactionListResponse)
async def get_my_transactions(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="limit"),
    transaction_type: Optional[TransactionType] = Query(None, alias="type"),
    status: Optional[TransactionStatus] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_active_user)
):
    """Get current user's transaction history"""
    transactions, total = await WalletService.get_user_transactions(
        user_id=current_user.id,
        page=page,
        page_size=page_size,
        transaction_type=transaction_type,
        status=status,
        start_date=start_date,
        end_date=end_date
    )

    return TransactionListResponse(
        total=total,
        page=page,
        page_size=page_size,
        transactions=transactions
    )


@router.get("/stats", response_model=WalletStatsResponse)
async def wallet_stats(current_user: User = Depends(get_current_active_user)):
    return await WalletService.get_stats(current_user.id)


@router.post("/admin/adjust", response_model=WalletOperationResponse)
async def admin_adjust(data: AdminAdjustRequest, admin: User = Depends(admin_required)):
    wallet = await WalletService.admin_adjust(data.user_id, data.amount, data.description, admin.id)
    return WalletOperationResponse(message="Wallet adjusted", wallet=wallet)


@router.get("/admin/audit")
async def ledger_audit(admin: User = Depends(admin_required)):
    """Compare every wallet balance with its ledger"""
    return await LedgerAuditService.audit()
