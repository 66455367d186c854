from uuid import UUID
from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_current_active_user
from app.models.user import User
from app.schemas.bid import BidCreate, BidResponse, BidPlacementResponse, BidStatsResponse
from app.services.auction.bidding_service import BiddingService

router = APIRouter()


@router.post("", response_model=BidPlacementResponse, status_code=status.HTTP_201_CREATED)
async def place_bid(data: BidCreate, current_user: User = Depends(get_current_active_user)):
    """Place a bid; the bid amount (or the increase over your previous bid) is held from the wallet"""
    placement = await BiddingService.place_bid(current_user, data.product_id, data.amount)
    return BidPlacementResponse(
        message=placement.message,
        bid=placement.bid,
        wallet_balance=placement.wallet_balance,
        amount_deducted=placement.amount_deducted,
        previous_bid=placement.previous_bid
    )


@router.get("/product/{product_id}", response_model=list[BidResponse])
async def product_bids(product_id: UUID):
    return await BiddingService.get_product_bids(product_id)


@router.get("/user", response_model=list[BidResponse])
async def my_bids(current_user: User = Depends(get_current_active_user)):
    return await BiddingService.get_user_bids(current_user.id)


@router.get("/stats", response_model=BidStatsResponse)
async def bid_stats():
    return await BiddingService.get_bid_stats()


@router.get("/{bid_id}", response_model=BidResponse)
async def get_bid(bid_id: UUID, current_user: User = Depends(get_current_active_user)):
    return await BiddingService.get_bid(bid_id, current_user)
