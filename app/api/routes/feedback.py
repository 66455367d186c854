from uuid import UUID
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_current_active_user, get_optional_user, admin_required
from app.models.user import User
from app.schemas.feedback import (
    FeedbackCreate,
    FeedbackFlag,
    FeedbackListResponse,
    FeedbackRespond,
    FeedbackResponse,
    PendingFeedbackItem,
)
from app.services.feedback.feedback_service import FeedbackService

router = APIRouter()

SortOrder = Literal["asc", "desc"]


@router.post("", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(data: FeedbackCreate, current_user: User = Depends(get_current_active_user)):
    """Review an auction you won"""
    return await FeedbackService.submit_feedback(current_user, data.model_dump())


@router.get("/product/{product_id}", response_model=FeedbackListResponse)
async def product_feedback(
    product_id: UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="limit"),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder")
):
    items, total, stats = await FeedbackService.get_product_feedback(product_id, page, page_size, sort_by, sort_order)
    return FeedbackListResponse(total=total, page=page, page_size=page_size, feedback=items, stats=stats)


@router.get("/seller/{seller_id}", response_model=FeedbackListResponse)
async def seller_feedback(
    seller_id: UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="limit"),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder")
):
    items, total, stats = await FeedbackService.get_seller_feedback(seller_id, page, page_size, sort_by, sort_order)
    return FeedbackListResponse(total=total, page=page, page_size=page_size, feedback=items, stats=stats)


@router.get("/my-feedback", response_model=FeedbackListResponse)
async def my_feedback(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="limit"),
    current_user: User = Depends(get_current_active_user)
):
    items, total = await FeedbackService.get_my_feedback(current_user.id, page, page_size)
    return FeedbackListResponse(total=total, page=page, page_size=page_size, feedback=items)


@router.get("/pending", response_model=list[PendingFeedbackItem])
async def pending_feedback(current_user: User = Depends(get_current_active_user)):
    """Won auctions still waiting for your review"""
    pending = await FeedbackService.get_pending_feedback(current_user.id)
    return [
        PendingFeedbackItem(
            bid=item["bid"],
            product=item["product"],
            seller_id=item["seller"].id,
            seller_name=item["seller"].name,
            win_amount=item["win_amount"],
            auction_end_date=item["auction_end_date"]
        )
        for item in pending
    ]


@router.get("/stats/overview")
async def feedback_overview(admin: User = Depends(admin_required)):
    return await FeedbackService.get_overview()


@router.put("/{feedback_id}/respond", response_model=FeedbackResponse)
async def respond_to_feedback(
    feedback_id: UUID,
    data: FeedbackRespond,
    current_user: User = Depends(get_current_active_user)
):
    return await FeedbackService.respond_to_feedback(feedback_id, current_user, data.response)


@router.put("/{feedback_id}/flag", response_model=FeedbackResponse)
async def flag_feedback(feedback_id: UUID, data: FeedbackFlag, admin: User = Depends(admin_required)):
    return await FeedbackService.flag_feedback(feedback_id, admin, data.moderation_notes)


@router.get("/{feedback_id}", response_model=FeedbackResponse)
async def get_feedback(feedback_id: UUID, current_user: Optional[User] = Depends(get_optional_user)):
    return await FeedbackService.get_feedback(feedback_id, current_user)
