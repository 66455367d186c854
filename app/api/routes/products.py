from uuid import UUID
from math import ceil
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_current_active_user, admin_required, vendor_required
from app.enums.product_category import ProductCategory
from app.enums.product_status import ProductStatus
from app.models.user import User
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductReview,
    ProductRelist,
    ProductResponse,
    ProductListResponse,
    ProductSort,
    PriceRecommendation,
    RelistResponse,
)
from app.services.auction.product_service import ProductService

router = APIRouter()


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(data: ProductCreate, vendor: User = Depends(vendor_required)):
    """Submit a product for admin review"""
    return await ProductService.create_product(vendor, data.model_dump())


@router.get("", response_model=ProductListResponse)
async def list_products(
    category: Optional[ProductCategory] = None,
    status_filter: Optional[ProductStatus] = Query(None, alias="status"),
    sort: Optional[ProductSort] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="limit")
):
    products, total = await ProductService.list_products(category, status_filter, sort, page, page_size)
    return ProductListResponse(
        total=total,
        page=page,
        page_size=page_size,
        pages=ceil(total / page_size),
        products=products
    )


@router.get("/stats")
async def product_stats():
    return await ProductService.get_stats()


@router.get("/vendor", response_model=list[ProductResponse])
async def vendor_products(vendor: User = Depends(vendor_required)):
    return await ProductService.get_vendor_products(vendor.id)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: UUID):
    return await ProductService.get_product(product_id)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    data: ProductUpdate,
    current_user: User = Depends(get_current_active_user)
):
    return await ProductService.update_product(product_id, current_user, data.model_dump(exclude_unset=True))


@router.delete("/{product_id}")
async def delete_product(product_id: UUID, current_user: User = Depends(get_current_active_user)):
    await ProductService.delete_product(product_id, current_user)
    return {"message": "Product deleted successfully"}


@router.put("/{product_id}/review", response_model=ProductResponse)
async def review_product(product_id: UUID, data: ProductReview, admin: User = Depends(admin_required)):
    return await ProductService.review_product(product_id, admin, data.status, data.admin_remarks)


@router.get("/{product_id}/price-recommendation", response_model=PriceRecommendation)
async def price_recommendation(product_id: UUID, vendor: User = Depends(vendor_required)):
    return await ProductService.get_price_recommendation(product_id, vendor)


@router.post("/{product_id}/relist", response_model=RelistResponse, status_code=status.HTTP_201_CREATED)
async def relist_product(product_id: UUID, data: ProductRelist, vendor: User = Depends(vendor_required)):
    product, recommended = await ProductService.relist_product(
        product_id, vendor, data.starting_price, data.duration
    )
    return RelistResponse(product=product, recommended_price=float(recommended))


@router.delete("/{product_id}/remove")
async def remove_unsold_product(product_id: UUID, vendor: User = Depends(vendor_required)):
    await ProductService.remove_unsold_product(product_id, vendor)
    return {"message": "Product removed successfully"}
