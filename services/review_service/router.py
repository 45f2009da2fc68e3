from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .schemas import ReviewCreate, ReviewResponse, SellerRating
from .service import ReviewService

router = APIRouter(tags=["Reviews"])
public_router = APIRouter()

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "review", "status": "running"}


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def submit_review(
    payload: ReviewCreate,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ReviewService.submit_review(
        db, user_id, payload.listing_id, payload.rating, payload.content
    )


@router.get("/listings/{listing_id}", response_model=list[ReviewResponse])
async def listing_reviews(listing_id: int, db: AsyncSession = Depends(get_db)):
    return await ReviewService.list_for_listing(db, listing_id)


@router.get("/sellers/{seller_id}", response_model=SellerRating)
async def seller_rating(
    seller_id: int,
    recent: int = Query(default=5, ge=0, le=50),
    db: AsyncSession = Depends(get_db),
):
    return await ReviewService.seller_rating(db, seller_id, recent=recent)
