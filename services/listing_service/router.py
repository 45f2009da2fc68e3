from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .schemas import ListingCreate, ListingResponse, ListingStatus, ListingUpdate, StatusChange
from .service import ListingService

router = APIRouter(tags=["Listings"])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health")
async def health_check():
    return {"service": "listing", "status": "running"}


@router.post("/", response_model=ListingResponse, status_code=status.HTTP_201_CREATED)
async def create_listing(
    payload: ListingCreate,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    listing = await ListingService.create_listing(db, user_id, payload)
    return ListingResponse.from_listing(listing)

@router.get("/", response_model=list[ListingResponse])
async def list_listings(
    query: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    status: Optional[ListingStatus] = Query(default=None),
    owner_id: Optional[int] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    listings = await ListingService.list_listings(
        db,
        query=query,
        category=category,
        status=status,
        owner_id=owner_id,
        limit=limit,
        offset=offset,
    )
    return [ListingResponse.from_listing(listing) for listing in listings]

@router.get("/{listing_id}", response_model=ListingResponse)
async def get_listing(listing_id: int, db: AsyncSession = Depends(get_db)):
    listing = await ListingService.get_listing(db, listing_id)
    return ListingResponse.from_listing(listing)

@router.patch("/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: int,
    payload: ListingUpdate,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    listing = await ListingService.update_listing(db, user_id, listing_id, payload)
    return ListingResponse.from_listing(listing)

@router.post("/{listing_id}/status", response_model=ListingResponse)
async def change_status(
    listing_id: int,
    payload: StatusChange,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    listing = await ListingService.change_status(
        db, user_id, listing_id, payload.status, payload.sold_room_id
    )
    return ListingResponse.from_listing(listing)

@router.delete("/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_listing(
    listing_id: int,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ListingService.delete_listing(db, user_id, listing_id)
