from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shared.clients.geocoder import Geocoder, get_geocoder
from shared.config.database import get_db
from shared.security.dependencies import get_current_user

from .schemas import (
    FarmProfile,
    FarmSummary,
    SellerStatusResponse,
    VerificationReject,
    VerificationResponse,
    VerificationSubmit,
)
from .service import VerificationService

router = APIRouter(tags=["Seller verification"])
public_router = APIRouter()

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "verification", "status": "running"}


@router.get("/me", response_model=VerificationResponse)
async def get_my_verification(
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await VerificationService.get_own(db, user_id)


@router.put("/me", response_model=VerificationResponse)
async def submit_verification(
    payload: VerificationSubmit,
    user_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
):
    return await VerificationService.submit(db, user_id, payload, geocoder)


@router.get("/sellers/{seller_id}/status", response_model=SellerStatusResponse)
async def seller_status(seller_id: int, db: AsyncSession = Depends(get_db)):
    status = await VerificationService.get_status(db, seller_id)
    return SellerStatusResponse(user_id=seller_id, status=status)


@router.get("/farms", response_model=list[FarmSummary])
async def list_farms(
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    radius_km: Optional[float] = Query(default=None, gt=0),
    db: AsyncSession = Depends(get_db),
):
    return await VerificationService.list_farms(db, lat, lng, radius_km)


@router.get("/farms/{seller_id}", response_model=FarmProfile)
async def farm_profile(seller_id: int, db: AsyncSession = Depends(get_db)):
    return await VerificationService.get_farm_profile(db, seller_id)


@router.get("/", response_model=list[VerificationResponse])
async def list_requests(
    status: Optional[str] = Query(default=None),
    admin_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await VerificationService.list_requests(db, admin_id, status)


@router.post("/{user_id}/approve", response_model=VerificationResponse)
async def approve(
    user_id: int,
    admin_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await VerificationService.approve(db, admin_id, user_id)


@router.post("/{user_id}/reject", response_model=VerificationResponse)
async def reject(
    user_id: int,
    payload: VerificationReject,
    admin_id: int = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await VerificationService.reject(db, admin_id, user_id, payload.reason)
