from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from services.review_service.schemas import ReviewResponse


class VerificationSubmit(BaseModel):
    farm_name: str
    owner_name: str
    phone: str
    address: str
    location_note: Optional[str] = None
    description: Optional[str] = None
    business_license_path: Optional[str] = None


class VerificationReject(BaseModel):
    reason: str


class VerificationResponse(BaseModel):
    user_id: int
    farm_name: str
    owner_name: str
    phone: str
    address: str
    location_note: Optional[str] = None
    description: Optional[str] = None
    business_license_path: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: Literal["pending", "approved", "rejected"]
    requested_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    class Config:
        from_attributes = True


class SellerStatusResponse(BaseModel):
    user_id: int
    status: Literal["none", "pending", "approved", "rejected"]


class FarmSummary(BaseModel):
    id: int
    farm_name: str
    address: str
    lat: float
    lng: float
    rating_avg: Optional[float] = None
    rating_count: int = 0
    distance_km: Optional[float] = None


class FarmProfile(BaseModel):
    id: int
    farm_name: str
    owner_name: str
    address: str
    location_note: Optional[str] = None
    description: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    rating_avg: Optional[float] = None
    rating_count: int = 0
    recent_reviews: List[ReviewResponse] = []
