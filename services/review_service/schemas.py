from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ReviewCreate(BaseModel):
    listing_id: int
    rating: int
    content: str


class ReviewResponse(BaseModel):
    id: int
    reviewer_id: int
    reviewee_id: int
    listing_id: int
    order_id: int
    rating: int
    content: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SellerRating(BaseModel):
    seller_id: int
    average: Optional[float] = None
    count: int
    recent: List[ReviewResponse]
