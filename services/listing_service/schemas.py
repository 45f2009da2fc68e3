from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ListingStatus = Literal["on_sale", "reserved", "completed"]


class ListingCreate(BaseModel):
    title: str
    category: str
    description: Optional[str] = None
    unit: Optional[str] = None
    region_name: Optional[str] = None
    price: Optional[int] = None
    stock_quantity: Optional[int] = None
    image_urls: List[str] = Field(default_factory=list)


class ListingUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    region_name: Optional[str] = None
    price: Optional[int] = None
    stock_quantity: Optional[int] = None


class StatusChange(BaseModel):
    status: ListingStatus
    sold_room_id: Optional[int] = None


class ListingResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    description: Optional[str] = None
    category: str
    unit: Optional[str] = None
    region_name: Optional[str] = None
    price: Optional[int] = None
    stock_quantity: Optional[int] = None
    status: ListingStatus
    sold_room_id: Optional[int] = None
    thumbnail_url: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_listing(cls, listing) -> "ListingResponse":
        response = cls.model_validate(listing)
        response.image_urls = [image.url for image in listing.images]
        return response
