from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AddressFields(BaseModel):
    receiver_name: str
    receiver_phone: str
    postal_code: Optional[str] = None
    road_address: str
    address_detail: Optional[str] = None


class AddressUpsert(AddressFields):
    set_default: bool = False


class AddressResponse(BaseModel):
    id: int
    owner_id: int
    receiver_name: str
    receiver_phone: str
    postal_code: Optional[str] = None
    road_address: str
    address_detail: Optional[str] = None
    is_default: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
