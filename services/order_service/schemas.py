from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from services.address_service.schemas import AddressFields

OrderStatus = Literal["payment_completed", "shipping", "delivered", "confirmed"]


class OrderCreate(BaseModel):
    listing_id: int
    quantity: int
    # Either a saved address of the buyer...
    address_id: Optional[int] = None
    # ...or the fields typed at checkout.
    shipping: Optional[AddressFields] = None
    save_address: bool = False
    set_default: bool = False


class ShippingSnapshot(BaseModel):
    receiver_name: str
    receiver_phone: str
    postal_code: Optional[str] = None
    road_address: str
    address_detail: Optional[str] = None


class OrderResponse(BaseModel):
    id: int
    listing_id: int
    buyer_id: int
    seller_id: int
    quantity: int
    unit_price: int
    total_price: int
    status: OrderStatus
    listing_title: str
    shipping: ShippingSnapshot
    review_eligible: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_order(cls, order, review_eligible: bool = False) -> "OrderResponse":
        return cls(
            id=order.id,
            listing_id=order.listing_id,
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            quantity=order.quantity,
            unit_price=order.unit_price,
            total_price=order.total_price,
            status=order.status,
            listing_title=order.listing_title,
            shipping=ShippingSnapshot(
                receiver_name=order.ship_receiver_name,
                receiver_phone=order.ship_receiver_phone,
                postal_code=order.ship_postal_code,
                road_address=order.ship_road_address,
                address_detail=order.ship_address_detail,
            ),
            review_eligible=review_eligible,
            created_at=order.created_at,
        )


class CheckoutResponse(BaseModel):
    order: OrderResponse
    remaining_stock: int
    receipt_posted: bool
    address_saved: Optional[bool] = None
