"""
Order Factory: turns a checkout request into an order.

The stock decrement and the order insert share one transaction. The
ledger decrements with a conditional UPDATE that also returns the price,
title and seller of the row it changed; the order is built from those
values, flushed in the same transaction, and both are committed together.
On any failure the transaction is rolled back, so there is never a
decremented listing without its order.
"""
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.address_service.service import AddressService, clean_fields
from services.listing_service.ledger import InventoryLedger
from services.listing_service.repository import ListingRepository
from shared.config import settings
from shared.errors import (
    Conflict,
    NotFound,
    OutOfStock,
    PermissionDenied,
    PersistenceError,
    ValidationError,
)

from .models import STATUS_PAYMENT_COMPLETED, Order
from .repository import OrderRepository
from .schemas import OrderCreate

logger = structlog.get_logger(__name__)


@dataclass
class OrderResult:
    order: Order
    remaining_stock: int
    thumbnail_url: Optional[str] = None
    # None when the buyer did not ask to save the address.
    address_saved: Optional[bool] = None

    @property
    def order_id(self) -> int:
        return self.order.id


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be a positive whole number.")
    return quantity


class OrderFactory:

    @staticmethod
    async def _resolve_shipping(db: AsyncSession, buyer_id: int, data: OrderCreate) -> dict:
        if data.address_id is not None:
            address = await AddressService.get_owned(db, buyer_id, data.address_id)
            return {
                "receiver_name": address.receiver_name,
                "receiver_phone": address.receiver_phone,
                "postal_code": address.postal_code,
                "road_address": address.road_address,
                "address_detail": address.address_detail,
            }
        if data.shipping is None:
            raise ValidationError("Enter a shipping address.")
        return clean_fields(data.shipping)

    @staticmethod
    async def _save_address(db: AsyncSession, buyer_id: int, data: OrderCreate) -> bool:
        """Best effort: a full address book does not block the purchase."""
        try:
            await AddressService.save_for_checkout(
                db, buyer_id, data.shipping, set_default=data.set_default
            )
        except (ValidationError, Conflict) as e:
            logger.info("checkout_address_not_saved", buyer_id=buyer_id, reason=e.message)
            return False
        return True

    @staticmethod
    async def place_order(db: AsyncSession, buyer_id: int, data: OrderCreate) -> OrderResult:
        quantity = _validate_quantity(data.quantity)

        listing = await ListingRepository.get_listing(db, data.listing_id)
        if listing is None:
            raise NotFound("Listing not found")
        if listing.price is None:
            raise ValidationError("This listing has no price and cannot be purchased.")
        if listing.owner_id == buyer_id:
            raise ValidationError("You cannot buy your own listing.")
        if listing.stock_quantity is None and quantity > settings.DEFAULT_QUANTITY_CAP:
            raise ValidationError(
                f"You can order at most {settings.DEFAULT_QUANTITY_CAP} at a time."
            )

        shipping = await OrderFactory._resolve_shipping(db, buyer_id, data)
        listing_id = listing.id
        thumbnail_url = listing.thumbnail_url

        # Saved on its own commit, before the order transaction.
        address_saved = None
        if data.save_address and data.address_id is None:
            address_saved = await OrderFactory._save_address(db, buyer_id, data)

        try:
            reservation = await InventoryLedger.reserve(db, listing_id, quantity)
            if reservation.unit_price is None:
                raise ValidationError("This listing has no price and cannot be purchased.")
            order = await OrderRepository.add_order(
                db,
                Order(
                    listing_id=listing_id,
                    buyer_id=buyer_id,
                    seller_id=reservation.seller_id,
                    quantity=quantity,
                    unit_price=reservation.unit_price,
                    total_price=reservation.unit_price * quantity,
                    status=STATUS_PAYMENT_COMPLETED,
                    listing_title=reservation.title,
                    ship_receiver_name=shipping["receiver_name"],
                    ship_receiver_phone=shipping["receiver_phone"],
                    ship_postal_code=shipping["postal_code"],
                    ship_road_address=shipping["road_address"],
                    ship_address_detail=shipping["address_detail"],
                ),
            )
            await db.commit()
        except (OutOfStock, NotFound, ValidationError):
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("order_persist_failed", listing_id=listing_id, buyer_id=buyer_id, error=str(e))
            raise PersistenceError(str(e)) from e

        logger.info(
            "order_placed",
            order_id=order.id,
            listing_id=listing_id,
            buyer_id=buyer_id,
            quantity=quantity,
            total_price=order.total_price,
            remaining_stock=reservation.remaining,
        )
        return OrderResult(
            order=order,
            remaining_stock=reservation.remaining,
            thumbnail_url=thumbnail_url,
            address_saved=address_saved,
        )


class OrderService:

    @staticmethod
    async def get_order_for(db: AsyncSession, user_id: int, order_id: int) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if order is None:
            raise NotFound("Order not found")
        if user_id not in (order.buyer_id, order.seller_id):
            raise PermissionDenied("This order belongs to someone else.")
        return order

    @staticmethod
    async def list_purchases(db: AsyncSession, buyer_id: int):
        return await OrderRepository.list_for_buyer(db, buyer_id)

    @staticmethod
    async def list_sales(db: AsyncSession, seller_id: int):
        return await OrderRepository.list_for_seller(db, seller_id)
