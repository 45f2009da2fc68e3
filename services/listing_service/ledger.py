"""
Inventory ledger: the authoritative stock count of a listing.

`reserve` is a single conditional UPDATE, so the check and the decrement
happen in one statement on the row. Two buyers racing for the last unit
both issue the UPDATE; the database serialises them on the row and the
second one matches zero rows. The UPDATE returns the row as it stands
after the decrement, so the price an order is charged is the price that
was current when its stock was taken. The ledger never commits: the caller
owns the transaction and commits the decrement together with the order row.
"""
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import NotFound, OutOfStock, ValidationError
from shared.observability import market_stock_reservations_total

from .models import Listing

logger = structlog.get_logger(__name__)


@dataclass
class Reservation:
    remaining: int
    unit_price: Optional[int]
    title: str
    seller_id: int


class InventoryLedger:

    @staticmethod
    async def reserve(db: AsyncSession, listing_id: int, quantity: int) -> Reservation:
        """Decrement stock by `quantity`; returns the remaining stock and the
        listing row read by the same statement.

        Raises NotFound for an unknown listing and OutOfStock when the stock
        is unknown, zero or smaller than the requested quantity.
        """
        if quantity <= 0:
            raise ValidationError("Quantity must be positive")

        stmt = (
            update(Listing)
            .where(
                Listing.id == listing_id,
                Listing.stock_quantity.is_not(None),
                Listing.stock_quantity >= quantity,
            )
            .values(stock_quantity=Listing.stock_quantity - quantity)
            .returning(Listing.stock_quantity, Listing.price, Listing.title, Listing.owner_id)
            .execution_options(synchronize_session=False)
        )
        updated = (await db.execute(stmt)).first()

        if updated is None:
            stock = await db.execute(
                select(Listing.stock_quantity).where(Listing.id == listing_id)
            )
            row = stock.first()
            if row is None:
                market_stock_reservations_total.labels(result="not_found").inc()
                raise NotFound(f"Listing {listing_id} not found")
            market_stock_reservations_total.labels(result="out_of_stock").inc()
            logger.info(
                "out_of_stock", listing_id=listing_id, requested=quantity, available=row[0]
            )
            raise OutOfStock(
                f"Only {row[0]} left in stock" if row[0] else "This item is sold out"
            )

        remaining, unit_price, title, seller_id = updated
        market_stock_reservations_total.labels(result="reserved").inc()
        logger.info("stock_reserved", listing_id=listing_id, quantity=quantity, remaining=remaining)
        return Reservation(
            remaining=remaining, unit_price=unit_price, title=title, seller_id=seller_id
        )

    @staticmethod
    async def available(db: AsyncSession, listing_id: int):
        """Current stock, or None when unknown. Raises NotFound."""
        result = await db.execute(select(Listing.stock_quantity).where(Listing.id == listing_id))
        row = result.first()
        if row is None:
            raise NotFound(f"Listing {listing_id} not found")
        return row[0]
