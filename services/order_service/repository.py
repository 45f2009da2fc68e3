from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import STATUS_CONFIRMED, Order, utcnow


class OrderRepository:

    @staticmethod
    async def add_order(db: AsyncSession, order: Order) -> Order:
        """Stage an order in the caller's transaction (no commit)."""
        db.add(order)
        await db.flush()
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def list_for_buyer(db: AsyncSession, buyer_id: int):
        result = await db.execute(
            select(Order).where(Order.buyer_id == buyer_id).order_by(Order.created_at.desc(), Order.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def list_for_seller(db: AsyncSession, seller_id: int):
        result = await db.execute(
            select(Order).where(Order.seller_id == seller_id).order_by(Order.created_at.desc(), Order.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def find_confirmed(db: AsyncSession, buyer_id: int, listing_id: int) -> Optional[Order]:
        result = await db.execute(
            select(Order)
            .where(
                Order.buyer_id == buyer_id,
                Order.listing_id == listing_id,
                Order.status == STATUS_CONFIRMED,
            )
            .order_by(Order.id)
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def compare_and_set_status(
        db: AsyncSession, order_id: int, expected: str, new_status: str
    ) -> bool:
        """Move an order from `expected` to `new_status`. False if it was not in `expected`."""
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == expected)
            .values(status=new_status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount == 1
